"""Remedy Tracker launcher (development)."""

from __future__ import annotations


def main() -> None:
    """Start the FastAPI app with uvicorn."""

    import uvicorn

    # --- listen port comes from setting.toml ---
    from remedy_tracker.config import load_config

    config = load_config()

    # --- development: reload on code changes ---
    uvicorn.run(
        "remedy_tracker.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=config.port,
        reload=True,
    )


if __name__ == "__main__":
    main()
