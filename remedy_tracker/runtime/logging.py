"""
Logging setup.

Purpose:
    - Configure the root logger once at startup (console + optional rotating file).
    - Keep uvicorn's access log free of polling noise (health checks).
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_HANDLER_MARK = "_remedy_tracker_handler"


def setup_logging(
    level: str,
    *,
    log_file_enabled: bool = False,
    log_file_path: str | None = None,
    log_file_max_bytes: int = 200_000,
) -> None:
    """
    Configure the root logger.

    Calling it again replaces the handlers it installed before (other handlers stay).
    """

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # --- drop handlers from a previous call ---
    for h in list(root.handlers):
        if getattr(h, _HANDLER_MARK, False):
            root.removeHandler(h)
            h.close()

    formatter = logging.Formatter(_LOG_FORMAT)

    # --- console ---
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    setattr(console, _HANDLER_MARK, True)
    root.addHandler(console)

    # --- rotating file (optional) ---
    if log_file_enabled and log_file_path:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(path),
            maxBytes=max(1, int(log_file_max_bytes)),
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARK, True)
        root.addHandler(file_handler)

    # --- quiet noisy libraries ---
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class _PathFilter(logging.Filter):
    """Drops uvicorn access records whose request path is in `paths`."""

    def __init__(self, paths: tuple[str, ...]) -> None:
        super().__init__()
        self._paths = paths

    def filter(self, record: logging.LogRecord) -> bool:
        # uvicorn.access args: (client_addr, method, full_path, http_version, status_code)
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            full_path = str(args[2]).split("?", 1)[0]
            return full_path not in self._paths
        return True


def suppress_uvicorn_access_log_paths(*paths: str) -> None:
    """Exclude the given request paths from uvicorn.access."""

    if not paths:
        return
    access_logger = logging.getLogger("uvicorn.access")
    for f in list(access_logger.filters):
        if isinstance(f, _PathFilter):
            access_logger.removeFilter(f)
    access_logger.addFilter(_PathFilter(tuple(str(p) for p in paths)))
