"""
FastAPI entry point.

Builds the Remedy Tracker API app: startup wiring, routers and lifecycle.
Run with `uvicorn remedy_tracker.main:create_app --factory` (see run.py).
"""

from __future__ import annotations

import httpx
from fastapi import FastAPI

from remedy_tracker.app_bootstrap import bootstrap_services, build_lifespan, register_http_routes
from remedy_tracker.config import Config, load_config


def create_app(
    config: Config | None = None,
    *,
    messaging_transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    """
    Create and initialize the app.

    Args:
        config: startup config; read from the TOML file when omitted.
        messaging_transport: optional httpx transport for the messaging gateway.
    """

    # --- 1. config, logging, DB and services ---
    services = bootstrap_services(
        config if config is not None else load_config(),
        messaging_transport=messaging_transport,
    )

    # --- 2. app and lifecycle ---
    app = FastAPI(title="Remedy Tracker API", lifespan=build_lifespan(services))
    app.state.services = services

    # --- 3. routes ---
    register_http_routes(app)
    return app
