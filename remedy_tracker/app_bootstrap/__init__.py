"""
App startup wiring.

Purpose:
    - Keep startup wiring out of `main.py`.
    - Keep each initialization step readable on its own.
"""

from __future__ import annotations

from remedy_tracker.app_bootstrap.config_bootstrap import AppServices, bootstrap_services, ensure_bootstrap_admin
from remedy_tracker.app_bootstrap.dependencies import get_services
from remedy_tracker.app_bootstrap.lifecycle import build_lifespan
from remedy_tracker.app_bootstrap.routers import register_http_routes

__all__ = [
    "AppServices",
    "bootstrap_services",
    "build_lifespan",
    "ensure_bootstrap_admin",
    "get_services",
    "register_http_routes",
]
