"""
HTTP route registration.

Purpose:
    - Collect router wiring in one place.
    - Keep the auth requirements of each router visible side by side.
"""

from __future__ import annotations

from fastapi import Depends, FastAPI

from remedy_tracker.api import analytics, auth, control, events, medicines, reminders, sales, team
from remedy_tracker.api.http_auth import require_admin, require_user


def register_http_routes(app: FastAPI) -> None:
    """
    Register the API routers.
    """

    # --- signed-in routers (role checks inside where needed) ---
    app.include_router(sales.router, dependencies=[Depends(require_user)], prefix="/api")
    app.include_router(reminders.router, dependencies=[Depends(require_user)], prefix="/api")
    app.include_router(medicines.router, dependencies=[Depends(require_user)], prefix="/api")
    app.include_router(analytics.router, dependencies=[Depends(require_user)], prefix="/api")

    # --- admin-only routers ---
    app.include_router(team.router, dependencies=[Depends(require_admin)], prefix="/api")
    app.include_router(control.router, dependencies=[Depends(require_admin)], prefix="/api")

    # --- routers with their own auth (login / WebSocket) ---
    app.include_router(auth.router, prefix="/api")
    app.include_router(events.router, prefix="/api")

    # --- health check ---
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        """Liveness check."""

        return {"status": "healthy"}
