"""
Cookie-session authentication for WebSocket connections.

A WebSocket cannot answer with an HTTP status, so the caller closes the
connection with WS_1008_POLICY_VIOLATION when this returns None.
"""

from __future__ import annotations

from typing import Optional

from fastapi import WebSocket

from remedy_tracker.api.http_auth import COOKIE_NAME
from remedy_tracker.app_bootstrap.config_bootstrap import AppServices
from remedy_tracker.store.records import UserRecord


def authenticate_ws_cookie_session(websocket: WebSocket) -> Optional[UserRecord]:
    """Return the signed-in user's profile, or None."""

    services: AppServices = websocket.app.state.services
    sid = str(websocket.cookies.get(COOKIE_NAME, "")).strip()
    if not sid:
        return None
    session = services.identity.current(sid)
    if session is None:
        return None
    return session.user
