"""
HTTP authentication helpers (cookie session).

Purpose:
    - The web UI signs in once and sends the session cookie on every call.
    - Resolve the signed-in user's profile for the routers.

Policy:
    - No session, or a session whose profile was deleted -> 401.
    - Admin-only endpoints reject other roles with 403.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from remedy_tracker.app_bootstrap.dependencies import get_services
from remedy_tracker.store.records import UserRecord


COOKIE_NAME = "remedy_session"


def read_session_id(request: Request) -> str:
    """Return the session id from the cookie ("" when absent)."""

    return str(request.cookies.get(COOKIE_NAME, "")).strip()


def require_user(request: Request) -> UserRecord:
    """Require a live cookie session with an app profile; returns the profile."""

    # --- cookie session ---
    sid = read_session_id(request)
    session = get_services(request).identity.current(sid) if sid else None
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    # --- profile (may have been removed while the credential remains) ---
    if session.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User profile not found")
    return session.user


def require_admin(user: UserRecord = Depends(require_user)) -> UserRecord:
    """Require the admin role."""

    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return user
