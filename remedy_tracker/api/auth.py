"""
Web UI authentication API (cookie session).

Endpoints:
    - POST /api/auth/login  : verify email + password, issue the session cookie
    - POST /api/auth/logout : end the session (cookie removed)
    - GET  /api/auth/me     : the signed-in user's profile
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from remedy_tracker import schemas
from remedy_tracker.api.http_auth import COOKIE_NAME, read_session_id, require_user
from remedy_tracker.app_bootstrap.dependencies import get_config_store_dep, get_identity_dep
from remedy_tracker.config import ConfigStore
from remedy_tracker.errors import AuthenticationError
from remedy_tracker.identity import IdentityProvider
from remedy_tracker.store.records import UserRecord


router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _set_session_cookie(resp: Response, session_id: str, *, secure: bool) -> None:
    """
    Attach the session cookie.

    NOTE:
        - The server expires idle sessions itself (sliding TTL), so the cookie
          lifetime can be long.
    """
    resp.set_cookie(
        key=COOKIE_NAME,
        value=str(session_id),
        httponly=True,
        secure=bool(secure),
        samesite="strict",
        max_age=30 * 24 * 60 * 60,
        path="/",
    )


@router.post("/login", response_model=schemas.UserResponse)
def login(
    request: schemas.LoginRequest,
    identity: IdentityProvider = Depends(get_identity_dep),
    config_store: ConfigStore = Depends(get_config_store_dep),
) -> Response:
    """Sign in and issue the session cookie."""

    # --- verify the credential ---
    try:
        session = identity.sign_in(request.email, request.password)
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    # --- credential without an app profile (removed team member) ---
    if session.user is None:
        identity.sign_out(session.session_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No app profile for this account.")

    resp = JSONResponse(content=schemas.UserResponse.from_record(session.user).model_dump())
    _set_session_cookie(resp, session.session_id, secure=config_store.config.session_cookie_secure)
    logger.info("signed in uid=%s role=%s", session.uid, session.user.role)
    return resp


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    raw_request: Request,
    identity: IdentityProvider = Depends(get_identity_dep),
) -> Response:
    """End the cookie session."""

    sid = read_session_id(raw_request)
    if sid:
        identity.sign_out(sid)

    resp = Response(status_code=status.HTTP_204_NO_CONTENT)
    resp.delete_cookie(key=COOKIE_NAME, path="/")
    return resp


@router.get("/me", response_model=schemas.UserResponse)
def me(user: UserRecord = Depends(require_user)) -> schemas.UserResponse:
    return schemas.UserResponse.from_record(user)
