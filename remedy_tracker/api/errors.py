"""
Domain error -> HTTP error mapping shared by the routers.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from remedy_tracker.errors import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    RemedyTrackerError,
    ValidationError,
)


def to_http_exception(exc: RemedyTrackerError) -> HTTPException:
    """Return the HTTPException for a domain error."""

    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
