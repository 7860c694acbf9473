"""
Domain errors raised by the store and services.

The API layer maps them to HTTP status codes (NotFoundError -> 404, ValidationError -> 400,
PermissionDeniedError -> 403, AuthenticationError -> 401).
"""

from __future__ import annotations


class RemedyTrackerError(Exception):
    """Base class for domain errors."""


class NotFoundError(RemedyTrackerError):
    """A referenced record does not exist."""


class ValidationError(RemedyTrackerError):
    """Input values are out of range or inconsistent."""


class AuthenticationError(RemedyTrackerError):
    """Sign-in failed (unknown email or wrong password)."""


class PermissionDeniedError(RemedyTrackerError):
    """The signed-in user lacks the required role."""
