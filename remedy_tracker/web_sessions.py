"""
Cookie session management for the web UI (in memory).

Purpose:
    - Authenticate browser calls to /api/* and the events WebSocket with a cookie.
    - Each session belongs to one signed-in identity (uid).

Policy:
    - Sessions live in a dict (a process restart signs everyone out).
    - Idle timeout is `ttl_seconds`; every validated access extends it (sliding).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional
from uuid import uuid4


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionInfo:
    """Session (minimal)."""

    session_id: str
    uid: str
    expires_at_unix: float


class WebSessionStore:
    """Cookie sessions kept in memory."""

    def __init__(self, *, ttl_seconds: int = 24 * 60 * 60) -> None:
        self._ttl_seconds = int(ttl_seconds)

        # --- session_id -> (uid, expires_at_unix) ---
        self._sessions: dict[str, tuple[str, float]] = {}
        self._lock = Lock()

    def create(self, uid: str) -> SessionInfo:
        """Create and return a new session for `uid`."""

        sid = str(uuid4())
        expires = time.time() + float(self._ttl_seconds)
        with self._lock:
            self._sessions[sid] = (str(uid), expires)
        return SessionInfo(session_id=sid, uid=str(uid), expires_at_unix=expires)

    def delete(self, session_id: str) -> Optional[str]:
        """Delete a session (missing is fine). Returns the uid it belonged to."""

        sid = str(session_id or "").strip()
        if not sid:
            return None
        with self._lock:
            entry = self._sessions.pop(sid, None)
        return entry[0] if entry is not None else None

    def validate_and_touch(self, session_id: str) -> Optional[SessionInfo]:
        """
        Return the session and extend it when valid.
        Return None when unknown or expired.
        """

        sid = str(session_id or "").strip()
        if not sid:
            return None

        now = time.time()
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            uid, expires = entry
            if float(expires) <= now:
                # --- expired: remove ---
                self._sessions.pop(sid, None)
                return None

            # --- sliding extension ---
            new_expires = now + float(self._ttl_seconds)
            self._sessions[sid] = (uid, new_expires)

        return SessionInfo(session_id=sid, uid=uid, expires_at_unix=new_expires)

    def cleanup_expired(self) -> int:
        """Remove expired sessions and return how many were removed."""

        now = time.time()
        removed = 0
        with self._lock:
            for sid, (_uid, expires) in list(self._sessions.items()):
                if float(expires) <= now:
                    self._sessions.pop(sid, None)
                    removed += 1
        if removed:
            logger.info("web session expired cleanup removed=%s", removed)
        return removed
