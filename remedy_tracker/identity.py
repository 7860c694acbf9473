"""
Identity provider (email + password sign-in).

Purpose:
    - Verify credentials (bcrypt hashes in the `credentials` table).
    - Issue / end cookie sessions and resolve the signed-in user's profile.
    - Notify listeners when a session starts or ends.

Policy:
    - Credentials and profiles are separate: deleting a profile (users table)
      does not remove the credential. Sign-in still succeeds, but
      `current()` returns no user, so protected endpoints reject the session.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

import bcrypt
from sqlalchemy.exc import IntegrityError

from remedy_tracker.errors import AuthenticationError, ValidationError
from remedy_tracker.store.catalog import UserStore
from remedy_tracker.store.db import Database
from remedy_tracker.store.models import Credential
from remedy_tracker.store.records import UserRecord
from remedy_tracker.web_sessions import SessionInfo, WebSessionStore


logger = logging.getLogger(__name__)

SESSION_SIGNED_IN = "signed_in"
SESSION_SIGNED_OUT = "signed_out"

SessionListener = Callable[[str, str], None]  # (change, uid)


@dataclass(frozen=True)
class Session:
    """A signed-in session with its cached profile (None when the profile was deleted)."""

    session_id: str
    uid: str
    user: Optional[UserRecord]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(str(password).encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(str(password).encode("utf-8"), str(password_hash).encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


class IdentityProvider:
    """Sign-in / sign-out / current session."""

    def __init__(self, *, db: Database, users: UserStore, sessions: WebSessionStore) -> None:
        self._db = db
        self._users = users
        self._sessions = sessions
        self._listeners: list[SessionListener] = []
        self._listeners_lock = threading.Lock()

    # --- credentials ---

    def create_credential(self, email: str, password: str) -> str:
        """Register a credential and return its new uid."""

        e = str(email or "").strip().lower()
        if not e or "@" not in e:
            raise ValidationError("a valid email is required")
        if len(str(password or "")) < 6:
            raise ValidationError("password must be at least 6 characters")

        uid = str(uuid.uuid4())
        try:
            with self._db.session_scope() as session:
                session.add(
                    Credential(uid=uid, email=e, password_hash=hash_password(password), created_at=int(time.time()))
                )
        except IntegrityError as exc:
            raise ValidationError(f"email already registered: {e}") from exc
        logger.info("credential created uid=%s", uid)
        return uid

    def has_credential(self, email: str) -> bool:
        e = str(email or "").strip().lower()
        with self._db.session_scope() as session:
            return session.query(Credential).filter(Credential.email == e).one_or_none() is not None

    # --- sessions ---

    def sign_in(self, email: str, password: str) -> Session:
        """
        Verify the credential and open a session.

        Raises:
            AuthenticationError: unknown email or wrong password.
        """

        e = str(email or "").strip().lower()
        with self._db.session_scope() as session:
            row = session.query(Credential).filter(Credential.email == e).one_or_none()
            uid = str(row.uid) if row is not None else None
            password_hash = str(row.password_hash) if row is not None else ""

        if uid is None or not check_password(password, password_hash):
            logger.info("sign-in rejected email=%s", e)
            raise AuthenticationError("Invalid email or password.")

        info = self._sessions.create(uid)
        self._emit(SESSION_SIGNED_IN, uid)
        return Session(session_id=info.session_id, uid=uid, user=self._users.get_user(uid))

    def sign_out(self, session_id: str) -> None:
        """End a session (unknown ids are ignored)."""

        uid = self._sessions.delete(session_id)
        if uid is not None:
            self._emit(SESSION_SIGNED_OUT, uid)

    def current(self, session_id: str) -> Optional[Session]:
        """Return the live session (extending it), or None."""

        info: Optional[SessionInfo] = self._sessions.validate_and_touch(session_id)
        if info is None:
            return None
        return Session(session_id=info.session_id, uid=info.uid, user=self._users.get_user(info.uid))

    # --- session-changed notifications ---

    def on_session_changed(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""

        with self._listeners_lock:
            self._listeners.append(listener)

        def _remove() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _remove

    def _emit(self, change: str, uid: str) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change, uid)
            except Exception:  # noqa: BLE001
                logger.exception("session listener failed change=%s", change)
