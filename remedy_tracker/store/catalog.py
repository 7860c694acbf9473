"""
Medicine and user stores.

Purpose:
    - Plain CRUD over `medicines` and `users`.
    - Return value objects (records.py) rather than ORM rows.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError

from remedy_tracker.errors import NotFoundError, ValidationError
from remedy_tracker.store.db import Database
from remedy_tracker.store.models import Medicine, User
from remedy_tracker.store.records import ROLES, MedicineRecord, UserRecord


logger = logging.getLogger(__name__)


def _to_medicine_record(row: Medicine) -> MedicineRecord:
    return MedicineRecord(
        id=str(row.id),
        name=str(row.name),
        price=float(row.price),
        image_url=(str(row.image_url) if row.image_url else None),
        created_at=int(row.created_at),
    )


def _to_user_record(row: User) -> UserRecord:
    return UserRecord(
        uid=str(row.uid),
        name=str(row.name),
        email=str(row.email),
        role=str(row.role),
        created_at=int(row.created_at),
    )


def _validate_medicine_fields(name: str, price: float) -> tuple[str, float]:
    """Normalize and check medicine fields."""

    n = str(name or "").strip()
    if not n:
        raise ValidationError("medicine name is required")
    p = float(price)
    if p < 0:
        raise ValidationError("price must be >= 0")
    return n, p


class MedicineStore:
    """`medicines` collection."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def list_medicines(self) -> list[MedicineRecord]:
        """Return every medicine ordered by name."""

        with self._db.session_scope() as session:
            rows = session.query(Medicine).order_by(Medicine.name.asc(), Medicine.id.asc()).all()
            return [_to_medicine_record(r) for r in rows]

    def get_medicine(self, medicine_id: str) -> MedicineRecord:
        """Return a medicine or raise NotFoundError."""

        with self._db.session_scope() as session:
            row = session.get(Medicine, str(medicine_id))
            if row is None:
                raise NotFoundError(f"medicine not found: {medicine_id}")
            return _to_medicine_record(row)

    def create_medicine(self, *, name: str, price: float, image_url: Optional[str] = None) -> MedicineRecord:
        """Add a medicine."""

        n, p = _validate_medicine_fields(name, price)
        with self._db.session_scope() as session:
            row = Medicine(
                id=str(uuid.uuid4()),
                name=n,
                price=p,
                image_url=(str(image_url).strip() or None) if image_url else None,
                created_at=int(time.time()),
            )
            session.add(row)
            session.flush()
            record = _to_medicine_record(row)
        logger.info("medicine created id=%s name=%s", record.id, record.name)
        return record

    def update_medicine(
        self,
        medicine_id: str,
        *,
        name: str,
        price: float,
        image_url: Optional[str] = None,
    ) -> MedicineRecord:
        """Overwrite a medicine's fields."""

        n, p = _validate_medicine_fields(name, price)
        with self._db.session_scope() as session:
            row = session.get(Medicine, str(medicine_id))
            if row is None:
                raise NotFoundError(f"medicine not found: {medicine_id}")
            row.name = n
            row.price = p
            row.image_url = (str(image_url).strip() or None) if image_url else None
            session.flush()
            return _to_medicine_record(row)

    def delete_medicine(self, medicine_id: str) -> None:
        """Delete a medicine (existing sales keep the copied name)."""

        with self._db.session_scope() as session:
            row = session.get(Medicine, str(medicine_id))
            if row is None:
                raise NotFoundError(f"medicine not found: {medicine_id}")
            session.delete(row)
        logger.info("medicine deleted id=%s", medicine_id)


class UserStore:
    """`users` collection (profiles only; credentials live in the identity provider)."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_user(self, uid: str) -> Optional[UserRecord]:
        """Return a profile, or None when it does not exist."""

        with self._db.session_scope() as session:
            row = session.get(User, str(uid))
            return _to_user_record(row) if row is not None else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._db.session_scope() as session:
            row = session.query(User).filter(User.email == str(email or "").strip().lower()).one_or_none()
            return _to_user_record(row) if row is not None else None

    def list_users_by_role(self, role: str) -> list[UserRecord]:
        """Return profiles with `role == role`, ordered by name."""

        with self._db.session_scope() as session:
            rows = session.query(User).filter(User.role == str(role)).order_by(User.name.asc(), User.uid.asc()).all()
            return [_to_user_record(r) for r in rows]

    def create_user(self, *, uid: str, name: str, email: str, role: str) -> UserRecord:
        """Write a profile for an existing identity."""

        n = str(name or "").strip()
        e = str(email or "").strip().lower()
        if not n:
            raise ValidationError("name is required")
        if not e:
            raise ValidationError("email is required")
        if role not in ROLES:
            raise ValidationError(f"role must be one of {ROLES}")
        try:
            with self._db.session_scope() as session:
                row = User(uid=str(uid), name=n, email=e, role=str(role), created_at=int(time.time()))
                session.add(row)
                session.flush()
                record = _to_user_record(row)
        except IntegrityError as exc:
            raise ValidationError(f"user already exists: {e}") from exc
        logger.info("user profile created uid=%s role=%s", record.uid, record.role)
        return record

    def delete_user(self, uid: str) -> None:
        """
        Delete a profile.

        NOTE: the sign-in credential is kept; the person can still sign in but
        has no profile, so every protected endpoint rejects them.
        """

        with self._db.session_scope() as session:
            row = session.get(User, str(uid))
            if row is None:
                raise NotFoundError(f"user not found: {uid}")
            session.delete(row)
        logger.info("user profile deleted uid=%s", uid)
