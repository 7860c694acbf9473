"""
Value objects returned by the stores.

ORM instances never leave a session scope. Stores copy the columns they
need into these frozen dataclasses so callers (views, the reminder gate,
the API) can use them after the session is closed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


ROLE_ADMIN = "admin"
ROLE_TEAM_MEMBER = "team_member"
ROLES = (ROLE_ADMIN, ROLE_TEAM_MEMBER)


@dataclass(frozen=True)
class UserRecord:
    """Signed-in user's profile."""

    uid: str
    name: str
    email: str
    role: str
    created_at: int

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class MedicineRecord:
    """Medicine catalog entry."""

    id: str
    name: str
    price: float
    image_url: Optional[str]
    created_at: int


@dataclass(frozen=True)
class HistoryEntry:
    """One dosage term in a sale's history."""

    seq: int
    purchase_date: date
    duration: int
    dosage_end_date: date
    updated_by: str
    updated_at: int


@dataclass(frozen=True)
class SaleRecord:
    """Sale snapshot (current term + full history)."""

    id: str
    patient_name: str
    phone_number: str
    whatsapp_number: str
    medicine_id: str
    medicine_name: str
    price: float
    optional_charges: float
    total_amount: float
    purchase_date: date
    duration: int
    dosage_end_date: Optional[date]
    team_member_id: str
    team_member_name: str
    created_at: int
    last_reminder_sent: Optional[str] = None
    history: tuple[HistoryEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SaleQuery:
    """
    Equality query over `sales`.

    team_member_id=None selects every sale (admin view).
    """

    team_member_id: Optional[str] = None

    @classmethod
    def for_user(cls, user: UserRecord) -> "SaleQuery":
        """Admins see all sales; team members see their own."""

        if user.is_admin:
            return cls()
        return cls(team_member_id=user.uid)

    def matches(self, sale: SaleRecord) -> bool:
        if self.team_member_id is None:
            return True
        return sale.team_member_id == self.team_member_id
