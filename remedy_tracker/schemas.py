"""
API request/response Pydantic models.

Used by the FastAPI routers for validation, serialization and the OpenAPI docs.
Response models are built from the store's value objects (records.py).
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from remedy_tracker.expiry import MAX_DURATION_MONTHS, classify
from remedy_tracker.store.records import HistoryEntry, MedicineRecord, SaleRecord, UserRecord


# --- auth ---


class LoginRequest(BaseModel):
    """Sign-in request."""

    email: str = Field(..., description="Sign-in email")
    password: str = Field(..., description="Sign-in password")


class UserResponse(BaseModel):
    uid: str
    name: str
    email: str
    role: str

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserResponse":
        return cls(uid=user.uid, name=user.name, email=user.email, role=user.role)


# --- medicines ---


class MedicineRequest(BaseModel):
    """Create/update a medicine."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image_url: Optional[str] = None


class MedicineResponse(BaseModel):
    id: str
    name: str
    price: float
    image_url: Optional[str] = None

    @classmethod
    def from_record(cls, m: MedicineRecord) -> "MedicineResponse":
        return cls(id=m.id, name=m.name, price=m.price, image_url=m.image_url)


# --- team ---


class TeamMemberRequest(BaseModel):
    """Add a team member (credential + profile)."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class DeleteTeamMemberResponse(BaseModel):
    uid: str
    credential_retained: bool = True
    detail: str = "Removed from the app only; the sign-in credential still exists."


# --- sales ---


class SaleCreateRequest(BaseModel):
    """New sale (first dosage term)."""

    model_config = ConfigDict(extra="forbid")

    patient_name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    whatsapp_number: Optional[str] = Field(None, description="Defaults to phone_number when blank")
    medicine_id: str
    price: Optional[float] = Field(None, ge=0, description="Defaults to the medicine's price")
    optional_charges: float = Field(0.0, ge=0)
    purchase_date: date
    duration: int = Field(1, ge=1, le=MAX_DURATION_MONTHS, description="Months")


class ReorderRequest(BaseModel):
    """New dosage term for an existing sale."""

    model_config = ConfigDict(extra="forbid")

    purchase_date: date
    duration: int = Field(1, ge=1, le=MAX_DURATION_MONTHS)


class HistoryEntryResponse(BaseModel):
    seq: int
    purchase_date: date
    duration: int
    dosage_end_date: date
    updated_by: str
    updated_at: int

    @classmethod
    def from_record(cls, h: HistoryEntry) -> "HistoryEntryResponse":
        return cls(
            seq=h.seq,
            purchase_date=h.purchase_date,
            duration=h.duration,
            dosage_end_date=h.dosage_end_date,
            updated_by=h.updated_by,
            updated_at=h.updated_at,
        )


class SaleResponse(BaseModel):
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
    dosage_end_date: Optional[date] = None
    team_member_id: str
    team_member_name: str
    created_at: int
    last_reminder_sent: Optional[str] = None
    days_remaining: Optional[int] = None
    expiry_category: Optional[str] = None
    history: List[HistoryEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_record(cls, s: SaleRecord, *, today: date) -> "SaleResponse":
        status = classify(today, s.dosage_end_date)
        return cls(
            id=s.id,
            patient_name=s.patient_name,
            phone_number=s.phone_number,
            whatsapp_number=s.whatsapp_number,
            medicine_id=s.medicine_id,
            medicine_name=s.medicine_name,
            price=s.price,
            optional_charges=s.optional_charges,
            total_amount=s.total_amount,
            purchase_date=s.purchase_date,
            duration=s.duration,
            dosage_end_date=s.dosage_end_date,
            team_member_id=s.team_member_id,
            team_member_name=s.team_member_name,
            created_at=s.created_at,
            last_reminder_sent=s.last_reminder_sent,
            days_remaining=(status.days_remaining if status is not None else None),
            expiry_category=(status.category.value if status is not None else None),
            history=[HistoryEntryResponse.from_record(h) for h in s.history],
        )


# --- reminders ---


class ReminderResultResponse(BaseModel):
    sale_id: str
    attempted: bool
    delivered: Optional[bool] = None
    reason: Optional[str] = None


class ReminderEvaluateResponse(BaseModel):
    evaluated: int
    sent: int
    failed: int
    skipped: int
    results: List[ReminderResultResponse]


# --- analytics ---


class AnalyticsResponse(BaseModel):
    sales_by_month: Dict[str, float]
    sales_by_medicine: Dict[str, float]
    sales_by_team_member: Dict[str, float]



# --- events ---


class EventResponse(BaseModel):
    event_id: int
    type: str
    message: str
    data: Dict[str, object] = Field(default_factory=dict)
    created_at: int


# --- control (domain clock) ---


class ClockAdvanceRequest(BaseModel):
    """Move the domain day forward."""

    model_config = ConfigDict(extra="forbid")

    days: int = Field(..., ge=1)


class ClockSnapshotResponse(BaseModel):
    system_today: date
    domain_today: date
    domain_offset_days: int
