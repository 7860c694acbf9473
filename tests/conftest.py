from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

import pytest

from remedy_tracker.store.catalog import MedicineStore, UserStore
from remedy_tracker.store.db import Database
from remedy_tracker.store.records import ROLE_ADMIN, ROLE_TEAM_MEMBER, MedicineRecord, UserRecord
from remedy_tracker.store.sales import SalesStore


class FakeMessenger:
    """Records every send; `fail=True` makes sends fail like a rejected request."""

    def __init__(self, *, fail: bool = False, raise_error: bool = False) -> None:
        self.fail = fail
        self.raise_error = raise_error
        self.calls: list[tuple[str, str, list[str]]] = []

    def send_template_message(self, phone_number: str, template_name: str, params: Sequence[str]) -> Optional[dict]:
        self.calls.append((phone_number, template_name, list(params)))
        if self.raise_error:
            raise RuntimeError("gateway exploded")
        if self.fail:
            return None
        return {"messages": [{"id": f"wamid.{len(self.calls)}"}]}


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def notify(self, message: str, type: str = "success", **data: Any) -> None:
        self.events.append({"message": message, "type": type, "data": data})


@pytest.fixture
def db(tmp_path) -> Database:
    database = Database.for_path(tmp_path / "data" / "test.db")
    database.init_schema()
    yield database
    database.dispose()


@pytest.fixture
def sales_store(db) -> SalesStore:
    return SalesStore(db)


@pytest.fixture
def medicine_store(db) -> MedicineStore:
    return MedicineStore(db)


@pytest.fixture
def user_store(db) -> UserStore:
    return UserStore(db)


@pytest.fixture
def admin(user_store) -> UserRecord:
    return user_store.create_user(uid="admin-1", name="Asha Admin", email="admin@example.com", role=ROLE_ADMIN)


@pytest.fixture
def member(user_store) -> UserRecord:
    return user_store.create_user(uid="member-1", name="Tom Member", email="tom@example.com", role=ROLE_TEAM_MEMBER)


@pytest.fixture
def medicine(medicine_store) -> MedicineRecord:
    return medicine_store.create_medicine(name="Amoxicillin", price=120.0)


@pytest.fixture
def make_sale(sales_store, medicine, member):
    """Factory: record a sale with sensible defaults."""

    def _make(
        *,
        patient_name: str = "Ravi Kumar",
        phone_number: str = "919800000001",
        purchase_date: date = date(2024, 5, 12),
        duration: int = 1,
        actor: UserRecord | None = None,
        optional_charges: float = 0.0,
    ):
        return sales_store.create_sale(
            patient_name=patient_name,
            phone_number=phone_number,
            whatsapp_number=None,
            medicine=medicine,
            price=None,
            optional_charges=optional_charges,
            purchase_date=purchase_date,
            duration=duration,
            actor=actor or member,
        )

    return _make
