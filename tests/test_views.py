from __future__ import annotations

from datetime import date, timedelta

import pytest

from remedy_tracker.errors import ValidationError
from remedy_tracker.store.records import SaleRecord
from remedy_tracker.views import (
    FILTER_ALREADY_EXPIRED,
    FILTER_EXPIRING_SOON,
    FILTER_EXPIRING_TODAY,
    filter_dashboard,
    search_customers,
)


TODAY = date(2024, 6, 10)


def _sale(sale_id, *, end_offset=None, name="Patient", phone="900000000"):
    end = TODAY + timedelta(days=end_offset) if end_offset is not None else None
    return SaleRecord(
        id=sale_id,
        patient_name=name,
        phone_number=phone,
        whatsapp_number=phone,
        medicine_id="m1",
        medicine_name="Amoxicillin",
        price=100.0,
        optional_charges=0.0,
        total_amount=100.0,
        purchase_date=TODAY - timedelta(days=30),
        duration=1,
        dosage_end_date=end,
        team_member_id="u1",
        team_member_name="Tom",
        created_at=0,
    )


@pytest.fixture
def snapshot():
    return [
        _sale("plus3", end_offset=3),
        _sale("zero", end_offset=0),
        _sale("minus1", end_offset=-1),
        _sale("minus10", end_offset=-10),
        _sale("plus5", end_offset=5),
        _sale("plus6", end_offset=6),
        _sale("no-end"),
    ]


def test_already_expired_sorted_ascending(snapshot):
    result = filter_dashboard(snapshot, FILTER_ALREADY_EXPIRED, TODAY)
    assert [s.id for s in result] == ["minus10", "minus1"]


def test_expiring_soon_window(snapshot):
    result = filter_dashboard(snapshot, FILTER_EXPIRING_SOON, TODAY)
    assert [s.id for s in result] == ["plus3", "plus5"]


def test_expiring_today(snapshot):
    assert [s.id for s in filter_dashboard(snapshot, FILTER_EXPIRING_TODAY, TODAY)] == ["zero"]


def test_unknown_filter_is_rejected(snapshot):
    with pytest.raises(ValidationError):
        filter_dashboard(snapshot, "next_week", TODAY)


def test_customer_search_by_name_or_phone():
    sales = [
        _sale("a", name="ravi kumar", phone="919811111111"),
        _sale("b", name="Meera Shah", phone="919822222222"),
        _sale("c", name="Anil", phone="919833333333"),
    ]

    assert [s.id for s in search_customers(sales, "RAVI")] == ["a"]
    assert [s.id for s in search_customers(sales, "98222")] == ["b"]
    assert [s.id for s in search_customers(sales, "")] == ["c", "b", "a"]
