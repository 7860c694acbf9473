from __future__ import annotations

import locale
from datetime import date

import pytest

from remedy_tracker.analytics import build_analytics, sales_by_month


def test_totals_by_month_medicine_and_member(make_sale, admin, member, sales_store, medicine_store):
    other = medicine_store.create_medicine(name="Cetirizine", price=40.0)
    make_sale(purchase_date=date(2024, 5, 2), optional_charges=10)
    make_sale(purchase_date=date(2024, 6, 20), actor=admin)
    sales_store.create_sale(
        patient_name="Zoya",
        phone_number="1",
        whatsapp_number="",
        medicine=other,
        price=None,
        optional_charges=0,
        purchase_date=date(2024, 5, 28),
        duration=1,
        actor=member,
    )

    data = build_analytics(sales_store.list_sales(), admin)

    assert data["sales_by_month"] == {"May 2024": 170.0, "Jun 2024": 120.0}
    assert data["sales_by_medicine"] == {"Amoxicillin": 250.0, "Cetirizine": 40.0}
    assert data["sales_by_team_member"] == {"Asha Admin": 120.0, "Tom Member": 170.0}


def test_team_series_only_for_admin(make_sale, member, sales_store):
    make_sale()
    data = build_analytics(sales_store.list_sales(), member)
    assert data["sales_by_team_member"] == {}


def test_months_are_chronological_across_years(make_sale, sales_store):
    make_sale(purchase_date=date(2025, 1, 5))
    make_sale(purchase_date=date(2024, 12, 5))
    assert list(sales_by_month(sales_store.list_sales())) == ["Dec 2024", "Jan 2025"]


@pytest.fixture
def german_time_locale():
    previous = locale.setlocale(locale.LC_TIME)
    for name in ("de_DE.UTF-8", "de_DE.utf8", "de_DE"):
        try:
            locale.setlocale(locale.LC_TIME, name)
            break
        except locale.Error:
            continue
    else:
        pytest.skip("no German locale installed")
    yield
    locale.setlocale(locale.LC_TIME, previous)


def test_month_labels_ignore_the_process_locale(german_time_locale, make_sale, sales_store):
    make_sale(purchase_date=date(2024, 5, 2))
    make_sale(purchase_date=date(2024, 10, 2))
    assert list(sales_by_month(sales_store.list_sales())) == ["May 2024", "Oct 2024"]
