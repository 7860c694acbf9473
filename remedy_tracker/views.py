"""
Dashboard and customer list views over sale snapshots.

Pure functions: they take a snapshot (list of SaleRecord) and `today`, and
return what the screens show. Role scoping happens earlier (SaleQuery.for_user).
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from remedy_tracker.errors import ValidationError
from remedy_tracker.expiry import ExpiryCategory, classify
from remedy_tracker.store.records import SaleRecord


FILTER_EXPIRING_SOON = "expiring_5_days"
FILTER_EXPIRING_TODAY = "expired_today"
FILTER_ALREADY_EXPIRED = "already_expired"

DASHBOARD_FILTERS = {
    FILTER_EXPIRING_SOON: ExpiryCategory.UPCOMING,
    FILTER_EXPIRING_TODAY: ExpiryCategory.DUE_TODAY,
    FILTER_ALREADY_EXPIRED: ExpiryCategory.OVERDUE,
}


def filter_dashboard(sales: Iterable[SaleRecord], filter_name: str, today: date) -> list[SaleRecord]:
    """
    Return the sales in one dashboard bucket, ascending by dosage end date.

    Sales without an end date never appear.
    """

    category = DASHBOARD_FILTERS.get(str(filter_name or ""))
    if category is None:
        raise ValidationError(f"unknown filter: {filter_name!r} (allowed: {sorted(DASHBOARD_FILTERS)})")

    out: list[SaleRecord] = []
    for sale in sales:
        status = classify(today, sale.dosage_end_date)
        if status is None or status.category != category:
            continue
        out.append(sale)
    return sorted(out, key=lambda s: (s.dosage_end_date, s.id))


def search_customers(sales: Iterable[SaleRecord], term: str = "") -> list[SaleRecord]:
    """
    Customer list: match the patient name (case-insensitive) or the phone
    number (substring), sorted by patient name.
    """

    t = str(term or "").strip()
    t_lower = t.lower()
    matched = [
        s
        for s in sales
        if not t or t_lower in str(s.patient_name or "").lower() or t in str(s.phone_number or "")
    ]
    return sorted(matched, key=lambda s: (str(s.patient_name or "").lower(), s.id))
