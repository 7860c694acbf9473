"""
Sales analytics (chart data only; rendering is the client's job).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable

from remedy_tracker.store.records import SaleRecord, UserRecord


# NOTE: fixed English names; strftime("%b") follows the process locale.
_MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _month_label(d: date) -> str:
    # e.g. "Jun 2024"
    return f"{_MONTH_NAMES[d.month - 1]} {d.year}"


def _round_amounts(totals: dict[str, float]) -> dict[str, float]:
    return {k: round(float(v), 2) for k, v in totals.items()}


def sales_by_month(sales: Iterable[SaleRecord]) -> dict[str, float]:
    """Sum of total_amount per purchase month, in chronological order."""

    buckets: dict[tuple[int, int], float] = defaultdict(float)
    for s in sales:
        buckets[(s.purchase_date.year, s.purchase_date.month)] += float(s.total_amount)
    return _round_amounts(
        {_month_label(date(y, m, 1)): total for (y, m), total in sorted(buckets.items())}
    )


def sales_by_medicine(sales: Iterable[SaleRecord]) -> dict[str, float]:
    """Sum of total_amount per medicine name."""

    totals: dict[str, float] = defaultdict(float)
    for s in sales:
        totals[s.medicine_name] += float(s.total_amount)
    return _round_amounts(dict(sorted(totals.items())))


def sales_by_team_member(sales: Iterable[SaleRecord]) -> dict[str, float]:
    """Sum of total_amount per team member name."""

    totals: dict[str, float] = defaultdict(float)
    for s in sales:
        totals[s.team_member_name] += float(s.total_amount)
    return _round_amounts(dict(sorted(totals.items())))


def build_analytics(sales: Iterable[SaleRecord], user: UserRecord) -> dict[str, dict[str, float]]:
    """All three series; the team-member series is only filled for admins."""

    items = list(sales)
    return {
        "sales_by_month": sales_by_month(items),
        "sales_by_medicine": sales_by_medicine(items),
        "sales_by_team_member": sales_by_team_member(items) if user.is_admin else {},
    }
