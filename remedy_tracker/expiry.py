"""
Dosage term and expiry classification.

Purpose:
    - Compute the dosage end date from a purchase date and a duration in months.
    - Classify a dosage end date against "today" into dashboard buckets.

Policy:
    - Pure functions only (no DB, no clock). Callers pass `today` explicitly.
    - Date-times are truncated to their calendar date before differencing,
      so time-of-day never shifts a bucket.
    - Month addition clamps to the last day of the target month
      (2024-01-31 + 1 month = 2024-02-29). Sale entry and reorder both use
      compute_dosage_end_date, so the two paths cannot disagree.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from dateutil.relativedelta import relativedelta


# --- policy constants ---
# NOTE: the dashboard window and the reminder lead time are independent on purpose.
DASHBOARD_WINDOW_DAYS = 5
REMINDER_LEAD_DAYS = 2
MAX_DURATION_MONTHS = 120

_SECONDS_PER_DAY = 24 * 60 * 60


class ExpiryCategory(str, enum.Enum):
    """Dashboard bucket of a dosage end date."""

    UPCOMING = "upcoming"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    NONE = "none"


@dataclass(frozen=True)
class ExpiryStatus:
    """Result of classify()."""

    category: ExpiryCategory
    days_remaining: int


def to_calendar_date(value: Any) -> Optional[date]:
    """
    Normalize a stored date value to a calendar date.

    Accepts date, datetime (local time-of-day is dropped), ISO 8601 strings
    and UNIX seconds. Anything else (None, empty, malformed) returns None.
    Aware datetimes are converted to local time first.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if value <= 0:
            return None
        try:
            return datetime.fromtimestamp(float(value)).date()
        except (OverflowError, OSError, ValueError):
            return None

    s = str(value or "").strip()
    if not s:
        return None
    try:
        return to_calendar_date(datetime.fromisoformat(s))
    except ValueError:
        pass
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def days_between(today: date, end_date: date) -> int:
    """Return ceil((end - today) / 1 day) on midnight-normalized dates."""

    start = datetime(today.year, today.month, today.day)
    end = datetime(end_date.year, end_date.month, end_date.day)
    return int(math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY))


def category_for(days_remaining: int) -> ExpiryCategory:
    """Map days-remaining to a bucket."""

    d = int(days_remaining)
    if d < 0:
        return ExpiryCategory.OVERDUE
    if d == 0:
        return ExpiryCategory.DUE_TODAY
    if d <= DASHBOARD_WINDOW_DAYS:
        return ExpiryCategory.UPCOMING
    return ExpiryCategory.NONE


def classify(today: Any, dosage_end_date: Any) -> Optional[ExpiryStatus]:
    """
    Classify a dosage end date relative to today.

    Returns:
        ExpiryStatus, or None when either date is missing or malformed
        (such records belong to no bucket).
    """

    # --- normalize both sides to calendar dates ---
    today_d = to_calendar_date(today)
    end_d = to_calendar_date(dosage_end_date)
    if today_d is None or end_d is None:
        return None

    days_remaining = days_between(today_d, end_d)
    return ExpiryStatus(category=category_for(days_remaining), days_remaining=days_remaining)


def compute_dosage_end_date(purchase_date: Any, duration_months: int) -> date:
    """
    Return purchase_date advanced by duration_months calendar months.

    Raises:
        ValueError: purchase_date is not a date, duration_months is outside
            1..MAX_DURATION_MONTHS, or the end date falls past year 9999.
    """

    start = to_calendar_date(purchase_date)
    if start is None:
        raise ValueError("purchase_date must be a valid date")
    months = int(duration_months)
    if months < 1:
        raise ValueError("duration must be at least 1 month")
    if months > MAX_DURATION_MONTHS:
        raise ValueError(f"duration must be at most {MAX_DURATION_MONTHS} months")
    try:
        return start + relativedelta(months=months)
    except (OverflowError, ValueError) as exc:
        raise ValueError("dosage end date is out of range") from exc


def format_end_date(value: Any) -> str:
    """Format a date as M/D/YYYY without zero padding (e.g. 6/12/2024)."""

    d = to_calendar_date(value)
    if d is None:
        return ""
    return f"{d.month}/{d.day}/{d.year}"
