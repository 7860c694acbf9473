"""
In-app clock service.

Purpose:
    - Give the expiry and reminder logic a single source of "today".
    - Allow the calendar day to be shifted (offset in days) so day-boundary
      behavior can be checked without waiting for real time.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta


@dataclass(frozen=True)
class ClockSnapshot:
    """Read-only snapshot of the clock state."""

    system_today: date
    domain_today: date
    domain_offset_days: int


class ClockService:
    """
    Clock shared inside the app.

    Policy:
        - system day: the local calendar date of the OS clock.
        - domain day: system day + offset days.
        - the offset can only move forward (or be reset).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._domain_offset_days = 0

    def now(self) -> datetime:
        """Return the current local date-time (no offset applied)."""

        return datetime.now()

    def system_today(self) -> date:
        """Return the local calendar date of the OS clock."""

        return date.today()

    def today(self) -> date:
        """Return the domain calendar date (system date + offset)."""

        with self._lock:
            offset = int(self._domain_offset_days)
        return date.today() + timedelta(days=offset)

    def advance_domain_days(self, *, days: int) -> int:
        """
        Move the domain day forward.

        Returns:
            The offset after the change.
        """

        delta = int(days)
        if delta <= 0:
            raise ValueError("days must be >= 1")
        with self._lock:
            self._domain_offset_days = int(self._domain_offset_days) + delta
            return int(self._domain_offset_days)

    def reset_domain_offset(self) -> None:
        """Reset the domain offset to 0."""

        with self._lock:
            self._domain_offset_days = 0

    def snapshot(self) -> ClockSnapshot:
        """Return the clock state computed at a single instant."""

        system_today = date.today()
        with self._lock:
            offset = int(self._domain_offset_days)
        return ClockSnapshot(
            system_today=system_today,
            domain_today=system_today + timedelta(days=offset),
            domain_offset_days=offset,
        )
