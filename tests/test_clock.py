from __future__ import annotations

from datetime import timedelta

import pytest

from remedy_tracker.clock import ClockService


def test_domain_day_follows_offset():
    clock = ClockService()
    assert clock.snapshot().domain_offset_days == 0

    assert clock.advance_domain_days(days=2) == 2
    assert clock.advance_domain_days(days=1) == 3

    snap = clock.snapshot()
    assert snap.domain_today == snap.system_today + timedelta(days=3)

    clock.reset_domain_offset()
    assert clock.snapshot().domain_offset_days == 0


@pytest.mark.parametrize("days", [0, -1])
def test_offset_only_moves_forward(days):
    with pytest.raises(ValueError):
        ClockService().advance_domain_days(days=days)
