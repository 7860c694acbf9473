from __future__ import annotations

import threading
from datetime import date

import pytest

from remedy_tracker.clock import ClockService
from remedy_tracker.reminders.gate import ReminderGate
from remedy_tracker.reminders.service import ReminderService

from conftest import FakeMessenger, RecordingNotifier


class FixedClock(ClockService):
    def __init__(self, day: date) -> None:
        super().__init__()
        self.day = day

    def today(self) -> date:
        return self.day


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def service(sales_store, messenger):
    gate = ReminderGate(
        sales_store=sales_store,
        messenger=messenger,
        notifier=RecordingNotifier(),
        template_name="med_reminder",
    )
    return ReminderService(gate=gate, sales_store=sales_store, clock=FixedClock(date(2024, 6, 10)))


def test_tick_sends_due_reminders_once_per_day(service, make_sale, messenger):
    make_sale(patient_name="Due", purchase_date=date(2024, 5, 12))
    make_sale(patient_name="Later", purchase_date=date(2024, 5, 20))

    first = service.tick()
    second = service.tick()

    assert (first.evaluated, first.sent, first.skipped) == (2, 1, 1)
    assert (second.sent, second.failed) == (0, 0)
    assert [c[2][0] for c in messenger.calls] == ["Due"]


def test_live_subscription_evaluates_new_sales(service, make_sale, messenger):
    service.start()
    service.start()
    try:
        make_sale(patient_name="Live", purchase_date=date(2024, 5, 12))
    finally:
        service.stop()

    assert len(messenger.calls) == 1

    make_sale(patient_name="After stop", purchase_date=date(2024, 5, 12))
    assert len(messenger.calls) == 1


class BlockingMessenger(FakeMessenger):
    """Holds every send until `release` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def send_template_message(self, phone_number, template_name, params):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().send_template_message(phone_number, template_name, params)


def test_sales_writes_do_not_wait_on_the_gateway(sales_store, make_sale):
    messenger = BlockingMessenger()
    gate = ReminderGate(
        sales_store=sales_store,
        messenger=messenger,
        notifier=RecordingNotifier(),
        template_name="med_reminder",
    )
    service = ReminderService(gate=gate, sales_store=sales_store, clock=FixedClock(date(2024, 6, 10)))

    service.start()
    try:
        make_sale(patient_name="Due", purchase_date=date(2024, 5, 12))
        assert messenger.entered.wait(timeout=5)

        # the send for "Due" is still in flight while these writes return
        make_sale(patient_name="Other", purchase_date=date(2024, 5, 20))
        make_sale(patient_name="Another", purchase_date=date(2024, 5, 25))
        assert messenger.calls == []

        messenger.release.set()
        assert service.wait_idle(timeout=5)
    finally:
        messenger.release.set()
        service.stop()

    assert [c[2][0] for c in messenger.calls] == ["Due"]


def test_queued_snapshot_keeps_the_day_it_was_taken(sales_store, make_sale):
    messenger = BlockingMessenger()
    clock = FixedClock(date(2024, 6, 10))
    gate = ReminderGate(
        sales_store=sales_store,
        messenger=messenger,
        notifier=RecordingNotifier(),
        template_name="med_reminder",
    )
    service = ReminderService(gate=gate, sales_store=sales_store, clock=clock)

    service.start()
    try:
        make_sale(patient_name="Due", purchase_date=date(2024, 5, 12))
        assert messenger.entered.wait(timeout=5)
        make_sale(patient_name="Second", purchase_date=date(2024, 5, 12))
        clock.day = date(2024, 6, 11)

        messenger.release.set()
        assert service.wait_idle(timeout=5)
    finally:
        messenger.release.set()
        service.stop()

    assert [c[2][0] for c in messenger.calls] == ["Due", "Second"]
