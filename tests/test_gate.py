from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date

from remedy_tracker.reminders.gate import (
    SKIP_ALREADY_SENT_TODAY,
    SKIP_CLAIM_LOST,
    SKIP_NO_END_DATE,
    SKIP_NO_PHONE,
    SKIP_NOT_DUE,
    Attempted,
    ReminderGate,
    Skipped,
    reminder_params,
)
from remedy_tracker.reminders.service import summarize
from remedy_tracker.runtime.event_stream import NOTIFY_ERROR, NOTIFY_SUCCESS

from conftest import FakeMessenger, RecordingNotifier


TODAY = date(2024, 6, 10)


def _gate(sales_store, messenger, notifier):
    return ReminderGate(
        sales_store=sales_store,
        messenger=messenger,
        notifier=notifier,
        template_name="med_reminder",
    )


def test_sends_on_lead_day_and_stamps_today(sales_store, make_sale):
    sale = make_sale(purchase_date=date(2024, 5, 12))
    assert sale.dosage_end_date == date(2024, 6, 12)
    messenger, notifier = FakeMessenger(), RecordingNotifier()

    result = _gate(sales_store, messenger, notifier).maybe_send_reminder(sale, TODAY)

    assert result == Attempted(sale_id=sale.id, delivered=True)
    assert messenger.calls == [("919800000001", "med_reminder", ["Ravi Kumar", "Amoxicillin", "6/12/2024"])]
    assert sales_store.get_sale(sale.id).last_reminder_sent == "2024-06-10"
    assert notifier.events[-1]["type"] == NOTIFY_SUCCESS
    assert "Ravi Kumar" in notifier.events[-1]["message"]


def test_skips_when_already_stamped_today(sales_store, make_sale):
    sale = make_sale()
    messenger, notifier = FakeMessenger(), RecordingNotifier()
    gate = _gate(sales_store, messenger, notifier)

    gate.maybe_send_reminder(sale, TODAY)
    stamped = sales_store.get_sale(sale.id)
    result = gate.maybe_send_reminder(stamped, TODAY)

    assert result == Skipped(sale_id=sale.id, reason=SKIP_ALREADY_SENT_TODAY)
    assert len(messenger.calls) == 1


def test_stale_snapshot_loses_the_claim(sales_store, make_sale):
    sale = make_sale()
    messenger = FakeMessenger()
    gate = _gate(sales_store, messenger, RecordingNotifier())

    # both evaluations see the unstamped snapshot
    first = gate.maybe_send_reminder(sale, TODAY)
    second = gate.maybe_send_reminder(sale, TODAY)

    assert isinstance(first, Attempted)
    assert second == Skipped(sale_id=sale.id, reason=SKIP_CLAIM_LOST)
    assert len(messenger.calls) == 1


def test_concurrent_evaluators_send_once(sales_store, make_sale):
    sale = make_sale()
    messenger = FakeMessenger()
    gate = _gate(sales_store, messenger, RecordingNotifier())
    results = []
    lock = threading.Lock()

    def _run():
        r = gate.maybe_send_reminder(sale, TODAY)
        with lock:
            results.append(r)

    threads = [threading.Thread(target=_run) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    summary = summarize(results)
    assert summary.sent == 1
    assert summary.skipped == 3
    assert len(messenger.calls) == 1


def test_failed_send_releases_the_day(sales_store, make_sale):
    sale = make_sale()
    messenger, notifier = FakeMessenger(fail=True), RecordingNotifier()
    gate = _gate(sales_store, messenger, notifier)

    result = gate.maybe_send_reminder(sale, TODAY)

    assert result == Attempted(sale_id=sale.id, delivered=False)
    assert sales_store.get_sale(sale.id).last_reminder_sent is None
    assert notifier.events[-1]["type"] == NOTIFY_ERROR
    assert notifier.events[-1]["message"] == "Failed to send WhatsApp reminder to Ravi Kumar."

    # a later evaluation the same day may retry
    messenger.fail = False
    retry = gate.maybe_send_reminder(sales_store.get_sale(sale.id), TODAY)
    assert retry == Attempted(sale_id=sale.id, delivered=True)
    assert len(messenger.calls) == 2


def test_failed_send_restores_previous_stamp(sales_store, make_sale):
    sale = make_sale()
    sales_store.claim_reminder_day(sale.id, day_iso="2024-06-09")
    gate = _gate(sales_store, FakeMessenger(raise_error=True), RecordingNotifier())

    result = gate.maybe_send_reminder(sales_store.get_sale(sale.id), TODAY)

    assert result == Attempted(sale_id=sale.id, delivered=False)
    assert sales_store.get_sale(sale.id).last_reminder_sent == "2024-06-09"


def test_yesterdays_stamp_does_not_block_today(sales_store, make_sale):
    sale = make_sale(purchase_date=date(2024, 5, 13))
    sales_store.claim_reminder_day(sale.id, day_iso="2024-06-10")
    messenger = FakeMessenger()

    result = _gate(sales_store, messenger, RecordingNotifier()).maybe_send_reminder(
        sales_store.get_sale(sale.id), date(2024, 6, 11)
    )

    assert isinstance(result, Attempted)
    assert sales_store.get_sale(sale.id).last_reminder_sent == "2024-06-11"


def test_not_due_and_missing_fields_are_skipped(sales_store, make_sale):
    messenger = FakeMessenger()
    gate = _gate(sales_store, messenger, RecordingNotifier())
    sale = make_sale()

    assert gate.maybe_send_reminder(sale, date(2024, 6, 9)).reason == SKIP_NOT_DUE
    assert gate.maybe_send_reminder(sale, date(2024, 6, 11)).reason == SKIP_NOT_DUE

    no_end = replace(sale, dosage_end_date=None)
    assert gate.maybe_send_reminder(no_end, TODAY).reason == SKIP_NO_END_DATE

    no_phone = replace(sale, phone_number="")
    assert gate.maybe_send_reminder(no_phone, TODAY).reason == SKIP_NO_PHONE

    assert messenger.calls == []


def test_reminder_params_order(make_sale):
    sale = make_sale(patient_name="Meera", purchase_date=date(2024, 10, 3), duration=2)
    assert reminder_params(sale) == ["Meera", "Amoxicillin", "12/3/2024"]
