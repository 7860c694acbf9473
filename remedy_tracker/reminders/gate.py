"""
Reminder dedup gate.

Decides, for one sale and one calendar day, whether the outbound reminder
message should be sent, sends it, and records the attempt.

State per sale per day:
    NotDue -> (days_remaining == REMINDER_LEAD_DAYS) -> Pending
    Pending -> claim won -> send -> Sent (stamp kept) | Failed (stamp released)
    Sent is terminal for that calendar day only (the stamp is compared with today's ISO date).

Policy:
    - The day is claimed with a conditional write before sending, so concurrent
      evaluators of the same sale cannot both send.
    - A failed send gives the day back so a later evaluation may retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from remedy_tracker.expiry import REMINDER_LEAD_DAYS, classify, format_end_date
from remedy_tracker.messaging import MessagingGateway
from remedy_tracker.runtime.event_stream import NOTIFY_ERROR, NOTIFY_SUCCESS, Notifier
from remedy_tracker.store.records import SaleRecord
from remedy_tracker.store.sales import SalesStore


logger = logging.getLogger(__name__)

# --- skip reasons ---
SKIP_NO_END_DATE = "no_end_date"
SKIP_NO_PHONE = "no_phone"
SKIP_NOT_DUE = "not_due"
SKIP_ALREADY_SENT_TODAY = "already_sent_today"
SKIP_CLAIM_LOST = "claim_lost"


@dataclass(frozen=True)
class Attempted:
    """A send was attempted today (delivered tells which way it went)."""

    sale_id: str
    delivered: bool


@dataclass(frozen=True)
class Skipped:
    """No send was attempted."""

    sale_id: str
    reason: str


GateResult = Union[Attempted, Skipped]


def reminder_params(sale: SaleRecord) -> list[str]:
    """Ordered template parameters: patient, medicine, end date (M/D/YYYY)."""

    return [sale.patient_name, sale.medicine_name, format_end_date(sale.dosage_end_date)]


class ReminderGate:
    """At-most-once-per-day reminder sender."""

    def __init__(
        self,
        *,
        sales_store: SalesStore,
        messenger: MessagingGateway,
        notifier: Notifier,
        template_name: str,
        lead_days: int = REMINDER_LEAD_DAYS,
    ) -> None:
        self._sales = sales_store
        self._messenger = messenger
        self._notifier = notifier
        self.template_name = str(template_name)
        self.lead_days = int(lead_days)

    def maybe_send_reminder(self, sale: SaleRecord, today: date) -> GateResult:
        """
        Evaluate the gate for one sale on `today`.

        Returns:
            Attempted(delivered=True|False) when a send was tried, Skipped(reason) otherwise.
        """

        today_iso = today.isoformat()

        # --- classification (missing end date is excluded, not an error) ---
        status = classify(today, sale.dosage_end_date)
        if status is None:
            return Skipped(sale_id=sale.id, reason=SKIP_NO_END_DATE)
        if not str(sale.phone_number or "").strip():
            return Skipped(sale_id=sale.id, reason=SKIP_NO_PHONE)
        if status.days_remaining != self.lead_days:
            return Skipped(sale_id=sale.id, reason=SKIP_NOT_DUE)

        # --- cheap check on the snapshot we were given ---
        if sale.last_reminder_sent == today_iso:
            return Skipped(sale_id=sale.id, reason=SKIP_ALREADY_SENT_TODAY)

        # --- authoritative check: conditional write on the store ---
        claim = self._sales.claim_reminder_day(sale.id, day_iso=today_iso)
        if claim is None:
            logger.info("reminder claim lost sale_id=%s day=%s", sale.id, today_iso)
            return Skipped(sale_id=sale.id, reason=SKIP_CLAIM_LOST)

        # --- send ---
        ack: Optional[dict] = None
        try:
            ack = self._messenger.send_template_message(
                sale.phone_number,
                self.template_name,
                reminder_params(sale),
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("reminder send raised sale_id=%s error=%s", sale.id, str(exc))
            ack = None

        if ack is None:
            # --- failure: give the day back so a later evaluation can retry ---
            released = self._sales.release_reminder_day(claim)
            logger.warning(
                "reminder send failed sale_id=%s patient=%s released=%s",
                sale.id,
                sale.patient_name,
                released,
            )
            self._notifier.notify(
                f"Failed to send WhatsApp reminder to {sale.patient_name}.",
                NOTIFY_ERROR,
                sale_id=sale.id,
            )
            return Attempted(sale_id=sale.id, delivered=False)

        logger.info("reminder sent sale_id=%s day=%s", sale.id, today_iso)
        self._notifier.notify(
            f"WhatsApp reminder sent to {sale.patient_name}.",
            NOTIFY_SUCCESS,
            sale_id=sale.id,
        )
        return Attempted(sale_id=sale.id, delivered=True)
