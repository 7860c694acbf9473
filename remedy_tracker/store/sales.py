"""
Sales store (`sales` + `sale_history`) with live subscriptions.

Purpose:
    - Create sales, reorder (append history + overwrite the current term), query, delete.
    - Push a fresh snapshot to every matching subscriber after each committed change.
    - Provide the atomic reminder-day claim used by the reminder gate.

Policy:
    - History rows are only ever inserted. `seq` starts at 1 and grows by 1 per reorder.
    - The reminder claim is one conditional UPDATE, so two evaluators racing on the
      same record and day cannot both win.
    - Reminder claim/release writes do not publish snapshots.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import selectinload

from remedy_tracker.errors import NotFoundError, ValidationError
from remedy_tracker.expiry import MAX_DURATION_MONTHS, compute_dosage_end_date, to_calendar_date
from remedy_tracker.store.db import Database
from remedy_tracker.store.models import Sale, SaleHistoryEntry
from remedy_tracker.store.records import HistoryEntry, MedicineRecord, SaleQuery, SaleRecord, UserRecord


logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[SaleRecord]], None]


@dataclass(frozen=True)
class ReminderClaim:
    """A won reminder-day claim (previous stamp kept for release)."""

    sale_id: str
    day_iso: str
    previous_stamp: Optional[str]


@dataclass
class _Subscription:
    query: SaleQuery
    callback: SnapshotCallback


def _to_sale_record(row: Sale) -> SaleRecord:
    return SaleRecord(
        id=str(row.id),
        patient_name=str(row.patient_name),
        phone_number=str(row.phone_number),
        whatsapp_number=str(row.whatsapp_number),
        medicine_id=str(row.medicine_id),
        medicine_name=str(row.medicine_name),
        price=float(row.price),
        optional_charges=float(row.optional_charges or 0.0),
        total_amount=float(row.total_amount),
        purchase_date=row.purchase_date,
        duration=int(row.duration),
        dosage_end_date=row.dosage_end_date,
        team_member_id=str(row.team_member_id),
        team_member_name=str(row.team_member_name),
        created_at=int(row.created_at),
        last_reminder_sent=(str(row.last_reminder_sent) if row.last_reminder_sent else None),
        history=tuple(
            HistoryEntry(
                seq=int(h.seq),
                purchase_date=h.purchase_date,
                duration=int(h.duration),
                dosage_end_date=h.dosage_end_date,
                updated_by=str(h.updated_by),
                updated_at=int(h.updated_at),
            )
            for h in sorted(row.history, key=lambda h: int(h.seq))
        ),
    )


def _require_date(value, field_name: str) -> date:
    d = to_calendar_date(value)
    if d is None:
        raise ValidationError(f"{field_name} must be a valid date")
    return d


def _require_duration(value) -> int:
    try:
        months = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("duration must be an integer") from exc
    if months < 1:
        raise ValidationError("duration must be at least 1 month")
    if months > MAX_DURATION_MONTHS:
        raise ValidationError(f"duration must be at most {MAX_DURATION_MONTHS} months")
    return months


def _end_date(start: date, months: int) -> date:
    try:
        return compute_dosage_end_date(start, months)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class SalesStore:
    """`sales` collection."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._subs_lock = threading.Lock()
        self._subs: dict[int, _Subscription] = {}
        self._next_sub_id = 1

    # --- queries ---

    def get_sale(self, sale_id: str) -> SaleRecord:
        """Return a sale or raise NotFoundError."""

        with self._db.session_scope() as session:
            row = session.get(Sale, str(sale_id), options=[selectinload(Sale.history)])
            if row is None:
                raise NotFoundError(f"sale not found: {sale_id}")
            return _to_sale_record(row)

    def list_sales(self, query: SaleQuery | None = None) -> list[SaleRecord]:
        """Return the sales matching the equality query (newest first)."""

        q = query or SaleQuery()
        with self._db.session_scope() as session:
            stmt = select(Sale).options(selectinload(Sale.history))
            if q.team_member_id is not None:
                stmt = stmt.where(Sale.team_member_id == str(q.team_member_id))
            stmt = stmt.order_by(Sale.created_at.desc(), Sale.id.asc())
            rows = session.execute(stmt).scalars().all()
            return [_to_sale_record(r) for r in rows]

    # --- writes ---

    def create_sale(
        self,
        *,
        patient_name: str,
        phone_number: str,
        whatsapp_number: Optional[str],
        medicine: MedicineRecord,
        price: Optional[float],
        optional_charges: float,
        purchase_date,
        duration,
        actor: UserRecord,
    ) -> SaleRecord:
        """
        Record a sale and its first history entry.

        - whatsapp_number falls back to phone_number.
        - price falls back to the medicine's catalog price.
        """

        # --- normalize inputs ---
        name = str(patient_name or "").strip()
        phone = str(phone_number or "").strip()
        if not name:
            raise ValidationError("patient name is required")
        if not phone:
            raise ValidationError("phone number is required")
        whatsapp = str(whatsapp_number or "").strip() or phone
        unit_price = float(medicine.price if price is None else price)
        charges = float(optional_charges or 0.0)
        if unit_price < 0 or charges < 0:
            raise ValidationError("price and charges must be >= 0")
        start = _require_date(purchase_date, "purchase_date")
        months = _require_duration(duration)
        end = _end_date(start, months)
        now_ts = int(time.time())

        # --- sale + first history entry in one transaction ---
        with self._db.session_scope() as session:
            row = Sale(
                id=str(uuid.uuid4()),
                patient_name=name,
                phone_number=phone,
                whatsapp_number=whatsapp,
                medicine_id=str(medicine.id),
                medicine_name=str(medicine.name),
                price=unit_price,
                optional_charges=charges,
                total_amount=unit_price + charges,
                purchase_date=start,
                duration=months,
                dosage_end_date=end,
                team_member_id=str(actor.uid),
                team_member_name=str(actor.name),
                created_at=now_ts,
                last_reminder_sent=None,
            )
            row.history.append(
                SaleHistoryEntry(
                    seq=1,
                    purchase_date=start,
                    duration=months,
                    dosage_end_date=end,
                    updated_by=str(actor.name),
                    updated_at=now_ts,
                )
            )
            session.add(row)
            session.flush()
            record = _to_sale_record(row)

        logger.info("sale created id=%s team_member_id=%s end=%s", record.id, record.team_member_id, end.isoformat())
        self._publish()
        return record

    def reorder(self, sale_id: str, *, purchase_date, duration, updated_by: str) -> SaleRecord:
        """
        Start a new dosage term.

        Appends one history entry and overwrites purchase_date / duration /
        dosage_end_date. Earlier history rows are not touched.
        """

        start = _require_date(purchase_date, "purchase_date")
        months = _require_duration(duration)
        end = _end_date(start, months)
        now_ts = int(time.time())

        with self._db.session_scope() as session:
            row = session.get(Sale, str(sale_id))
            if row is None:
                raise NotFoundError(f"sale not found: {sale_id}")

            # --- next seq from the stored history ---
            max_seq = session.execute(
                select(func.max(SaleHistoryEntry.seq)).where(SaleHistoryEntry.sale_id == row.id)
            ).scalar_one_or_none()
            session.add(
                SaleHistoryEntry(
                    sale_id=row.id,
                    seq=int(max_seq or 0) + 1,
                    purchase_date=start,
                    duration=months,
                    dosage_end_date=end,
                    updated_by=str(updated_by or ""),
                    updated_at=now_ts,
                )
            )

            # --- overwrite the current term ---
            row.purchase_date = start
            row.duration = months
            row.dosage_end_date = end
            session.flush()
            session.expire(row, ["history"])
            record = _to_sale_record(row)

        logger.info("sale reordered id=%s end=%s history=%s", record.id, end.isoformat(), len(record.history))
        self._publish()
        return record

    def delete_sale(self, sale_id: str) -> None:
        """Delete a sale and its history."""

        with self._db.session_scope() as session:
            row = session.get(Sale, str(sale_id))
            if row is None:
                raise NotFoundError(f"sale not found: {sale_id}")
            session.delete(row)
        logger.info("sale deleted id=%s", sale_id)
        self._publish()

    # --- reminder claim ---

    def claim_reminder_day(self, sale_id: str, *, day_iso: str) -> Optional[ReminderClaim]:
        """
        Stamp `last_reminder_sent = day_iso` unless it already holds day_iso.

        Returns:
            ReminderClaim when this caller won the day, None otherwise
            (already stamped, or the sale no longer exists).
        """

        day = str(day_iso)
        with self._db.session_scope() as session:
            previous = session.execute(
                select(Sale.last_reminder_sent).where(Sale.id == str(sale_id))
            ).scalar_one_or_none()
            result = session.execute(
                update(Sale)
                .where(Sale.id == str(sale_id))
                .where(or_(Sale.last_reminder_sent.is_(None), Sale.last_reminder_sent != day))
                .values(last_reminder_sent=day)
            )
            won = int(result.rowcount or 0) > 0

        if not won:
            return None
        return ReminderClaim(sale_id=str(sale_id), day_iso=day, previous_stamp=(str(previous) if previous else None))

    def release_reminder_day(self, claim: ReminderClaim) -> bool:
        """
        Undo a claim after a failed send (only while the stamp is still ours).

        Returns:
            True when the stamp was restored.
        """

        with self._db.session_scope() as session:
            result = session.execute(
                update(Sale)
                .where(Sale.id == str(claim.sale_id))
                .where(Sale.last_reminder_sent == str(claim.day_iso))
                .values(last_reminder_sent=claim.previous_stamp)
            )
            return int(result.rowcount or 0) > 0

    # --- live subscription ---

    def subscribe(self, query: SaleQuery, callback: SnapshotCallback, *, emit_initial: bool = True) -> Callable[[], None]:
        """
        Register a live query.

        The callback receives the full matching snapshot now (emit_initial) and
        after every committed create/reorder/delete.

        Returns:
            A function that cancels the subscription (safe to call twice).
        """

        with self._subs_lock:
            sub_id = self._next_sub_id
            self._next_sub_id += 1
            self._subs[sub_id] = _Subscription(query=query, callback=callback)

        if emit_initial:
            self._deliver(sub_id, _Subscription(query=query, callback=callback))

        def _unsubscribe() -> None:
            with self._subs_lock:
                self._subs.pop(sub_id, None)

        return _unsubscribe

    def _publish(self) -> None:
        """Deliver a fresh snapshot to every subscriber."""

        with self._subs_lock:
            subs = list(self._subs.items())
        for sub_id, sub in subs:
            self._deliver(sub_id, sub)

    def _deliver(self, sub_id: int, sub: _Subscription) -> None:
        try:
            snapshot = self.list_sales(sub.query)
            sub.callback(snapshot)
        except Exception:  # noqa: BLE001
            # --- a failing subscriber must not break the write path ---
            logger.exception("sales subscription callback failed sub_id=%s", sub_id)
