"""
Reminder service.

Drives the reminder gate from two sources:
    - live snapshots of the `sales` collection (every committed change), and
    - a periodic sweep (tick), so a sale is evaluated on its lead day even if
      nothing touches it that day.

The gate is evaluated on whole snapshots; each evaluation is independent and
safe to repeat because the gate claims the day atomically.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

from remedy_tracker.clock import ClockService
from remedy_tracker.reminders.gate import Attempted, GateResult, ReminderGate, Skipped
from remedy_tracker.store.records import SaleQuery, SaleRecord
from remedy_tracker.store.sales import SalesStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepSummary:
    """Counts from one evaluation pass."""

    evaluated: int
    sent: int
    failed: int
    skipped: int


def summarize(results: Iterable[GateResult]) -> SweepSummary:
    """Fold gate results into counts."""

    evaluated = sent = failed = skipped = 0
    for r in results:
        evaluated += 1
        if isinstance(r, Attempted):
            if r.delivered:
                sent += 1
            else:
                failed += 1
        elif isinstance(r, Skipped):
            skipped += 1
    return SweepSummary(evaluated=evaluated, sent=sent, failed=failed, skipped=skipped)


class ReminderService:
    """
    Runs the gate over sales snapshots.

    Live snapshots are handed to one worker thread, so a sales write never
    waits on the messaging gateway. Only the newest pending snapshot is kept;
    an older one that has not started yet is replaced.
    """

    def __init__(self, *, gate: ReminderGate, sales_store: SalesStore, clock: ClockService) -> None:
        self._gate = gate
        self._sales = sales_store
        self._clock = clock
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None

        # --- snapshot worker state (guarded by _cond) ---
        self._cond = threading.Condition()
        self._pending: Optional[tuple[list[SaleRecord], date]] = None
        self._busy = False
        self._stopping = False
        self._worker: Optional[threading.Thread] = None

    def evaluate(self, sales: Iterable[SaleRecord], today: Optional[date] = None) -> list[GateResult]:
        """Evaluate the gate for every sale against `today` (default: the clock's today)."""

        day = today if today is not None else self._clock.today()
        return [self._gate.maybe_send_reminder(s, day) for s in list(sales)]

    def evaluate_query(self, query: SaleQuery) -> list[GateResult]:
        """Load the sales matching `query` and evaluate them."""

        return self.evaluate(self._sales.list_sales(query))

    def tick(self) -> SweepSummary:
        """
        Periodic sweep over every sale.

        Called from a worker thread by the periodic task.
        """

        summary = summarize(self.evaluate_query(SaleQuery()))
        if summary.sent or summary.failed:
            logger.info(
                "reminder sweep evaluated=%s sent=%s failed=%s",
                summary.evaluated,
                summary.sent,
                summary.failed,
            )
        return summary

    # --- live snapshots ---

    def _on_snapshot(self, snapshot: list[SaleRecord]) -> None:
        # runs on the writer's thread: queue only
        with self._cond:
            self._pending = (snapshot, self._clock.today())
            self._cond.notify_all()

    def _run_worker(self) -> None:
        while True:
            with self._cond:
                while self._pending is None and not self._stopping:
                    self._cond.wait()
                if self._pending is None:
                    return
                snapshot, today = self._pending
                self._pending = None
                self._busy = True
            try:
                summary = summarize(self.evaluate(snapshot, today))
                logger.debug(
                    "reminder snapshot evaluated=%s sent=%s failed=%s",
                    summary.evaluated,
                    summary.sent,
                    summary.failed,
                )
            except Exception:  # noqa: BLE001
                logger.exception("reminder snapshot evaluation failed")
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no snapshot is pending or running. Returns False on timeout."""

        with self._cond:
            return self._cond.wait_for(lambda: self._pending is None and not self._busy, timeout)

    def start(self) -> None:
        """Subscribe to live updates of every sale (repeated calls are ignored)."""

        with self._lock:
            if self._unsubscribe is not None:
                return
            with self._cond:
                self._stopping = False
            self._worker = threading.Thread(target=self._run_worker, name="reminder-snapshots", daemon=True)
            self._worker.start()
            # NOTE: no initial snapshot here; the first periodic sweep runs at startup.
            self._unsubscribe = self._sales.subscribe(SaleQuery(), self._on_snapshot, emit_initial=False)
        logger.info("reminder service subscribed to sales")

    def stop(self) -> None:
        """Cancel the live subscription and let the worker finish the pending snapshot."""

        with self._lock:
            unsubscribe = self._unsubscribe
            worker = self._worker
            self._unsubscribe = None
            self._worker = None
        if unsubscribe is None:
            return
        unsubscribe()
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        if worker is not None:
            worker.join()
        logger.info("reminder service unsubscribed from sales")
