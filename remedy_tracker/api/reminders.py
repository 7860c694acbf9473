"""
Reminder API.

POST /api/reminders/evaluate runs the reminder gate over the caller's sales
(all sales for an admin). Safe to call repeatedly: a sale already reminded
today is skipped.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from remedy_tracker import schemas
from remedy_tracker.api.http_auth import require_user
from remedy_tracker.app_bootstrap.dependencies import get_reminder_service_dep
from remedy_tracker.reminders.gate import Attempted
from remedy_tracker.reminders.service import ReminderService, summarize
from remedy_tracker.store.records import SaleQuery, UserRecord


router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.post("/evaluate", response_model=schemas.ReminderEvaluateResponse)
def evaluate_reminders(
    user: UserRecord = Depends(require_user),
    service: ReminderService = Depends(get_reminder_service_dep),
) -> schemas.ReminderEvaluateResponse:
    """Evaluate the gate for every visible sale and report each outcome."""

    results = service.evaluate_query(SaleQuery.for_user(user))
    summary = summarize(results)

    items: list[schemas.ReminderResultResponse] = []
    for r in results:
        if isinstance(r, Attempted):
            items.append(schemas.ReminderResultResponse(sale_id=r.sale_id, attempted=True, delivered=r.delivered))
        else:
            items.append(schemas.ReminderResultResponse(sale_id=r.sale_id, attempted=False, reason=r.reason))

    return schemas.ReminderEvaluateResponse(
        evaluated=summary.evaluated,
        sent=summary.sent,
        failed=summary.failed,
        skipped=summary.skipped,
        results=items,
    )
