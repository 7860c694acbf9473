"""
Control API (admin only): the domain clock.

The domain day (system day + offset) is what dashboard buckets and the
reminder gate treat as "today". Moving it forward lets day-boundary behavior
be checked without waiting for real time. The system clock is never changed.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from remedy_tracker import schemas
from remedy_tracker.app_bootstrap.dependencies import get_clock_service_dep
from remedy_tracker.clock import ClockService


router = APIRouter(prefix="/control", tags=["control"])
logger = logging.getLogger(__name__)


def _build_clock_response(clock: ClockService) -> schemas.ClockSnapshotResponse:
    snap = clock.snapshot()
    return schemas.ClockSnapshotResponse(
        system_today=snap.system_today,
        domain_today=snap.domain_today,
        domain_offset_days=snap.domain_offset_days,
    )


@router.get("/time", response_model=schemas.ClockSnapshotResponse)
def control_time(clock: ClockService = Depends(get_clock_service_dep)) -> schemas.ClockSnapshotResponse:
    return _build_clock_response(clock)


@router.post("/time/advance", response_model=schemas.ClockSnapshotResponse)
def control_time_advance(
    request: schemas.ClockAdvanceRequest,
    clock: ClockService = Depends(get_clock_service_dep),
) -> schemas.ClockSnapshotResponse:
    """Move the domain day forward by `days` (>= 1)."""

    try:
        offset = clock.advance_domain_days(days=request.days)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    logger.info("domain clock advanced days=%s offset=%s", request.days, offset)
    return _build_clock_response(clock)


@router.post("/time/reset", response_model=schemas.ClockSnapshotResponse)
def control_time_reset(clock: ClockService = Depends(get_clock_service_dep)) -> schemas.ClockSnapshotResponse:
    clock.reset_domain_offset()
    logger.info("domain clock reset")
    return _build_clock_response(clock)
