"""
Medicine catalog API.

Every signed-in user can list medicines (sale entry needs them);
create / update / delete require the admin role.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from remedy_tracker import schemas
from remedy_tracker.api.errors import to_http_exception
from remedy_tracker.api.http_auth import require_admin
from remedy_tracker.app_bootstrap.dependencies import get_event_stream_dep, get_medicine_store_dep
from remedy_tracker.errors import RemedyTrackerError
from remedy_tracker.runtime.event_stream import NOTIFY_ERROR, EventStream
from remedy_tracker.store.catalog import MedicineStore


router = APIRouter(prefix="/medicines", tags=["medicines"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[schemas.MedicineResponse])
def list_medicines(medicines: MedicineStore = Depends(get_medicine_store_dep)) -> List[schemas.MedicineResponse]:
    return [schemas.MedicineResponse.from_record(m) for m in medicines.list_medicines()]


@router.post(
    "",
    response_model=schemas.MedicineResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_medicine(
    request: schemas.MedicineRequest,
    medicines: MedicineStore = Depends(get_medicine_store_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> schemas.MedicineResponse:
    try:
        medicine = medicines.create_medicine(name=request.name, price=request.price, image_url=request.image_url)
    except RemedyTrackerError as exc:
        events.notify(f"Failed to add medicine: {exc}", NOTIFY_ERROR)
        raise to_http_exception(exc) from exc

    events.notify("Medicine added successfully!", medicine_id=medicine.id)
    return schemas.MedicineResponse.from_record(medicine)


@router.put("/{medicine_id}", response_model=schemas.MedicineResponse, dependencies=[Depends(require_admin)])
def update_medicine(
    medicine_id: str,
    request: schemas.MedicineRequest,
    medicines: MedicineStore = Depends(get_medicine_store_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> schemas.MedicineResponse:
    """
    Replace a medicine's name / price / image.

    Existing sales keep the medicine name and price they were recorded with.
    """

    try:
        medicine = medicines.update_medicine(
            medicine_id,
            name=request.name,
            price=request.price,
            image_url=request.image_url,
        )
    except RemedyTrackerError as exc:
        events.notify(f"Failed to update medicine: {exc}", NOTIFY_ERROR, medicine_id=medicine_id)
        raise to_http_exception(exc) from exc

    events.notify("Medicine updated successfully!", medicine_id=medicine.id)
    return schemas.MedicineResponse.from_record(medicine)


@router.delete("/{medicine_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_medicine(
    medicine_id: str,
    medicines: MedicineStore = Depends(get_medicine_store_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> Response:
    try:
        medicines.delete_medicine(medicine_id)
    except RemedyTrackerError as exc:
        events.notify(f"Failed to delete medicine: {exc}", NOTIFY_ERROR, medicine_id=medicine_id)
        raise to_http_exception(exc) from exc

    logger.info("medicine deleted id=%s", medicine_id)
    events.notify("Medicine deleted.", medicine_id=medicine_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
