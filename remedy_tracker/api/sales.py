"""
Sales API.

Endpoints:
    - GET    /api/sales/dashboard?filter=...  : one expiry bucket
    - GET    /api/sales/customers?q=...       : customer list / search
    - POST   /api/sales                       : record a sale
    - GET    /api/sales/{sale_id}             : one sale with its history
    - POST   /api/sales/{sale_id}/reorder     : new dosage term
    - DELETE /api/sales/{sale_id}             : delete a sale (admin)

Team members only see and change their own sales; admins see everything.
Write endpoints publish a success or error notification on the event stream.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from remedy_tracker import schemas
from remedy_tracker.api.errors import to_http_exception
from remedy_tracker.api.http_auth import require_admin, require_user
from remedy_tracker.app_bootstrap.dependencies import (
    get_clock_service_dep,
    get_event_stream_dep,
    get_medicine_store_dep,
    get_sales_store_dep,
)
from remedy_tracker.clock import ClockService
from remedy_tracker.errors import PermissionDeniedError, RemedyTrackerError
from remedy_tracker.runtime.event_stream import NOTIFY_ERROR, EventStream
from remedy_tracker.store.catalog import MedicineStore
from remedy_tracker.store.records import SaleQuery, SaleRecord, UserRecord
from remedy_tracker.store.sales import SalesStore
from remedy_tracker.views import FILTER_EXPIRING_SOON, filter_dashboard, search_customers


router = APIRouter(prefix="/sales", tags=["sales"])
logger = logging.getLogger(__name__)


def _load_visible_sale(sales: SalesStore, sale_id: str, user: UserRecord) -> SaleRecord:
    """Return the sale when `user` may see it."""

    sale = sales.get_sale(sale_id)
    if not SaleQuery.for_user(user).matches(sale):
        raise PermissionDeniedError("this sale belongs to another team member")
    return sale


@router.get("/dashboard", response_model=List[schemas.SaleResponse])
def dashboard(
    filter_name: str = Query(FILTER_EXPIRING_SOON, alias="filter", description="expiring_5_days / expired_today / already_expired"),
    user: UserRecord = Depends(require_user),
    sales: SalesStore = Depends(get_sales_store_dep),
    clock: ClockService = Depends(get_clock_service_dep),
) -> List[schemas.SaleResponse]:
    """Sales in one expiry bucket, ascending by dosage end date."""

    today = clock.today()
    try:
        items = filter_dashboard(sales.list_sales(SaleQuery.for_user(user)), filter_name, today)
    except RemedyTrackerError as exc:
        raise to_http_exception(exc) from exc
    return [schemas.SaleResponse.from_record(s, today=today) for s in items]


@router.get("/customers", response_model=List[schemas.SaleResponse])
def customers(
    q: str = Query("", description="Patient name or phone number"),
    user: UserRecord = Depends(require_user),
    sales: SalesStore = Depends(get_sales_store_dep),
    clock: ClockService = Depends(get_clock_service_dep),
) -> List[schemas.SaleResponse]:
    today = clock.today()
    items = search_customers(sales.list_sales(SaleQuery.for_user(user)), q)
    return [schemas.SaleResponse.from_record(s, today=today) for s in items]


@router.post("", response_model=schemas.SaleResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    request: schemas.SaleCreateRequest,
    user: UserRecord = Depends(require_user),
    sales: SalesStore = Depends(get_sales_store_dep),
    medicines: MedicineStore = Depends(get_medicine_store_dep),
    clock: ClockService = Depends(get_clock_service_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> schemas.SaleResponse:
    """Record a sale for the signed-in user."""

    try:
        medicine = medicines.get_medicine(request.medicine_id)
        sale = sales.create_sale(
            patient_name=request.patient_name,
            phone_number=request.phone_number,
            whatsapp_number=request.whatsapp_number,
            medicine=medicine,
            price=request.price,
            optional_charges=request.optional_charges,
            purchase_date=request.purchase_date,
            duration=request.duration,
            actor=user,
        )
    except RemedyTrackerError as exc:
        logger.warning("sale create failed uid=%s error=%s", user.uid, str(exc))
        events.notify(f"Failed to add sale: {exc}", NOTIFY_ERROR)
        raise to_http_exception(exc) from exc

    events.notify("Sale added successfully!", sale_id=sale.id)
    return schemas.SaleResponse.from_record(sale, today=clock.today())


@router.get("/{sale_id}", response_model=schemas.SaleResponse)
def get_sale(
    sale_id: str,
    user: UserRecord = Depends(require_user),
    sales: SalesStore = Depends(get_sales_store_dep),
    clock: ClockService = Depends(get_clock_service_dep),
) -> schemas.SaleResponse:
    try:
        sale = _load_visible_sale(sales, sale_id, user)
    except RemedyTrackerError as exc:
        raise to_http_exception(exc) from exc
    return schemas.SaleResponse.from_record(sale, today=clock.today())


@router.post("/{sale_id}/reorder", response_model=schemas.SaleResponse)
def reorder(
    sale_id: str,
    request: schemas.ReorderRequest,
    user: UserRecord = Depends(require_user),
    sales: SalesStore = Depends(get_sales_store_dep),
    clock: ClockService = Depends(get_clock_service_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> schemas.SaleResponse:
    """
    Start a new dosage term for an existing sale.

    The new term is appended to the history; the end date is recomputed
    with the same month arithmetic as sale entry.
    """

    try:
        _load_visible_sale(sales, sale_id, user)
        sale = sales.reorder(
            sale_id,
            purchase_date=request.purchase_date,
            duration=request.duration,
            updated_by=user.name,
        )
    except RemedyTrackerError as exc:
        logger.warning("reorder failed sale_id=%s error=%s", sale_id, str(exc))
        events.notify(f"Failed to reorder: {exc}", NOTIFY_ERROR, sale_id=sale_id)
        raise to_http_exception(exc) from exc

    events.notify("Reorder confirmed successfully.", sale_id=sale.id)
    return schemas.SaleResponse.from_record(sale, today=clock.today())


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(
    sale_id: str,
    user: UserRecord = Depends(require_admin),
    sales: SalesStore = Depends(get_sales_store_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> Response:
    try:
        sales.delete_sale(sale_id)
    except RemedyTrackerError as exc:
        events.notify(f"Failed to delete sale: {exc}", NOTIFY_ERROR, sale_id=sale_id)
        raise to_http_exception(exc) from exc

    logger.info("sale deleted by uid=%s sale_id=%s", user.uid, sale_id)
    events.notify("Sale deleted.", sale_id=sale_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
