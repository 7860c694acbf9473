"""
Analytics API (chart data).

Team members get their own totals; admins get every sale plus the
per-team-member series.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from remedy_tracker import schemas
from remedy_tracker.analytics import build_analytics
from remedy_tracker.api.http_auth import require_user
from remedy_tracker.app_bootstrap.dependencies import get_sales_store_dep
from remedy_tracker.store.records import SaleQuery, UserRecord
from remedy_tracker.store.sales import SalesStore


router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=schemas.AnalyticsResponse)
def get_analytics(
    user: UserRecord = Depends(require_user),
    sales: SalesStore = Depends(get_sales_store_dep),
) -> schemas.AnalyticsResponse:
    data = build_analytics(sales.list_sales(SaleQuery.for_user(user)), user)
    return schemas.AnalyticsResponse(**data)
