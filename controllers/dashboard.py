from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from core.config import settings
from db.session import get_db
from helpers import cache_get, cache_set, shop_cache_key
from queries.orders import dashboard_stats, list_orders, risk_by_country
from schemas.responses import ApiResponse
from services.order_mapper import dashboard_row, order_to_out

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("/summary", response_model=ApiResponse[dict])
def dashboard_summary(
    request: Request,
    shop: str = Query(..., min_length=1),
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
):
    """
    Dashboard summary (DB-driven, last `days` days):
    - total / risky (medium+high) orders, risk percentage
    - average risk score
    - counts by risk level
    - breakdown by shipping country
    Uses TTL cache to avoid recomputing often.
    """
    cache = request.app.state.ttl_cache
    cache_key = shop_cache_key("summary", shop, days=days)
    cached = cache_get(cache, cache_key)
    if cached is not None:
        return ApiResponse(data=cached)

    data = dashboard_stats(db, shop, days=days)
    data["regions"] = risk_by_country(db, shop, days=days)

    cache_set(cache, cache_key, data, ttl_seconds=settings.DASHBOARD_TTL_SECONDS)
    return ApiResponse(data=data)


@router.get("/orders", response_model=ApiResponse[list[dict]])
def dashboard_orders(
    shop: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=100),
    skip: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Recent orders formatted for the dashboard table (same shape as realtime new_order)."""
    rows = list_orders(db, shop, limit=limit, skip=skip)
    return ApiResponse(data=[dashboard_row(order_to_out(o)) for o in rows], meta={"limit": limit, "skip": skip})
