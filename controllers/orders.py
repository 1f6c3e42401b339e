from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from core.logger import log
from db.session import get_db
from helpers import cache_clear_shop
from queries.orders import get_order, list_orders
from queries.risk import record_feedback, set_review_status
from queries.store import get_store_config
from schemas.order import FeedbackIn, OrderOut, ReviewIn
from schemas.responses import ApiResponse
from services.order_mapper import order_to_out

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=ApiResponse[list[OrderOut]])
def get_orders(
    shop: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=500),
    skip: int = Query(0, ge=0),
    risk_level: Optional[Literal["low", "medium", "high"]] = Query(None),
    status: Optional[Literal["approved", "pending", "declined", "on_hold"]] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Scored orders of one shop, newest first.
    Optional filters on risk level and recommended status.
    """
    rows = list_orders(db, shop, limit=limit, skip=skip, risk_level=risk_level, status=status)
    return ApiResponse(
        data=[order_to_out(o) for o in rows],
        meta={"limit": limit, "skip": skip, "count": len(rows)},
    )


def _get_or_404(db: Session, shop: str, order_id: str):
    order = get_order(db, shop, order_id)
    if not order:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found for {shop}")
    if not order.risk:
        raise HTTPException(status_code=409, detail=f"Order {order_id} has no risk analysis")
    return order


@router.get("/{order_id}", response_model=ApiResponse[OrderOut])
def get_one_order(
    order_id: str,
    shop: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    order = get_order(db, shop, order_id)
    if not order:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found for {shop}")
    return ApiResponse(data=order_to_out(order))


@router.post("/{order_id}/feedback", response_model=ApiResponse[OrderOut])
def submit_feedback(
    order_id: str,
    body: FeedbackIn,
    request: Request,
    shop: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """
    Merchant feedback on a verdict ("correct" / "incorrect" + optional level).
    Keeps the computed score and marks the order reviewed.
    Rejected (403) when the shop turned feedback off in its AI settings.
    """
    config = get_store_config(db, shop)
    if not config.ai_settings.enable_feedback:
        raise HTTPException(status_code=403, detail="Feedback is disabled for this shop")

    order = _get_or_404(db, shop, order_id)
    record_feedback(
        db,
        risk=order.risk,
        user_feedback=body.user_feedback,
        user_assigned_level=body.user_assigned_level,
    )

    try:
        cache_clear_shop(request.app.state.ttl_cache, shop)
    except Exception as e:
        log.debug("TTL cache clear skipped for %s: %s", shop, e)

    return ApiResponse(data=order_to_out(get_order(db, shop, order_id)))


@router.post("/{order_id}/review", response_model=ApiResponse[OrderOut])
def review_order(
    order_id: str,
    body: ReviewIn,
    request: Request,
    shop: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """
    Explicit re-review: set the order status by hand (e.g. release an on_hold order).
    """
    order = _get_or_404(db, shop, order_id)
    set_review_status(db, risk=order.risk, status=body.status)

    try:
        cache_clear_shop(request.app.state.ttl_cache, shop)
    except Exception as e:
        log.debug("TTL cache clear skipped for %s: %s", shop, e)

    return ApiResponse(data=order_to_out(get_order(db, shop, order_id)))
