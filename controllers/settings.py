from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from core.logger import log
from db.session import get_db
from helpers import cache_clear_shop
from queries.store import get_store_config, get_subscription_status, save_store_config
from schemas.responses import ApiResponse
from schemas.store import StoreConfig, SubscriptionStatus

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=ApiResponse[StoreConfig])
def read_settings(
    shop: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """
    Shop risk settings. First access creates the defaults
    (thresholds 75/50, all factors on, hold + flag high risk orders).
    """
    return ApiResponse(data=get_store_config(db, shop))


@router.put("", response_model=ApiResponse[StoreConfig])
def replace_settings(
    request: Request,
    config: StoreConfig,
    shop: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """
    Replace the whole configuration (merchant saved the settings page).
    Thresholds must satisfy high > medium (422 otherwise).
    """
    saved = save_store_config(db, shop, config)

    # thresholds changed -> cached dashboard numbers are stale
    try:
        cache_clear_shop(request.app.state.ttl_cache, shop)
    except Exception as e:
        # Cache is optional; don't break the save
        log.debug("TTL cache clear skipped for %s: %s", shop, e)

    return ApiResponse(data=saved)


@router.get("/subscription", response_model=ApiResponse[SubscriptionStatus])
def read_subscription(
    shop: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """Plan / trial status (read only here)."""
    status = get_subscription_status(db, shop)
    return ApiResponse(data=status, meta={"is_pro": status.is_pro})
