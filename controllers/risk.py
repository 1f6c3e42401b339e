from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from db.session import get_db
from queries.risk import list_risky_orders
from schemas.responses import ApiResponse
from schemas.risk import RiskyOrderOut

router = APIRouter(prefix="/risk", tags=["risk"])


@router.get("/orders", response_model=ApiResponse[list[RiskyOrderOut]])
def risky_orders(
    shop: str = Query(..., min_length=1),
    min_score: int = Query(50, ge=0),
    level: Optional[Literal["low", "medium", "high"]] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    DB-driven risky orders list (fast), riskiest first.
    Returns order + score + level + status + factors.
    """
    orders = list_risky_orders(db, shop, min_score=min_score, level=level, limit=limit)

    out: list[RiskyOrderOut] = []
    for o in orders:
        if not o.risk:
            continue
        out.append(
            RiskyOrderOut(
                order_id=o.order_id,
                order_number=o.order_number or "",
                customer_email=o.customer_email,
                total_price=float(o.total_price or 0.0),
                score=o.risk.score,
                risk_level=o.risk.risk_level,
                status=o.risk.status,
                reviewed=bool(o.risk.reviewed),
                factors=o.risk.factors or [],
            )
        )

    return ApiResponse(data=out, meta={"min_score": min_score, "level": level, "limit": limit})
