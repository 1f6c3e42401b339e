from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from models.order import Order, OrderItem
from models.risk import RiskAnalysis


def get_order(db: Session, shop_id: str, order_id: str) -> Order | None:
    return (
        db.query(Order)
        .options(joinedload(Order.items), joinedload(Order.risk))
        .filter(Order.shop_id == shop_id, Order.order_id == order_id)
        .first()
    )


def list_orders(
    db: Session,
    shop_id: str,
    *,
    limit: int = 20,
    skip: int = 0,
    risk_level: str | None = None,
    status: str | None = None,
) -> list[Order]:
    q = (
        db.query(Order)
        .options(joinedload(Order.items), joinedload(Order.risk))
        .filter(Order.shop_id == shop_id)
    )
    if risk_level or status:
        q = q.join(RiskAnalysis, RiskAnalysis.order_id_fk == Order.id)
        if risk_level:
            q = q.filter(RiskAnalysis.risk_level == risk_level)
        if status:
            q = q.filter(RiskAnalysis.status == status)

    return q.order_by(Order.date.desc(), Order.id.desc()).offset(skip).limit(limit).all()


def create_order(db: Session, *, data: dict, verdict: dict) -> tuple[Order, bool]:
    """
    Create order + items + risk verdict exactly once per (shop_id, order_id).

    Returns (order, created). created=False means the order already existed
    (duplicate webhook delivery): the stored record is returned untouched.
    The unique constraint on orders catches the check-then-create race.
    """
    shop_id = data["shop_id"]
    order_id = data["order_id"]

    existing = get_order(db, shop_id, order_id)
    if existing:
        return existing, False

    fields = {k: v for k, v in data.items() if k != "items"}
    order = Order(**fields)
    for it in data.get("items") or []:
        order.items.append(OrderItem(**it))

    order.risk = RiskAnalysis(
        score=int(verdict["score"]),
        risk_level=verdict["level"],
        factors=list(verdict.get("factors") or []),
        status=verdict["status"],
        reviewed=bool(verdict.get("reviewed", False)),
        ip_address=verdict.get("ip_address"),
        checkout_speed=verdict.get("checkout_speed"),
    )

    try:
        db.add(order)
        db.commit()
    except IntegrityError:
        # a concurrent delivery of the same order won
        db.rollback()
        existing = get_order(db, shop_id, order_id)
        if existing is None:
            raise
        return existing, False
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    return order, True


# ---------------------------
# Dashboard aggregates
# ---------------------------

def dashboard_stats(db: Session, shop_id: str, *, days: int = 30) -> dict:
    """
    Last `days` days:
    - total orders / risky (medium+high) orders / risk percentage
    - average risk score (rounded)
    - counts per level
    """
    since = datetime.now(timezone.utc) - timedelta(days=days)

    rows = (
        db.query(RiskAnalysis.risk_level, func.count(RiskAnalysis.id), func.avg(RiskAnalysis.score))
        .join(Order, RiskAnalysis.order_id_fk == Order.id)
        .filter(Order.shop_id == shop_id, Order.date >= since)
        .group_by(RiskAnalysis.risk_level)
        .all()
    )

    counts = {"low": 0, "medium": 0, "high": 0}
    score_sum = 0.0
    for level, count, avg_score in rows:
        counts[level] = counts.get(level, 0) + int(count)
        score_sum += float(avg_score or 0.0) * int(count)

    total = sum(counts.values())
    risky = counts.get("medium", 0) + counts.get("high", 0)

    return {
        "total_orders": total,
        "risky_orders": risky,
        "risk_percentage": round(risky / total * 100, 1) if total else 0,
        "average_risk_score": round(score_sum / total) if total else 0,
        "risk_counts": counts,
        "days": days,
    }


def risk_by_country(db: Session, shop_id: str, *, days: int = 30) -> list[dict]:
    """Orders + risky share per shipping country (orders without one go to 'Unknown')."""
    since = datetime.now(timezone.utc) - timedelta(days=days)

    orders = (
        db.query(Order)
        .options(joinedload(Order.risk))
        .filter(Order.shop_id == shop_id, Order.date >= since)
        .all()
    )

    by_country: dict[str, dict] = {}
    for o in orders:
        country = (o.shipping_address or {}).get("country") or "Unknown"
        bucket = by_country.setdefault(country, {"region": country, "orders": 0, "risky": 0})
        bucket["orders"] += 1
        if o.risk and o.risk.risk_level in ("medium", "high"):
            bucket["risky"] += 1

    rows = []
    for b in by_country.values():
        rows.append(
            {
                "region": b["region"],
                "orders": b["orders"],
                "risk_percentage": round(b["risky"] / b["orders"] * 100, 1),
            }
        )

    rows.sort(key=lambda x: x["orders"], reverse=True)
    return rows
