from datetime import datetime, timezone

from sqlalchemy.orm import Session, joinedload

from models.order import Order
from models.risk import RiskAnalysis


def record_feedback(
    db: Session,
    *,
    risk: RiskAnalysis,
    user_feedback: str,
    user_assigned_level: str | None = None,
) -> RiskAnalysis:
    """
    Merchant says the verdict was correct / incorrect.
    Score, level and factors stay as computed; the original score is kept alongside.
    """
    try:
        risk.feedback_original_score = risk.score
        risk.feedback_user_feedback = user_feedback
        risk.feedback_user_assigned_level = user_assigned_level
        risk.feedback_date = datetime.now(timezone.utc)
        risk.reviewed = True

        db.commit()
        db.refresh(risk)
        return risk

    except Exception:
        db.rollback()
        raise


def set_review_status(db: Session, *, risk: RiskAnalysis, status: str) -> RiskAnalysis:
    """Explicit re-review: merchant overrides the recommended status."""
    try:
        risk.status = status
        risk.reviewed = True

        db.commit()
        db.refresh(risk)
        return risk

    except Exception:
        db.rollback()
        raise


def list_risky_orders(
    db: Session,
    shop_id: str,
    *,
    min_score: int = 0,
    level: str | None = None,
    limit: int = 100,
) -> list[Order]:
    # orders with score >= min_score, riskiest first
    q = (
        db.query(Order)
        .options(joinedload(Order.risk))
        .join(RiskAnalysis, RiskAnalysis.order_id_fk == Order.id)
        .filter(Order.shop_id == shop_id, RiskAnalysis.score >= min_score)
    )
    if level:
        q = q.filter(RiskAnalysis.risk_level == level)

    return q.order_by(RiskAnalysis.score.desc(), Order.id.desc()).limit(limit).all()
