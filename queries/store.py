from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.store import StoreSettings, TrialStatus
from schemas.store import StoreConfig, SubscriptionStatus


def _to_config(row: StoreSettings) -> StoreConfig:
    return StoreConfig(
        risk_thresholds=row.risk_thresholds,
        risk_factors=row.risk_factors,
        notifications=row.notifications,
        automations=row.automations,
        ai_settings=row.ai_settings,
    )


def _apply_config(row: StoreSettings, config: StoreConfig) -> None:
    data = config.model_dump(mode="json")
    row.risk_thresholds = data["risk_thresholds"]
    row.risk_factors = data["risk_factors"]
    row.notifications = data["notifications"]
    row.automations = data["automations"]
    row.ai_settings = data["ai_settings"]


def _get_or_create_settings_row(db: Session, shop_id: str) -> StoreSettings:
    row = db.query(StoreSettings).filter(StoreSettings.shop_id == shop_id).first()
    if row:
        return row

    row = StoreSettings(shop_id=shop_id)
    _apply_config(row, StoreConfig())
    try:
        db.add(row)
        db.commit()
    except IntegrityError:
        # another request created the defaults first
        db.rollback()
        return db.query(StoreSettings).filter(StoreSettings.shop_id == shop_id).one()
    db.refresh(row)
    return row


def get_store_config(db: Session, shop_id: str) -> StoreConfig:
    """Tenant configuration; defaults are created on first access."""
    return _to_config(_get_or_create_settings_row(db, shop_id))


def save_store_config(db: Session, shop_id: str, config: StoreConfig) -> StoreConfig:
    """Wholesale replace of the tenant configuration."""
    row = _get_or_create_settings_row(db, shop_id)
    try:
        _apply_config(row, config)
        db.commit()
        db.refresh(row)
    except Exception:
        db.rollback()
        raise
    return _to_config(row)


def get_subscription_status(db: Session, shop_id: str) -> SubscriptionStatus:
    """Plan / trial flags. Lifecycle (trial start, expiry) is managed elsewhere."""
    row = db.query(TrialStatus).filter(TrialStatus.shop_id == shop_id).first()
    if not row:
        row = TrialStatus(shop_id=shop_id, is_active=False, days_remaining=14, plan="free")
        try:
            db.add(row)
            db.commit()
        except IntegrityError:
            db.rollback()
            row = db.query(TrialStatus).filter(TrialStatus.shop_id == shop_id).one()
        else:
            db.refresh(row)

    return SubscriptionStatus(
        is_active=bool(row.is_active),
        plan=row.plan or "free",
        days_remaining=row.days_remaining if row.days_remaining is not None else 14,
        started_at=row.started_at,
    )
