from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from models.base import Base


class StoreSettings(Base):
    __tablename__ = "store_settings"

    id = Column(Integer, primary_key=True)
    shop_id = Column(String(255), unique=True, index=True, nullable=False)

    # each section is stored as the JSON dump of its pydantic schema (schemas/store.py)
    risk_thresholds = Column(JSON, nullable=False)
    risk_factors = Column(JSON, nullable=False)
    notifications = Column(JSON, nullable=True)
    automations = Column(JSON, nullable=False)
    ai_settings = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class TrialStatus(Base):
    __tablename__ = "trial_status"

    id = Column(Integer, primary_key=True)
    shop_id = Column(String(255), unique=True, index=True, nullable=False)

    is_active = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    days_remaining = Column(Integer, nullable=False, default=14)
    plan = Column(String(16), nullable=False, default="free")  # free | pro | business

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
