from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


RiskLevel = Literal["low", "medium", "high"]
Plan = Literal["free", "pro", "business"]


class RiskThresholds(BaseModel):
    high: int = 75
    medium: int = 50

    @model_validator(mode="after")
    def _high_above_medium(self):
        if self.high <= self.medium:
            raise ValueError("risk_thresholds.high must be greater than risk_thresholds.medium")
        return self


class RiskFactors(BaseModel):
    """Per-shop factor toggles. Plan tier can still force pro factors off."""
    order_value: bool = True
    customer_history: bool = True
    ip_location: bool = True
    checkout_speed: bool = True
    address_mismatch: bool = True
    email_domain: bool = True
    order_time: bool = True
    gift_card_use: bool = True
    quantity_spike: bool = True


class EmailNotification(BaseModel):
    enabled: bool = True
    address: str = ""


class SlackNotification(BaseModel):
    enabled: bool = False
    webhook_url: str = ""


class NotificationSettings(BaseModel):
    email: EmailNotification = Field(default_factory=EmailNotification)
    slack: SlackNotification = Field(default_factory=SlackNotification)
    frequency: Literal["immediate", "hourly", "daily"] = "immediate"


class Automations(BaseModel):
    hold_high_risk_orders: bool = True
    email_verification: bool = False
    cancel_high_risk_orders: bool = False
    custom_email: bool = False
    flag_for_review: bool = True
    custom_email_template: Optional[str] = None


class AISettings(BaseModel):
    enable_feedback: bool = True
    data_sharing: Literal["none", "anonymized", "full"] = "anonymized"


class StoreConfig(BaseModel):
    """
    Tenant configuration as read by scoring + notifications.
    notifications=None means the shop never configured them (no alerts at all).
    """
    risk_thresholds: RiskThresholds = Field(default_factory=RiskThresholds)
    risk_factors: RiskFactors = Field(default_factory=RiskFactors)
    notifications: Optional[NotificationSettings] = Field(default_factory=NotificationSettings)
    automations: Automations = Field(default_factory=Automations)
    ai_settings: AISettings = Field(default_factory=AISettings)


class SubscriptionStatus(BaseModel):
    is_active: bool = False  # trial running
    plan: Plan = "free"
    days_remaining: int = 14
    started_at: Optional[datetime] = None

    @property
    def is_pro(self) -> bool:
        return self.is_active or self.plan in ("pro", "business")
