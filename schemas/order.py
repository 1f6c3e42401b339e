from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from schemas.store import RiskLevel


OrderStatus = Literal["approved", "pending", "declined", "on_hold"]


class LineItemOut(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    quantity: int = 1
    price: float = 0.0
    sku: Optional[str] = None


class AddressOut(BaseModel):
    address1: str = ""
    address2: str = ""
    city: str = ""
    province: str = ""
    zip: str = ""
    country: str = ""


class CustomerOut(BaseModel):
    id: Optional[str] = None
    first_name: str = "Guest"
    last_name: str = "Customer"
    email: str = ""
    phone: Optional[str] = None
    total_orders: Optional[int] = None
    total_spent: Optional[float] = None


class AIFeedbackOut(BaseModel):
    original_score: int
    user_feedback: Literal["correct", "incorrect"]
    user_assigned_level: Optional[RiskLevel] = None
    feedback_date: Optional[datetime] = None


class RiskAnalysisOut(BaseModel):
    """Risk verdict embedded in order response."""
    score: int
    level: RiskLevel
    factors: List[str] = []
    status: OrderStatus
    reviewed: bool = False
    ip_address: Optional[str] = None
    checkout_speed: Optional[float] = None
    ai_feedback: Optional[AIFeedbackOut] = None


class OrderOut(BaseModel):
    shop_id: str
    order_id: str
    order_number: str = ""
    date: Optional[datetime] = None
    currency: str = "USD"
    total_price: float = 0.0
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None

    customer: CustomerOut = Field(default_factory=CustomerOut)
    items: List[LineItemOut] = []
    shipping_address: Optional[AddressOut] = None
    billing_address: Optional[AddressOut] = None

    risk: Optional[RiskAnalysisOut] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FeedbackIn(BaseModel):
    user_feedback: Literal["correct", "incorrect"]
    user_assigned_level: Optional[RiskLevel] = None


class ReviewIn(BaseModel):
    status: OrderStatus
