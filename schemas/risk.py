from pydantic import BaseModel
from typing import List, Optional

from schemas.store import RiskLevel


class RiskyOrderOut(BaseModel):
    order_id: str
    order_number: str = ""
    customer_email: Optional[str] = None
    total_price: float = 0.0

    score: int
    risk_level: RiskLevel
    status: str
    reviewed: bool = False
    factors: List[str]
