from sqlalchemy import Column, Integer, Float, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base import Base


class RiskAnalysis(Base):
    __tablename__ = "risk_analysis"

    id = Column(Integer, primary_key=True)
    order_id_fk = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), unique=True, nullable=False)

    score = Column(Integer, nullable=False, default=0)
    risk_level = Column(String(16), index=True, nullable=False, default="low")
    factors = Column(JSON, nullable=False, default=list)  # human readable, evaluation order
    status = Column(String(16), index=True, nullable=False, default="approved")
    reviewed = Column(Boolean, nullable=False, default=False)

    ip_address = Column(String(64), nullable=True)
    checkout_speed = Column(Float, nullable=True)

    # merchant feedback on the verdict
    feedback_original_score = Column(Integer, nullable=True)
    feedback_user_feedback = Column(String(16), nullable=True)  # "correct" | "incorrect"
    feedback_user_assigned_level = Column(String(16), nullable=True)
    feedback_date = Column(DateTime(timezone=True), nullable=True)

    calculated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="risk")
