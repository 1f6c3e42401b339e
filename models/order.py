from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        # one record per (shop, Shopify order id); duplicate webhook deliveries hit this
        UniqueConstraint("shop_id", "order_id", name="uq_order_shop_order"),
    )

    id = Column(Integer, primary_key=True)
    shop_id = Column(String(255), index=True, nullable=False)  # shop domain
    order_id = Column(String(64), index=True, nullable=False)  # Shopify order id
    order_number = Column(String(64), nullable=True)

    date = Column(DateTime(timezone=True), index=True, nullable=True)
    currency = Column(String(8), nullable=False, default="USD")
    total_price = Column(Float, nullable=False, default=0.0)
    financial_status = Column(String(64), nullable=True)
    fulfillment_status = Column(String(64), nullable=True)

    # customer snapshot, as known when the webhook arrived
    customer_id = Column(String(64), nullable=True)
    customer_first_name = Column(String(255), nullable=True)
    customer_last_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(64), nullable=True)
    customer_total_orders = Column(Integer, nullable=True)
    customer_total_spent = Column(Float, nullable=True)

    shipping_address = Column(JSON, nullable=True)
    billing_address = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    risk = relationship("RiskAnalysis", back_populates="order", uselist=False, cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id_fk = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)

    line_item_id = Column(String(64), nullable=True)  # Shopify line item id
    title = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Float, nullable=False, default=0.0)
    sku = Column(String(140), nullable=True)

    order = relationship("Order", back_populates="items")
