"""
Order + OrderItem: created together as one unit by app.services.order_service.

Items are immutable after creation. Only status, bill fields and timestamps
of an order change. Status flow: see app.services.order_service.TRANSITIONS.
"""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from app.db.base import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(64), unique=True, nullable=False, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=OrderStatus.PENDING.value)
    total_amount = Column(Numeric(12, 2), nullable=False)  # sum of quantity * unit_price
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    final_amount = Column(Numeric(12, 2), nullable=False)  # total - discount + tax
    bill_data = Column(JSON, nullable=True)
    bill_generated_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    idempotency_key = Column(String(128), unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    franchise = relationship("Franchise", backref="orders")
    customer = relationship("Customer", backref="orders")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.pr_code"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)  # absolute, for the whole line
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)  # percent
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    order = relationship("Order", back_populates="items")
    product = relationship("Product", backref="order_items")
