"""ORM models for rental orders and their line items."""

from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.models.base import Base


class OrderStatus(str, Enum):
    PLACED = "Order Placed"
    PICKED_UP = "Picked Up"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"


class Order(Base):
    """
    Rental order. Never deleted: cancellation and expiry are statuses.

    status only changes through app.services.orders (state machine + inventory side effects).
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_orders_dates_ordered"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    status = Column(String(32), nullable=False, default=OrderStatus.PLACED.value, index=True)
    payment_status = Column(String(16), nullable=False, default=PaymentStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    actual_return_date = Column(DateTime(timezone=True), nullable=True)
    late_fee = Column(Numeric(12, 2), nullable=False, default=0)
    late_fee_reason = Column(String(1024), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    """One line of an order: product reference and rented quantity."""

    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
