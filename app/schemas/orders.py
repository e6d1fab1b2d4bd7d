"""Pydantic schemas for rental orders: creation input, payment update and read models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.order import OrderStatus, PaymentStatus

MAX_ITEMS_PER_ORDER = 50


class OrderItemIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1, le=10_000)


class OrderCreate(BaseModel):
    """
    New rental. Date rules (end after start, start not in the past) are checked by the
    order service so they share one error path with stock checks.
    """

    model_config = ConfigDict(extra="forbid")

    items: list[OrderItemIn] = Field(..., min_length=1, max_length=MAX_ITEMS_PER_ORDER)
    start_date: datetime
    end_date: datetime
    notes: str | None = Field(default=None, max_length=2000)


class PaymentStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: PaymentStatus


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    quantity: int


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    items: list[OrderItemRead]
    start_date: datetime
    end_date: datetime
    amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    notes: str | None = None
    actual_return_date: datetime | None = None
    late_fee: Decimal = Decimal("0.00")
    late_fee_reason: str | None = None
    created_at: datetime | None = None
