"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from app.models.product import Product, ProductStatus
from app.models.user import User

__all__ = [
    "Base",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Product",
    "ProductStatus",
    "User",
]
