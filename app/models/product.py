"""ORM model for rentable products and their inventory counters."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from app.models.base import Base


class ProductStatus(str, Enum):
    """Informational only; not enforced against inventory_available."""

    AVAILABLE = "available"
    LIMITED = "limited"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


class Product(Base):
    """
    Product with a two-counter inventory: total units owned and units currently free to rent.

    The check constraint keeps 0 <= inventory_available <= inventory_total at the database.
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("inventory_total >= 0", name="ck_products_inventory_total_nonneg"),
        CheckConstraint(
            "inventory_available >= 0 AND inventory_available <= inventory_total",
            name="ck_products_inventory_available_bounds",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(12, 2), nullable=False)
    inventory_total = Column(Integer, nullable=False, default=0)
    inventory_available = Column(Integer, nullable=False, default=0)
    # Categories live outside this service; kept as an opaque reference.
    category_id = Column(Integer, nullable=True, index=True)
    status = Column(String(32), nullable=False, default=ProductStatus.AVAILABLE.value)
    is_active = Column(Boolean, nullable=False, default=True)
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
