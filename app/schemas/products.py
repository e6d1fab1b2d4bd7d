"""Schemas for the product/inventory collaborator (minimal surface for the ledger)."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.product import Product, ProductStatus


class ProductCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str = Field(default="", max_length=10_000)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    inventory_total: int = Field(..., ge=0)
    inventory_available: int | None = Field(
        default=None,
        ge=0,
        description="Defaults to inventory_total when omitted.",
    )
    category_id: int | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def available_within_total(self) -> "ProductCreate":
        if self.inventory_available is not None and self.inventory_available > self.inventory_total:
            raise ValueError("inventory_available cannot exceed inventory_total")
        return self


class RestockRequest(BaseModel):
    """Add newly acquired units: raises total and available together."""

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(..., gt=0, le=1_000_000)


class InventoryRead(BaseModel):
    total: int
    available: int


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str
    price: Decimal
    inventory: InventoryRead
    category_id: int | None = None
    status: ProductStatus
    is_active: bool

    @classmethod
    def from_model(cls, product: Product) -> "ProductRead":
        return cls(
            id=product.id,
            name=product.name,
            slug=product.slug,
            description=product.description,
            price=product.price,
            inventory=InventoryRead(
                total=product.inventory_total,
                available=product.inventory_available,
            ),
            category_id=product.category_id,
            status=product.status,
            is_active=product.is_active,
        )
