"""
Inventory ledger: per-product total/available counters with guarded atomic updates.

Every mutation is a single conditional UPDATE so the database, not a prior read,
decides whether stock is sufficient. Two concurrent reservations of the last units
cannot both succeed: the second matches zero rows. Nothing here commits; callers
run these inside their own unit_of_work so a batch is all-or-nothing.
"""

import logging
from collections import Counter
from collections.abc import Iterable

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import message_keys
from app.core.database import unit_of_work
from app.core.errors import ConflictError, InsufficientInventoryError, NotFoundError, ValidationError
from app.models import Product, ProductStatus
from app.schemas.products import ProductCreate

logger = logging.getLogger(__name__)

# At or below this share of total units a product is reported as 'limited'.
LIMITED_STOCK_RATIO = 0.2


def derive_status(total: int, available: int, is_active: bool = True) -> ProductStatus:
    """Informational status from the counters; not used to gate reservations."""
    if not is_active:
        return ProductStatus.DISCONTINUED
    if available <= 0:
        return ProductStatus.OUT_OF_STOCK
    if total > 0 and available <= total * LIMITED_STOCK_RATIO:
        return ProductStatus.LIMITED
    return ProductStatus.AVAILABLE


def _refresh_status(db: Session, product_id: int) -> None:
    product = db.get(Product, product_id)
    if product is None:
        return
    db.refresh(product, attribute_names=["inventory_total", "inventory_available", "is_active"])
    product.status = derive_status(
        product.inventory_total, product.inventory_available, product.is_active
    ).value
    db.flush()


def reserve(db: Session, product_id: int, qty: int) -> None:
    """Decrement available by qty only if available >= qty. Raises InsufficientInventoryError."""
    if qty <= 0:
        raise ValidationError("Quantity must be positive", message_keys.ORDER_ITEMS_INVALID)
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.inventory_available >= qty)
        .values(inventory_available=Product.inventory_available - qty)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientInventoryError(product_id, qty)
    _refresh_status(db, product_id)
    logger.debug("Reserved: product_id=%s qty=%s", product_id, qty)


def release(db: Session, product_id: int, qty: int) -> None:
    """
    Increment available by qty only if the result stays within total.

    Raises ValidationError when it would not; that means the units were never reserved.
    """
    if qty <= 0:
        raise ValidationError("Quantity must be positive", message_keys.ORDER_ITEMS_INVALID)
    result = db.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.inventory_available + qty <= Product.inventory_total,
        )
        .values(inventory_available=Product.inventory_available + qty)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ValidationError(
            f"Releasing {qty} units would exceed total inventory of product {product_id}",
            message_keys.INVENTORY_OVERFLOW,
        )
    _refresh_status(db, product_id)
    logger.debug("Released: product_id=%s qty=%s", product_id, qty)


def _merge(items: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    """Sum quantities per product, ordered by product id (stable lock order across requests)."""
    totals: Counter[int] = Counter()
    for product_id, qty in items:
        totals[product_id] += qty
    return sorted(totals.items())


def reserve_items(db: Session, items: Iterable[tuple[int, int]]) -> None:
    """Reserve every (product_id, qty); the first failure propagates and the caller rolls back."""
    for product_id, qty in _merge(items):
        reserve(db, product_id, qty)


def release_items(db: Session, items: Iterable[tuple[int, int]]) -> None:
    for product_id, qty in _merge(items):
        release(db, product_id, qty)


def create_product(db: Session, data: ProductCreate) -> Product:
    if db.query(Product.id).filter(Product.slug == data.slug).first() is not None:
        raise ConflictError("Slug already exists", message_keys.PRODUCT_SLUG_EXISTS)
    available = data.inventory_total if data.inventory_available is None else data.inventory_available
    product = Product(
        name=data.name.strip(),
        slug=data.slug,
        description=data.description,
        price=data.price,
        inventory_total=data.inventory_total,
        inventory_available=available,
        category_id=data.category_id,
        is_active=data.is_active,
        status=derive_status(data.inventory_total, available, data.is_active).value,
    )
    try:
        with unit_of_work(db):
            db.add(product)
    except IntegrityError as e:
        raise ConflictError("Slug already exists", message_keys.PRODUCT_SLUG_EXISTS) from e
    db.refresh(product)
    logger.info("Product created: product_id=%s slug=%s", product.id, product.slug)
    return product


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found", message_keys.PRODUCT_NOT_FOUND)
    return product


def restock(db: Session, product_id: int, qty: int) -> Product:
    """Add newly acquired units: total and available grow together in one UPDATE."""
    if qty <= 0:
        raise ValidationError("Quantity must be positive", message_keys.VALIDATION_ERROR)
    with unit_of_work(db):
        result = db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                inventory_total=Product.inventory_total + qty,
                inventory_available=Product.inventory_available + qty,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError("Product not found", message_keys.PRODUCT_NOT_FOUND)
        _refresh_status(db, product_id)
    product = get_product(db, product_id)
    db.refresh(product)
    logger.info("Product restocked: product_id=%s qty=%s", product_id, qty)
    return product
