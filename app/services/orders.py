"""
Order orchestrator: rental order creation, status transitions, payment status and expiry sweep.

Creation and transitions touch both the order and the inventory ledger; each runs in
one unit_of_work so a failure leaves neither a persisted order without its reservation
nor released stock without the matching status change.
"""

import logging
import math
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core import message_keys
from app.core.config import settings as default_settings
from app.core.database import unit_of_work
from app.core.errors import (
    AppError,
    ForbiddenError,
    InsufficientInventoryError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.core.roles import Role, has_at_least
from app.models import Order, OrderItem, OrderStatus, PaymentStatus, Product
from app.schemas.auth import AuthContext
from app.schemas.orders import OrderCreate
from app.services import inventory
from app.services.order_state import (
    EXPIRABLE_STATUSES,
    TERMINAL_STATUSES,
    assert_transition,
    releases_inventory,
)

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def rental_days(start: datetime, end: datetime) -> int:
    """Whole rental days: ceiling of (end - start) in days, minimum 1."""
    span = _as_utc(end) - _as_utc(start)
    return max(1, math.ceil(span / ONE_DAY))


def compute_total(lines: list[tuple[Decimal, int]], days: int) -> Decimal:
    """Σ unit price × quantity × days, rounded to cents."""
    total = sum((Decimal(price) * qty * days for price, qty in lines), Decimal("0"))
    return total.quantize(Decimal("0.01"))


def _validate_dates(start: datetime, end: datetime, now: datetime) -> None:
    if end <= start:
        raise ValidationError("End date must be after start date", message_keys.INVALID_RENTAL_DATES)
    if start < now:
        raise ValidationError("Start date cannot be in the past", message_keys.START_DATE_IN_PAST)


def _quantities_by_product(data: OrderCreate) -> dict[int, int]:
    quantities: dict[int, int] = {}
    for item in data.items:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return quantities


def _load_orderable_products(db: Session, product_ids: list[int]) -> dict[int, Product]:
    products = (
        db.query(Product)
        .filter(Product.id.in_(product_ids), Product.is_active == True)  # noqa: E712
        .all()
    )
    by_id = {p.id: p for p in products}
    if len(by_id) != len(set(product_ids)):
        missing = sorted(set(product_ids) - set(by_id))
        raise ValidationError(
            f"One or more products not found or inactive: {missing}",
            message_keys.PRODUCT_NOT_AVAILABLE,
        )
    return by_id


def create_order(
    db: Session,
    ctx: AuthContext,
    data: OrderCreate,
    now: datetime | None = None,
) -> Order:
    """
    Validate dates and stock, price the rental, then reserve and persist together.

    Raises ValidationError (dates, missing/inactive product) or
    InsufficientInventoryError; on any failure no order exists and no stock is held.
    """
    now = _as_utc(now or datetime.now(UTC))
    start = _as_utc(data.start_date)
    end = _as_utc(data.end_date)
    _validate_dates(start, end, now)
    days = rental_days(start, end)

    quantities = _quantities_by_product(data)
    products = _load_orderable_products(db, list(quantities))
    for product_id, qty in quantities.items():
        product = products[product_id]
        if qty > product.inventory_available:
            raise InsufficientInventoryError(product_id, qty, product.name)

    amount = compute_total(
        [(products[item.product_id].price, item.quantity) for item in data.items],
        days,
    )

    order = Order(
        user_id=ctx.id,
        start_date=start,
        end_date=end,
        amount=amount,
        status=OrderStatus.PLACED.value,
        payment_status=PaymentStatus.PENDING.value,
        notes=data.notes,
        items=[OrderItem(product_id=i.product_id, quantity=i.quantity) for i in data.items],
    )
    with unit_of_work(db):
        # The conditional decrement is the real stock guard; the check above only
        # gives a friendlier error in the common case.
        inventory.reserve_items(db, quantities.items())
        db.add(order)
        db.flush()
    db.refresh(order)
    logger.info(
        "Order created: order_id=%s user_id=%s days=%s amount=%s",
        order.id,
        ctx.id,
        days,
        amount,
    )
    return order


def _get_or_404(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found", message_keys.ORDER_NOT_FOUND)
    return order


def transition_order(
    db: Session,
    order_id: int,
    target: OrderStatus,
    force: bool = False,
    settings: "Settings | None" = None,
) -> Order:
    """
    Move an order to target along the transition table, returning stock when required.

    force skips the adjacency table (expiry sweep only); terminal orders still never move.
    The status write is compare-and-set on the status read here, so of two concurrent
    transitions only one applies and stock is released at most once.
    """
    settings = settings or default_settings
    order = _get_or_404(db, order_id)
    current = OrderStatus(order.status)
    target = OrderStatus(target)
    if force:
        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(current.value, target.value)
    else:
        assert_transition(current, target)

    lines = [(item.product_id, item.quantity) for item in order.items]
    with unit_of_work(db):
        result = db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == current.value)
            .values(status=target.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransitionError(current.value, target.value)
        if releases_inventory(current, target, settings.RESTOCK_ON_COMPLETE):
            inventory.release_items(db, lines)
    db.refresh(order)
    logger.info(
        "Order status changed: order_id=%s %s -> %s", order.id, current.value, target.value
    )
    return order


def update_payment_status(db: Session, order_id: int, status: PaymentStatus) -> Order:
    """Independent of the lifecycle; any enum value may be set at any time."""
    order = _get_or_404(db, order_id)
    with unit_of_work(db):
        order.payment_status = PaymentStatus(status).value
    db.refresh(order)
    logger.info("Order payment status: order_id=%s status=%s", order.id, order.payment_status)
    return order


def list_orders(db: Session, ctx: AuthContext, include_all: bool = False) -> list[Order]:
    """Caller's own orders, newest first. include_all (admin+) lists every user's orders."""
    q = db.query(Order)
    if include_all:
        if not has_at_least(ctx.role, Role.ADMIN):
            raise ForbiddenError("Only ADMIN can list all orders", message_keys.INSUFFICIENT_ROLE)
    else:
        q = q.filter(Order.user_id == ctx.id)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(db: Session, ctx: AuthContext, order_id: int) -> Order:
    """Owners see their orders; admin+ sees any. Others get NotFoundError, not Forbidden."""
    order = _get_or_404(db, order_id)
    if order.user_id != ctx.id and not has_at_least(ctx.role, Role.ADMIN):
        raise NotFoundError("Order not found", message_keys.ORDER_NOT_FOUND)
    return order


def sweep_expired(
    db: Session,
    now: datetime | None = None,
    settings: "Settings | None" = None,
) -> int:
    """
    Force orders past end_date that are still Placed or In Progress to Expired.

    Each order is its own transaction; an order changed concurrently is skipped.
    Returns the number of orders expired.
    """
    settings = settings or default_settings
    now = _as_utc(now or datetime.now(UTC))
    candidate_ids = [
        row.id
        for row in db.query(Order.id)
        .filter(
            Order.end_date < now,
            Order.status.in_([s.value for s in EXPIRABLE_STATUSES]),
        )
        .order_by(Order.id)
        .all()
    ]
    expired = 0
    for order_id in candidate_ids:
        try:
            transition_order(db, order_id, OrderStatus.EXPIRED, force=True, settings=settings)
            expired += 1
        except AppError as e:
            logger.warning("Expiry skipped: order_id=%s reason=%s", order_id, e.message)
    if expired:
        logger.info("Expiry sweep: cutoff=%s orders_expired=%s", now.isoformat(), expired)
    return expired
