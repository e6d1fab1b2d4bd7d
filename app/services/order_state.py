"""Order status state machine: adjacency table and which transitions return stock."""

from app.core.errors import InvalidTransitionError
from app.models.order import OrderStatus

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.EXPIRED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in TRANSITIONS.items() if not nxt)

# Swept to Expired once end_date has passed.
EXPIRABLE_STATUSES = frozenset({OrderStatus.PLACED, OrderStatus.IN_PROGRESS})


def allowed_transitions(status: OrderStatus | str) -> frozenset[OrderStatus]:
    return TRANSITIONS.get(OrderStatus(status), frozenset())


def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    return OrderStatus(target) in allowed_transitions(current)


def assert_transition(current: OrderStatus | str, target: OrderStatus | str) -> None:
    """Raise InvalidTransitionError unless target is adjacent to current."""
    if not can_transition(current, target):
        raise InvalidTransitionError(OrderStatus(current).value, OrderStatus(target).value)


def releases_inventory(
    current: OrderStatus | str,
    target: OrderStatus | str,
    restock_on_complete: bool = True,
) -> bool:
    """
    True if moving current -> target gives the order's units back to available stock.

    Cancelled always restocks. Completed restocks when restock_on_complete is set.
    Expired restocks only orders never picked up; In Progress items are still out.
    """
    target = OrderStatus(target)
    if target == OrderStatus.CANCELLED:
        return True
    if target == OrderStatus.COMPLETED:
        return restock_on_complete
    if target == OrderStatus.EXPIRED:
        return OrderStatus(current) == OrderStatus.PLACED
    return False
