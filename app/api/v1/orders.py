"""
Rental order endpoints.

Customers create and read their own orders. Status transitions and payment updates
are staff operations (admin or higher); the order service enforces the state machine.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import CurrentUser, require_admin
from app.core import message_keys
from app.core.database import get_db
from app.models import OrderStatus
from app.schemas.auth import AuthContext
from app.schemas.common import ApiResponse, envelope
from app.schemas.orders import OrderCreate, OrderRead, PaymentStatusUpdate
from app.services import orders as order_service

router = APIRouter()

AdminUser = Annotated[AuthContext, Depends(require_admin)]


@router.post("", response_model=ApiResponse[OrderRead], status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreate,
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[OrderRead]:
    """
    Place a rental order for the caller.

    Stock for every line is reserved together with the order; if any product is
    missing, inactive or short on stock nothing is reserved and no order is created.
    """
    order = order_service.create_order(db, current_user, body)
    return envelope(
        status.HTTP_201_CREATED,
        "Order created successfully",
        message_keys.ORDER_CREATED,
        OrderRead.model_validate(order),
    )


@router.get("", response_model=ApiResponse[list[OrderRead]])
def list_orders(
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
    include_all: Annotated[bool, Query(alias="all")] = False,
) -> ApiResponse[list[OrderRead]]:
    """Caller's orders, newest first. all=true lists every order (admin or higher)."""
    orders = order_service.list_orders(db, current_user, include_all=include_all)
    return envelope(
        status.HTTP_200_OK,
        "Orders retrieved successfully",
        message_keys.ORDER_FETCH_ALL_SUCCESS,
        [OrderRead.model_validate(o) for o in orders],
    )


@router.get("/{order_id}", response_model=ApiResponse[OrderRead])
def get_order(
    order_id: int,
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[OrderRead]:
    order = order_service.get_order(db, current_user, order_id)
    return envelope(
        status.HTTP_200_OK,
        "Order retrieved successfully",
        message_keys.ORDER_FETCH_SUCCESS,
        OrderRead.model_validate(order),
    )


def _transition(
    db: Session,
    order_id: int,
    target: OrderStatus,
    message: str,
    message_key: str = message_keys.ORDER_STATUS_UPDATED,
) -> ApiResponse[OrderRead]:
    order = order_service.transition_order(db, order_id, target)
    return envelope(status.HTTP_200_OK, message, message_key, OrderRead.model_validate(order))


@router.put("/{order_id}/pick-up", response_model=ApiResponse[OrderRead])
def pick_up_order(
    order_id: int,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[OrderRead]:
    return _transition(db, order_id, OrderStatus.PICKED_UP, "Order marked as picked up")


@router.put("/{order_id}/in-progress", response_model=ApiResponse[OrderRead])
def start_order(
    order_id: int,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[OrderRead]:
    return _transition(db, order_id, OrderStatus.IN_PROGRESS, "Order marked as in progress")


@router.put("/{order_id}/complete", response_model=ApiResponse[OrderRead])
def complete_order(
    order_id: int,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[OrderRead]:
    return _transition(db, order_id, OrderStatus.COMPLETED, "Order completed")


@router.put("/{order_id}/cancel", response_model=ApiResponse[OrderRead])
def cancel_order(
    order_id: int,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[OrderRead]:
    """Cancel from any non-terminal status; reserved units go back to available stock."""
    return _transition(
        db, order_id, OrderStatus.CANCELLED, "Order cancelled", message_keys.ORDER_CANCELLED
    )


@router.put("/{order_id}/payment-status", response_model=ApiResponse[OrderRead])
def update_payment_status(
    order_id: int,
    body: PaymentStatusUpdate,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[OrderRead]:
    order = order_service.update_payment_status(db, order_id, body.status)
    return envelope(
        status.HTTP_200_OK,
        "Payment status updated",
        message_keys.ORDER_PAYMENT_UPDATED,
        OrderRead.model_validate(order),
    )
