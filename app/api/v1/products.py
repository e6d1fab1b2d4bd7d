"""Product endpoints: just enough catalogue surface to feed the inventory ledger."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin
from app.core import message_keys
from app.core.database import get_db
from app.schemas.auth import AuthContext
from app.schemas.common import ApiResponse, envelope
from app.schemas.products import ProductCreate, ProductRead, RestockRequest
from app.services import inventory

router = APIRouter()

AdminUser = Annotated[AuthContext, Depends(require_admin)]


@router.post("", response_model=ApiResponse[ProductRead], status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ProductRead]:
    product = inventory.create_product(db, body)
    return envelope(
        status.HTTP_201_CREATED,
        "Product created successfully",
        message_keys.PRODUCT_CREATED,
        ProductRead.from_model(product),
    )


@router.get("/{product_id}", response_model=ApiResponse[ProductRead])
def get_product(
    product_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ProductRead]:
    product = inventory.get_product(db, product_id)
    return envelope(
        status.HTTP_200_OK,
        "Product retrieved successfully",
        message_keys.PRODUCT_FETCH_SUCCESS,
        ProductRead.from_model(product),
    )


@router.post("/{product_id}/restock", response_model=ApiResponse[ProductRead])
def restock_product(
    product_id: int,
    body: RestockRequest,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ProductRead]:
    """Add newly acquired units; total and available grow by the same amount."""
    product = inventory.restock(db, product_id, body.quantity)
    return envelope(
        status.HTTP_200_OK,
        "Product restocked successfully",
        message_keys.PRODUCT_RESTOCKED,
        ProductRead.from_model(product),
    )
