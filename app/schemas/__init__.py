"""Pydantic request/response schemas."""

from app.schemas.auth import AuthContext, LoginRequest, RegisterRequest, UserRead
from app.schemas.common import ApiResponse, ErrorResponse
from app.schemas.health import HealthResponse
from app.schemas.orders import OrderCreate, OrderRead, PaymentStatusUpdate
from app.schemas.products import ProductCreate, ProductRead, RestockRequest
from app.schemas.users import PaginatedUsers, UserCreate, UserUpdate

__all__ = [
    "ApiResponse",
    "AuthContext",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "OrderCreate",
    "OrderRead",
    "PaginatedUsers",
    "PaymentStatusUpdate",
    "ProductCreate",
    "ProductRead",
    "RegisterRequest",
    "RestockRequest",
    "UserCreate",
    "UserRead",
    "UserUpdate",
]
