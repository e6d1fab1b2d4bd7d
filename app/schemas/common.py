"""Response envelopes shared by every endpoint."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {statusCode, message, message_key, data}."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias="statusCode", description="HTTP status code")
    message: str = Field(..., description="Human-readable message")
    message_key: str | None = Field(default=None, description="Stable machine-readable key")
    data: T


class ErrorResponse(BaseModel):
    """Error envelope: data is always null; path and timestamp identify the failed request."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias="statusCode")
    message: str
    message_key: str
    data: None = None
    path: str
    timestamp: datetime


def envelope(status_code: int, message: str, message_key: str | None, data: T) -> ApiResponse[T]:
    """Build a success envelope for a route return value."""
    return ApiResponse(
        status_code=status_code,
        message=message,
        message_key=message_key,
        data=data,
    )
