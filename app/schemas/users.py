"""Request/response schemas for user administration."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.roles import Role
from app.schemas.auth import UserRead

PHONE_PATTERN = r"^(\+84|0)\d{9}$"


class UserCreate(BaseModel):
    """Provisioning by a mod/admin/super_admin; role defaults to 'user'."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    role: Role = Role.USER
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    avatar: str | None = Field(default=None, max_length=1024)


class UserUpdate(BaseModel):
    """Partial update. Only fields explicitly sent are applied."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, min_length=8, max_length=128)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    role: Role | None = None
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    avatar: str | None = Field(default=None, max_length=1024)
    is_active: bool | None = None


class UserListQuery(BaseModel):
    """Filters and paging for GET /users."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: str | None = None
    role: Role | None = None
    is_active: bool | None = None


class PaginatedUsers(BaseModel):
    items: list[UserRead]
    total: int
    page: int
    limit: int
    total_pages: int
