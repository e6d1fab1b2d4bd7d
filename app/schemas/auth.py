"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.roles import Role


class LoginRequest(BaseModel):
    """Credentials for login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr = Field(..., max_length=255, description="Account email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RegisterRequest(BaseModel):
    """Self-service registration. Role is always 'user'; it cannot be requested here."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(default=None, pattern=r"^(\+84|0)\d{9}$")
    avatar: str | None = Field(default=None, max_length=1024)


class RefreshRequest(BaseModel):
    """Optional body for POST /auth/refresh; last-resort source of the refresh token."""

    model_config = ConfigDict(extra="forbid")

    refresh_token: str | None = None


class UserRead(BaseModel):
    """Sanitized user: password and refresh-token fields are never included."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: Role
    is_active: bool
    phone: str | None = None
    avatar: str | None = None


class AuthContext(BaseModel):
    """Authenticated caller passed explicitly into service calls (id, email, role)."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    email: str
    role: Role


class AuthSession(BaseModel):
    """Result of login/register: both tokens plus the sanitized user."""

    access_token: str
    refresh_token: str
    user: UserRead


class LoginData(BaseModel):
    """Body data for login/register; the refresh token travels only in its cookie."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead


class AccessTokenData(BaseModel):
    access_token: str
    token_type: str = "bearer"
