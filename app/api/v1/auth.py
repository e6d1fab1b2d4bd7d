"""Auth routes (register/login/refresh/logout/profile) and auth dependencies (get_current_user, require_role)."""

from typing import Annotated, Callable

import jwt
from fastapi import APIRouter, Cookie, Depends, Header, Response, status
from sqlalchemy.orm import Session

from app.core import message_keys
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import AuthError, ForbiddenError
from app.core.roles import Role, has_at_least
from app.core.security import (
    TokenPair,
    decode_access_token,
    decode_refresh_token,
    extract_token,
)
from app.models import User
from app.schemas.auth import (
    AccessTokenData,
    AuthContext,
    LoginData,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserRead,
)
from app.schemas.common import ApiResponse, envelope
from app.services import auth as auth_service

router = APIRouter()

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    """httpOnly, SameSite=strict; the refresh cookie is scoped to the refresh endpoint."""
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path=settings.refresh_cookie_path,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(
        REFRESH_COOKIE,
        path=settings.refresh_cookie_path,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
    response.delete_cookie(
        ACCESS_COOKIE,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )


def _user_id_from_claims(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthError("Invalid token payload", message_keys.TOKEN_INVALID)


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    access_cookie: Annotated[str | None, Cookie(alias=ACCESS_COOKIE)] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthContext:
    """Dependency: authenticate from the access_token cookie, else the Bearer header."""
    token = extract_token(access_cookie, authorization)
    if token is None:
        raise AuthError("Not authenticated", message_keys.TOKEN_MISSING)
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise AuthError("Invalid or expired token", message_keys.TOKEN_INVALID)
    user = db.get(User, _user_id_from_claims(payload))
    if user is None or not user.is_active:
        raise AuthError("User not found", message_keys.USER_NOT_FOUND)
    return AuthContext(id=user.id, email=user.email, role=user.role)


CurrentUser = Annotated[AuthContext, Depends(get_current_user)]


def require_role(minimum: Role) -> Callable[[AuthContext], AuthContext]:
    """Dependency factory: caller's role must be at or above minimum in the hierarchy."""

    def dependency(current_user: CurrentUser) -> AuthContext:
        if not has_at_least(current_user.role, minimum):
            raise ForbiddenError(
                f"{minimum.value} role or higher required", message_keys.INSUFFICIENT_ROLE
            )
        return current_user

    return dependency


require_mod = require_role(Role.MOD)
require_admin = require_role(Role.ADMIN)


@router.post(
    "/register",
    response_model=ApiResponse[LoginData],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[LoginData]:
    """Create a 'user' account and start a session (refresh token set as a cookie only)."""
    session = auth_service.register(db, body)
    set_auth_cookies(response, TokenPair(session.access_token, session.refresh_token))
    return envelope(
        status.HTTP_201_CREATED,
        "User registered successfully",
        message_keys.REGISTER_SUCCESS,
        LoginData(access_token=session.access_token, user=session.user),
    )


@router.post("/login", response_model=ApiResponse[LoginData])
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[LoginData]:
    """
    Authenticate with email and password.

    The access token is returned in the body and as an httpOnly cookie; the refresh
    token only as an httpOnly cookie scoped to the refresh endpoint.
    """
    session = auth_service.login(db, body.email, body.password)
    set_auth_cookies(response, TokenPair(session.access_token, session.refresh_token))
    return envelope(
        status.HTTP_200_OK,
        "Login successful",
        message_keys.LOGIN_SUCCESS,
        LoginData(access_token=session.access_token, user=session.user),
    )


@router.post("/refresh", response_model=ApiResponse[AccessTokenData])
def refresh(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    body: RefreshRequest | None = None,
    refresh_cookie: Annotated[str | None, Cookie(alias=REFRESH_COOKIE)] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> ApiResponse[AccessTokenData]:
    """
    Rotate the session. Refresh token is read from the cookie, then the Bearer header,
    then the JSON body field `refresh_token`. The presented token is single use.
    """
    token = extract_token(
        refresh_cookie,
        authorization,
        body.refresh_token if body is not None else None,
    )
    if token is None:
        raise AuthError("Refresh token is required", message_keys.TOKEN_MISSING)
    try:
        payload = decode_refresh_token(token)
    except jwt.PyJWTError:
        raise AuthError("Invalid refresh token", message_keys.TOKEN_REFRESH_FAILURE)
    tokens = auth_service.refresh(db, _user_id_from_claims(payload), token)
    set_auth_cookies(response, tokens)
    return envelope(
        status.HTTP_200_OK,
        "Token refreshed successfully",
        message_keys.TOKEN_REFRESH_SUCCESS,
        AccessTokenData(access_token=tokens.access_token),
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    response: Response,
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    """End the session; the old refresh token can no longer be used."""
    auth_service.logout(db, current_user.id)
    clear_auth_cookies(response)
    return envelope(status.HTTP_200_OK, "Logged out successfully", message_keys.LOGOUT_SUCCESS, None)


@router.get("/profile", response_model=ApiResponse[UserRead])
def profile(
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserRead]:
    user = auth_service.get_user_details(db, current_user.id)
    return envelope(
        status.HTTP_200_OK,
        "User details retrieved successfully",
        message_keys.PROFILE_FETCHED,
        user,
    )
