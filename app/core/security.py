"""Password hashing, token-pair issuance/verification and token extraction for authentication."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from app.core.config import settings as default_settings
from app.core.errors import ConfigurationError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text secret (password or refresh token) for storage."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    cost = rounds or default_settings.BCRYPT_ROUNDS
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain secret against a stored hash. Missing or malformed hash never verifies."""
    if not plain_password or not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _access_secret(settings: "Settings") -> str:
    if settings.JWT_SECRET is None:
        raise ConfigurationError("JWT_SECRET is not configured")
    return settings.JWT_SECRET.get_secret_value()


def _refresh_secret(settings: "Settings") -> str:
    # Explicit fallback: refresh tokens are signed with JWT_SECRET when no refresh secret is set.
    if settings.JWT_REFRESH_SECRET is not None:
        return settings.JWT_REFRESH_SECRET.get_secret_value()
    return _access_secret(settings)


def ensure_signing_configured(settings: "Settings") -> None:
    """
    Fail fast when token signing cannot work. Called from the application lifespan,
    so the process refuses to serve auth without a secret.
    """
    _access_secret(settings)
    if settings.JWT_REFRESH_SECRET is None:
        logger.warning(
            "JWT_REFRESH_SECRET is not set; refresh tokens are signed with JWT_SECRET."
        )


def _encode(
    claims: dict[str, Any],
    token_type: str,
    lifetime: timedelta,
    secret: str,
    settings: "Settings",
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        **claims,
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
        # Two tokens issued in the same second must still differ (refresh hashes are compared).
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def issue_token_pair(
    sub: str | int,
    email: str,
    role: str,
    settings: "Settings | None" = None,
) -> TokenPair:
    """Sign an access token and a refresh token from the same claims (sub, email, role)."""
    settings = settings or default_settings
    claims = {"sub": str(sub), "email": email, "role": role}
    access = _encode(
        claims,
        ACCESS_TOKEN_TYPE,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        _access_secret(settings),
        settings,
    )
    refresh = _encode(
        claims,
        REFRESH_TOKEN_TYPE,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        _refresh_secret(settings),
        settings,
    )
    return TokenPair(access_token=access, refresh_token=refresh)


def _decode(token: str, secret: str, expected_type: str, settings: "Settings") -> dict[str, Any]:
    payload = jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "iat", "sub"]},
    )
    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected a {expected_type} token")
    return payload


def decode_access_token(token: str, settings: "Settings | None" = None) -> dict[str, Any]:
    """
    Decode and validate an access JWT; return payload (sub, email, role, exp, iat).
    Raises jwt.PyJWTError on invalid, expired, or wrong-type token.
    """
    settings = settings or default_settings
    return _decode(token, _access_secret(settings), ACCESS_TOKEN_TYPE, settings)


def decode_refresh_token(token: str, settings: "Settings | None" = None) -> dict[str, Any]:
    """Decode and validate a refresh JWT. Raises jwt.PyJWTError on failure."""
    settings = settings or default_settings
    return _decode(token, _refresh_secret(settings), REFRESH_TOKEN_TYPE, settings)


def _bearer_value(authorization: str | None) -> str | None:
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None
    return None


def extract_token(
    cookie_value: str | None,
    authorization: str | None,
    body_value: str | None = None,
) -> str | None:
    """
    Pick the token to authenticate with, in fixed order:
    httpOnly cookie, then `Authorization: Bearer` header, then a body field (refresh only).
    """
    if cookie_value:
        return cookie_value
    bearer = _bearer_value(authorization)
    if bearer:
        return bearer
    if body_value:
        return body_value
    return None
