"""
Auth orchestrator: register, login, refresh (single-use rotation), logout and profile.

Each user is either anonymous (no stored refresh hash) or authenticated (exactly one
stored hash). login/register/refresh move to authenticated with a fresh token; logout
moves back to anonymous.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import message_keys
from app.core.database import unit_of_work
from app.core.errors import AuthError, ConflictError, NotFoundError
from app.core.roles import Role
from app.core.security import TokenPair, hash_password, issue_token_pair, verify_password
from app.models import User
from app.schemas.auth import AuthSession, RegisterRequest, UserRead
from app.services import session_store

logger = logging.getLogger(__name__)

# One message for every credential failure so responses do not reveal which emails exist.
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
ACCESS_DENIED_MESSAGE = "Access denied."


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _issue_for(user: User) -> TokenPair:
    return issue_token_pair(sub=user.id, email=user.email, role=user.role)


def sanitize_user(user: User) -> UserRead:
    """Strip password and refresh-token fields."""
    return UserRead.model_validate(user)


def email_exists(db: Session, email: str) -> bool:
    return (
        db.query(User.id).filter(User.email == _normalize_email(email)).first() is not None
    )


def _start_session(db: Session, user: User) -> AuthSession:
    tokens = _issue_for(user)
    with unit_of_work(db):
        session_store.set_session(db, user.id, tokens.refresh_token)
    return AuthSession(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=sanitize_user(user),
    )


def register(db: Session, data: RegisterRequest) -> AuthSession:
    """
    Create a 'user' account and log it in.

    Raises ConflictError if the email is taken; no partial record is left behind.
    """
    email = _normalize_email(data.email)
    if email_exists(db, email):
        raise ConflictError("Email already exists", message_keys.EMAIL_ALREADY_EXISTS)

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        name=data.name.strip(),
        role=Role.USER.value,
        is_active=True,
        phone=data.phone,
        avatar=data.avatar,
    )
    try:
        with unit_of_work(db):
            db.add(user)
    except IntegrityError as e:
        # Lost a race with a concurrent registration of the same email.
        raise ConflictError("Email already exists", message_keys.EMAIL_ALREADY_EXISTS) from e
    db.refresh(user)
    logger.info("User registered: user_id=%s", user.id)
    return _start_session(db, user)


def login(db: Session, email: str, password: str) -> AuthSession:
    """Verify credentials, rotate in a new session, and return tokens plus sanitized user."""
    if not password:
        raise AuthError("Password is required", message_keys.PASSWORD_REQUIRED)
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None:
        raise AuthError(INVALID_CREDENTIALS_MESSAGE, message_keys.INVALID_CREDENTIALS)
    if not user.password_hash:
        raise AuthError("User password is not set", message_keys.PASSWORD_NOT_SET)
    if not verify_password(password, user.password_hash):
        raise AuthError(INVALID_CREDENTIALS_MESSAGE, message_keys.INVALID_CREDENTIALS)
    if not user.is_active:
        raise AuthError("Account is inactive", message_keys.ACCOUNT_INACTIVE)

    result = _start_session(db, user)
    logger.info("User logged in: user_id=%s", user.id)
    return result


def refresh(db: Session, user_id: int, presented_refresh_token: str) -> TokenPair:
    """
    Exchange the current refresh token for a brand-new pair.

    The presented token is invalid afterwards (single use). Raises AuthError when
    there is no session or the token does not match; no state is cleared on failure.
    """
    user = db.get(User, user_id)
    if user is None or not user.refresh_token_hash or not user.is_active:
        raise AuthError(ACCESS_DENIED_MESSAGE, message_keys.ACCESS_DENIED)

    tokens = _issue_for(user)
    with unit_of_work(db):
        rotated = session_store.rotate_session(
            db, user.id, presented_refresh_token, tokens.refresh_token
        )
        if not rotated:
            logger.warning("Refresh token mismatch or reuse: user_id=%s", user.id)
            raise AuthError(ACCESS_DENIED_MESSAGE, message_keys.TOKEN_REFRESH_FAILURE)
    logger.info("Session rotated: user_id=%s", user.id)
    return tokens


def logout(db: Session, user_id: int) -> None:
    """Clear the session. Idempotent: logging out twice is not an error."""
    with unit_of_work(db):
        session_store.clear_session(db, user_id)
    logger.info("User logged out: user_id=%s", user_id)


def get_user_details(db: Session, user_id: int) -> UserRead:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", message_keys.USER_NOT_FOUND)
    return sanitize_user(user)
