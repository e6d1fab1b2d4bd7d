"""Refresh-token session store: one bcrypt-hashed refresh token per user, stored on the user row."""

import hashlib
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.security import hash_password, verify_password
from app.models import User

logger = logging.getLogger(__name__)


def token_digest(token: str) -> str:
    """
    SHA-256 hex digest of a token, the value that gets bcrypt-hashed.

    bcrypt only reads the first 72 bytes, and JWTs for one user share a long common
    prefix (header, sub, email), so raw tokens would all verify against each other.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def set_session(db: Session, user_id: int, refresh_token: str) -> None:
    """
    Hash the refresh token and overwrite the stored hash (at most one session per user).

    Flushes but does not commit; the caller owns the transaction.
    """
    hashed = hash_password(token_digest(refresh_token))
    db.execute(
        update(User).where(User.id == user_id).values(refresh_token_hash=hashed)
    )
    db.flush()
    logger.debug("Session stored: user_id=%s", user_id)


def clear_session(db: Session, user_id: int) -> None:
    """Drop the stored refresh-token hash. Clearing an absent session is a no-op."""
    db.execute(
        update(User).where(User.id == user_id).values(refresh_token_hash=None)
    )
    db.flush()
    logger.debug("Session cleared: user_id=%s", user_id)


def _stored_hash(db: Session, user_id: int) -> str | None:
    return db.query(User.refresh_token_hash).filter(User.id == user_id).scalar()


def verify_session(db: Session, user_id: int, candidate_token: str) -> bool:
    """True only if the user exists, has a session, and candidate matches the stored hash."""
    stored = _stored_hash(db, user_id)
    if not stored:
        return False
    return verify_password(token_digest(candidate_token), stored)


def rotate_session(db: Session, user_id: int, presented_token: str, new_token: str) -> bool:
    """
    Replace the session only if presented_token is the current one.

    Compare-and-set on the stored hash: of two concurrent refreshes with the same
    token, exactly one rotates; the other sees zero rows updated and fails.
    """
    stored = _stored_hash(db, user_id)
    if not stored or not verify_password(token_digest(presented_token), stored):
        return False
    result = db.execute(
        update(User)
        .where(User.id == user_id, User.refresh_token_hash == stored)
        .values(refresh_token_hash=hash_password(token_digest(new_token)))
    )
    db.flush()
    return result.rowcount == 1
