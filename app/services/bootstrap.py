"""Startup provisioning: make sure a super_admin account exists."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.database import unit_of_work
from app.core.roles import Role
from app.core.security import hash_password
from app.models import User

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def seed_super_admin(db: Session, settings: "Settings") -> User | None:
    """
    Create the default super_admin if no super_admin exists. Idempotent.

    Returns the created user, or None when seeding is disabled, a super_admin
    already exists, or no SUPER_ADMIN_PASSWORD is configured.
    """
    if not settings.SEED_SUPER_ADMIN:
        logger.info("Super admin seeding is disabled (SEED_SUPER_ADMIN=false); skipping.")
        return None

    existing = db.query(User.id).filter(User.role == Role.SUPER_ADMIN.value).first()
    if existing is not None:
        return None

    if settings.SUPER_ADMIN_PASSWORD is None:
        logger.warning(
            "No super_admin exists and SUPER_ADMIN_PASSWORD is not set; "
            "create one with: python -m app.scripts.create_user"
        )
        return None

    email = str(settings.SUPER_ADMIN_EMAIL).strip().lower()
    if db.query(User.id).filter(User.email == email).first() is not None:
        # Never promote an account someone else may have registered with this email.
        logger.error(
            "Cannot seed super_admin: email %s already belongs to another account", email
        )
        return None

    user = User(
        email=email,
        password_hash=hash_password(settings.SUPER_ADMIN_PASSWORD.get_secret_value()),
        name=settings.SUPER_ADMIN_NAME,
        role=Role.SUPER_ADMIN.value,
        is_active=True,
    )
    with unit_of_work(db):
        db.add(user)
    db.refresh(user)
    logger.info("Default super_admin created: user_id=%s email=%s", user.id, user.email)
    return user
