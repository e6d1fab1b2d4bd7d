"""ORM model for application users (auth, sessions and role hierarchy)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from app.core.roles import Role
from app.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'user' < 'mod' < 'admin' < 'super_admin'
    refresh_token_hash: bcrypt hash of the single current refresh token; NULL means logged out.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.USER.value, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    refresh_token_hash = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    avatar = Column(String(1024), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
