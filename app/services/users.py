"""
User administration under the role hierarchy.

Authorization rules are pure functions over (actor, target) so they can be tested
without a database; the operations below call them before touching any row.
"""

import logging
import math

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import message_keys
from app.core.database import unit_of_work
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.roles import ROLE_LEVELS, Role, has_at_least
from app.core.security import hash_password
from app.models import Order, User
from app.schemas.auth import AuthContext, UserRead
from app.schemas.users import PaginatedUsers, UserCreate, UserListQuery, UserUpdate

logger = logging.getLogger(__name__)


def _forbid(message: str, key: str = message_keys.USER_ACCESS_FORBIDDEN) -> ForbiddenError:
    return ForbiddenError(message, key)


def visible_roles(actor_role: Role) -> set[Role]:
    """Roles whose accounts actor_role may list or view (besides its own account)."""
    if actor_role == Role.SUPER_ADMIN:
        return set(ROLE_LEVELS)
    if actor_role == Role.ADMIN:
        return {Role.MOD, Role.USER}
    if actor_role == Role.MOD:
        return {Role.USER}
    return set()


def authorize_create(actor: AuthContext, new_role: Role) -> None:
    if new_role == Role.SUPER_ADMIN:
        raise _forbid("Cannot create SUPER_ADMIN account", message_keys.USER_ROLE_FORBIDDEN)
    if new_role == Role.ADMIN and actor.role != Role.SUPER_ADMIN:
        raise _forbid("Only SUPER_ADMIN can create ADMIN accounts", message_keys.USER_ROLE_FORBIDDEN)
    if new_role == Role.MOD and not has_at_least(actor.role, Role.ADMIN):
        raise _forbid(
            "Only SUPER_ADMIN and ADMIN can create MOD accounts", message_keys.USER_ROLE_FORBIDDEN
        )
    if not has_at_least(actor.role, Role.MOD):
        raise _forbid("Insufficient role to create accounts", message_keys.INSUFFICIENT_ROLE)


def authorize_view(actor: AuthContext, target: User) -> None:
    if actor.id == target.id:
        return
    if Role(target.role) not in visible_roles(actor.role):
        raise _forbid("Not allowed to view this account")


def authorize_update(actor: AuthContext, target: User, changes: UserUpdate) -> None:
    """
    - user: own account only, never its role.
    - mod: 'user' accounts only, never roles.
    - admin: not other admins/super_admins; cannot grant admin or super_admin.
    - super_admin: anyone, but cannot make someone else super_admin.
    """
    target_role = Role(target.role)
    is_self = actor.id == target.id
    new_role = changes.role

    if not has_at_least(actor.role, Role.MOD):
        if not is_self:
            raise _forbid("You can only update your own account")
        if new_role is not None and new_role != target_role:
            raise _forbid("You cannot change your own role", message_keys.USER_ROLE_FORBIDDEN)
        if changes.is_active is not None:
            raise _forbid("You cannot change account status")
        return

    if actor.role == Role.MOD:
        if target_role != Role.USER and not is_self:
            raise _forbid("MOD can only update regular USER accounts")
        if new_role is not None:
            raise _forbid("MOD cannot update user roles", message_keys.USER_ROLE_FORBIDDEN)
        return

    if actor.role == Role.ADMIN:
        if target_role in (Role.ADMIN, Role.SUPER_ADMIN) and not is_self:
            raise _forbid("ADMIN cannot update other ADMIN or SUPER_ADMIN accounts")
        if new_role in (Role.ADMIN, Role.SUPER_ADMIN) and new_role != target_role:
            raise _forbid(
                "ADMIN cannot promote users to ADMIN or SUPER_ADMIN",
                message_keys.USER_ROLE_FORBIDDEN,
            )
        return

    # super_admin
    if new_role == Role.SUPER_ADMIN and not is_self:
        raise _forbid(
            "Cannot promote other users to SUPER_ADMIN role", message_keys.USER_ROLE_FORBIDDEN
        )
    if is_self and new_role is not None and new_role != Role.SUPER_ADMIN:
        raise _forbid("SUPER_ADMIN cannot demote itself", message_keys.SUPER_ADMIN_PROTECTED)


def authorize_delete(actor: AuthContext, target: User) -> None:
    if target.role == Role.SUPER_ADMIN.value:
        raise _forbid("Cannot delete SUPER_ADMIN account", message_keys.SUPER_ADMIN_PROTECTED)
    if not has_at_least(actor.role, Role.ADMIN) and actor.id != target.id:
        raise _forbid("You can only delete your own account")
    if actor.role == Role.ADMIN and target.role == Role.ADMIN.value and actor.id != target.id:
        raise _forbid("ADMIN cannot delete other ADMIN accounts")


def _get_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", message_keys.USER_NOT_FOUND)
    return user


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    q = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def create_user(db: Session, actor: AuthContext, data: UserCreate) -> UserRead:
    authorize_create(actor, data.role)
    email = data.email.strip().lower()
    if _email_taken(db, email):
        raise ConflictError("Email already exists", message_keys.USER_EMAIL_ALREADY_EXISTS)
    user = User(
        email=email,
        password_hash=hash_password(data.password),
        name=data.name.strip(),
        role=data.role.value,
        is_active=True,
        phone=data.phone,
        avatar=data.avatar,
    )
    try:
        with unit_of_work(db):
            db.add(user)
    except IntegrityError as e:
        raise ConflictError("Email already exists", message_keys.USER_EMAIL_ALREADY_EXISTS) from e
    db.refresh(user)
    logger.info("User created: user_id=%s role=%s by=%s", user.id, user.role, actor.id)
    return UserRead.model_validate(user)


def list_users(db: Session, actor: AuthContext, query: UserListQuery) -> PaginatedUsers:
    """Page through accounts the actor may see; asking for a hidden role yields an empty page."""
    allowed = visible_roles(actor.role)
    if query.role is not None:
        if query.role not in allowed:
            return PaginatedUsers(items=[], total=0, page=query.page, limit=query.limit, total_pages=0)
        allowed = {query.role}

    q = db.query(User).filter(User.role.in_([r.value for r in allowed]))
    if query.is_active is not None:
        q = q.filter(User.is_active == query.is_active)
    if query.search:
        pattern = f"%{query.search.strip()}%"
        q = q.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    total = q.count()
    rows = (
        q.order_by(User.created_at.desc(), User.id.desc())
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
        .all()
    )
    return PaginatedUsers(
        items=[UserRead.model_validate(u) for u in rows],
        total=total,
        page=query.page,
        limit=query.limit,
        total_pages=math.ceil(total / query.limit) if total else 0,
    )


def get_user(db: Session, actor: AuthContext, user_id: int) -> UserRead:
    user = _get_or_404(db, user_id)
    authorize_view(actor, user)
    return UserRead.model_validate(user)


def update_user(db: Session, actor: AuthContext, user_id: int, changes: UserUpdate) -> UserRead:
    user = _get_or_404(db, user_id)
    authorize_update(actor, user, changes)

    fields = changes.model_dump(exclude_unset=True)
    # email, name, role and is_active are non-nullable; an explicit null leaves them as they are.
    for name in ("email", "name", "role", "is_active", "password"):
        if name in fields and fields[name] is None:
            del fields[name]
    if "email" in fields:
        fields["email"] = fields["email"].strip().lower()
        if _email_taken(db, fields["email"], exclude_id=user.id):
            raise ConflictError("Email already exists", message_keys.USER_EMAIL_ALREADY_EXISTS)
    if "role" in fields:
        fields["role"] = Role(fields["role"]).value
    role_changed = "role" in fields and fields["role"] != user.role
    password = fields.pop("password", None)

    with unit_of_work(db):
        for name, value in fields.items():
            setattr(user, name, value)
        if password:
            user.password_hash = hash_password(password)
        # Deactivation, a role change or a new password ends the current session.
        if role_changed or password or fields.get("is_active") is False:
            user.refresh_token_hash = None
    db.refresh(user)
    logger.info("User updated: user_id=%s by=%s", user.id, actor.id)
    return UserRead.model_validate(user)


def delete_user(db: Session, actor: AuthContext, user_id: int) -> UserRead:
    """Hard-delete an account. Accounts that own orders are kept (orders are never deleted)."""
    user = _get_or_404(db, user_id)
    authorize_delete(actor, user)
    if db.query(Order.id).filter(Order.user_id == user.id).first() is not None:
        raise ConflictError(
            "User has rental orders; deactivate the account instead",
            message_keys.USER_HAS_ORDERS,
        )
    snapshot = UserRead.model_validate(user)
    with unit_of_work(db):
        db.delete(user)
    logger.info("User deleted: user_id=%s by=%s", user_id, actor.id)
    return snapshot
