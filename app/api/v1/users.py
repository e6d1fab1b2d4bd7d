"""User administration endpoints. Role rules are enforced in app.services.users."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import CurrentUser, require_mod
from app.core import message_keys
from app.core.database import get_db
from app.core.roles import Role
from app.schemas.auth import AuthContext, UserRead
from app.schemas.common import ApiResponse, envelope
from app.schemas.users import PaginatedUsers, UserCreate, UserListQuery, UserUpdate
from app.services import auth as auth_service
from app.services import users as user_service

router = APIRouter()

StaffUser = Annotated[AuthContext, Depends(require_mod)]


@router.post("", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    actor: StaffUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserRead]:
    """Provision an account. Mods may only create 'user'; only super_admin may create admins."""
    user = user_service.create_user(db, actor, body)
    return envelope(
        status.HTTP_201_CREATED, "User created successfully", message_keys.USER_CREATED, user
    )


@router.get("", response_model=ApiResponse[PaginatedUsers])
def list_users(
    actor: StaffUser,
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: str | None = None,
    role: Role | None = None,
    is_active: bool | None = None,
) -> ApiResponse[PaginatedUsers]:
    """Paginated list, restricted to the roles the caller may see."""
    query = UserListQuery(page=page, limit=limit, search=search, role=role, is_active=is_active)
    result = user_service.list_users(db, actor, query)
    return envelope(
        status.HTTP_200_OK,
        "Users retrieved successfully",
        message_keys.USER_FETCH_ALL_SUCCESS,
        result,
    )


@router.get("/me", response_model=ApiResponse[UserRead])
def get_me(
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserRead]:
    user = auth_service.get_user_details(db, current_user.id)
    return envelope(
        status.HTTP_200_OK, "User retrieved successfully", message_keys.USER_FETCH_SUCCESS, user
    )


@router.get("/{user_id}", response_model=ApiResponse[UserRead])
def get_user(
    user_id: int,
    actor: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserRead]:
    user = user_service.get_user(db, actor, user_id)
    return envelope(
        status.HTTP_200_OK, "User retrieved successfully", message_keys.USER_FETCH_SUCCESS, user
    )


@router.put("/{user_id}", response_model=ApiResponse[UserRead])
def update_user(
    user_id: int,
    body: UserUpdate,
    actor: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserRead]:
    """
    Partial update. Users may edit their own profile fields; role and is_active
    changes require staff rights over the target.
    """
    user = user_service.update_user(db, actor, user_id, body)
    return envelope(
        status.HTTP_200_OK, "User updated successfully", message_keys.USER_UPDATED, user
    )


@router.delete("/{user_id}", response_model=ApiResponse[UserRead])
def delete_user(
    user_id: int,
    actor: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserRead]:
    user = user_service.delete_user(db, actor, user_id)
    return envelope(
        status.HTTP_200_OK, "User deleted successfully", message_keys.USER_DELETED, user
    )
