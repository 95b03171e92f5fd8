"""User profile routes and admin account management."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.v1.deps import AdminDep, CurrentUserDep, get_users_service
from app.schemas.common import PaginationMeta, PaginationQuery
from app.schemas.users import (
    AdminUpdateUserRequest,
    ChangePasswordRequest,
    UpdateProfileRequest,
    UserResponse,
    UsersPage,
)
from app.services.users import UsersService

router = APIRouter()

UsersServiceDep = Annotated[UsersService, Depends(get_users_service)]


@router.get("", response_model=UsersPage)
def list_users(
    _admin: AdminDep,
    pagination: Annotated[PaginationQuery, Query()],
    service: UsersServiceDep,
) -> UsersPage:
    """List active users, newest first (admin only)."""
    users, total = service.list_users(offset=pagination.offset, limit=pagination.limit)
    return UsersPage(
        data=[UserResponse.model_validate(u) for u in users],
        meta=PaginationMeta.build(total=total, page=pagination.page, limit=pagination.limit),
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: CurrentUserDep, service: UsersServiceDep) -> UserResponse:
    return UserResponse.model_validate(service.get_by_uid(current_user.uid))


@router.patch("/me", response_model=UserResponse)
def update_me(
    body: UpdateProfileRequest,
    current_user: CurrentUserDep,
    service: UsersServiceDep,
) -> UserResponse:
    user = service.update_profile(current_user.uid, full_name=body.full_name)
    return UserResponse.model_validate(user)


@router.patch("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    body: ChangePasswordRequest,
    current_user: CurrentUserDep,
    service: UsersServiceDep,
) -> None:
    service.change_password(current_user.uid, body.current_password, body.new_password)


@router.get("/{uid}", response_model=UserResponse)
def get_user(uid: str, _admin: AdminDep, service: UsersServiceDep) -> UserResponse:
    return UserResponse.model_validate(service.get_by_uid(uid))


@router.patch("/{uid}", response_model=UserResponse)
def update_user(
    uid: str,
    body: AdminUpdateUserRequest,
    admin: AdminDep,
    service: UsersServiceDep,
) -> UserResponse:
    """Update another user's name or role. Superadmin accounts are protected."""
    user = service.admin_update(uid, admin, full_name=body.full_name, role=body.role)
    return UserResponse.model_validate(user)


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(uid: str, admin: AdminDep, service: UsersServiceDep) -> None:
    service.delete(uid, admin)
