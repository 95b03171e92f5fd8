"""Request/response schemas for user profile and admin endpoints."""

from datetime import datetime

from pydantic import Field

from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.models import Role
from app.schemas.common import CamelModel, PaginationMeta


class UserResponse(CamelModel):
    """Public view of a user; the numeric id and secrets are never exposed."""

    uid: str
    email: str
    full_name: str
    role: Role
    email_verified: bool
    created_at: datetime | None = None


class UsersPage(CamelModel):
    data: list[UserResponse]
    meta: PaginationMeta


class UpdateProfileRequest(CamelModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)


class AdminUpdateUserRequest(CamelModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: Role | None = None


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
