"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    ForgotPasswordRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    VerifyEmailRequest,
)
from app.schemas.common import MessageResponse, PaginationMeta, PaginationQuery
from app.schemas.health import HealthResponse, LivenessResponse
from app.schemas.upload import (
    PresignedDownloadRequest,
    PresignedUploadRequest,
    PresignedUrlResponse,
    UploadResponse,
)
from app.schemas.users import (
    AdminUpdateUserRequest,
    ChangePasswordRequest,
    UpdateProfileRequest,
    UserResponse,
    UsersPage,
)

__all__ = [
    "AdminUpdateUserRequest",
    "AuthResponse",
    "ChangePasswordRequest",
    "CurrentUser",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LivenessResponse",
    "MessageResponse",
    "PaginationMeta",
    "PaginationQuery",
    "PresignedDownloadRequest",
    "PresignedUploadRequest",
    "PresignedUrlResponse",
    "RefreshTokenRequest",
    "ResetPasswordRequest",
    "SigninRequest",
    "SignupRequest",
    "UpdateProfileRequest",
    "UploadResponse",
    "UserResponse",
    "UsersPage",
    "VerifyEmailRequest",
]
