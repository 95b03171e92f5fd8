"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.models import Role
from app.schemas.common import CamelModel
from app.schemas.users import UserResponse


class SignupRequest(CamelModel):
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    full_name: str = Field(..., min_length=1, max_length=255)


class SigninRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class VerifyEmailRequest(CamelModel):
    token: str = Field(..., min_length=1, max_length=128)


class AuthResponse(CamelModel):
    """Token pair plus the public user projection."""

    access_token: str = Field(..., description="Short-lived JWT for the Authorization header")
    refresh_token: str = Field(..., description="Single-use JWT exchanged at /auth/refresh")
    token_type: str = Field(default="bearer")
    user: UserResponse


class CurrentUser(BaseModel):
    """Authenticated user resolved from a bearer token, for dependency injection."""

    model_config = ConfigDict(frozen=True)

    id: int
    uid: str
    email: str
    full_name: str
    role: Role
