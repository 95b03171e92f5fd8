"""Authentication routes: signup, signin, token refresh, logout and account recovery."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import EmailStr

from app.api.v1.deps import CurrentUserDep, get_auth_service
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    VerifyEmailRequest,
)
from app.schemas.common import MessageResponse
from app.schemas.users import UserResponse
from app.services.auth import AuthResult, AuthService

router = APIRouter()

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"
RESEND_VERIFICATION_MESSAGE = (
    "If an account with that email exists and is not verified, a verification email has been sent"
)


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, auth: AuthServiceDep) -> AuthResponse:
    """Register a new account and return a token pair. A verification email is sent."""
    return _auth_response(auth.signup(body.email, body.password, body.full_name))


@router.post("/signin", response_model=AuthResponse)
def signin(body: SigninRequest, auth: AuthServiceDep) -> AuthResponse:
    """
    Authenticate with email and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    return _auth_response(auth.signin(body.email, body.password))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(current_user: CurrentUserDep, auth: AuthServiceDep) -> None:
    """Invalidate the refresh token; access tokens stop working on the next request."""
    auth.logout(current_user.id)


@router.post("/refresh", response_model=AuthResponse)
def refresh(body: RefreshTokenRequest, auth: AuthServiceDep) -> AuthResponse:
    """Exchange a refresh token for a new pair. Each refresh token works once."""
    return _auth_response(auth.refresh_tokens(body.refresh_token))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(body: ForgotPasswordRequest, auth: AuthServiceDep) -> MessageResponse:
    auth.forgot_password(body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(body: ResetPasswordRequest, auth: AuthServiceDep) -> MessageResponse:
    auth.reset_password(body.token, body.password)
    return MessageResponse(message="Password reset successfully")


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(body: VerifyEmailRequest, auth: AuthServiceDep) -> MessageResponse:
    auth.verify_email(body.token)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    email: Annotated[EmailStr, Query()],
    auth: AuthServiceDep,
) -> MessageResponse:
    auth.resend_verification_email(email)
    return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)
