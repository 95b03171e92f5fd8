"""
Application exceptions and the handlers that render them.

Every failure leaves the API as:

    {"error": {"code", "message", "details"?, "timestamp", "path", "requestId"}}

where code is stable and machine-readable and requestId is the correlation id.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.middleware import CORRELATION_ID_HEADER

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for client-facing application errors."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None) -> None:
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class BadRequestError(AppError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class EmailTakenError(AppError):
    code = "EMAIL_TAKEN"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email already registered"


class InvalidOrExpiredTokenError(AppError):
    code = "INVALID_OR_EXPIRED_TOKEN"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired token"


class AlreadyVerifiedError(AppError):
    code = "ALREADY_VERIFIED"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email already verified"


class IncorrectPasswordError(AppError):
    code = "INCORRECT_PASSWORD"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Current password is incorrect"


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(UnauthorizedError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class InvalidRefreshTokenError(UnauthorizedError):
    code = "INVALID_REFRESH_TOKEN"
    default_message = "Invalid refresh token"


class UserNotFoundError(UnauthorizedError):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class SessionExpiredError(UnauthorizedError):
    code = "SESSION_EXPIRED"
    default_message = "Session expired"


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


# Codes for errors raised outside the application (framework HTTPException).
STATUS_CODE_MAP = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: "PAYLOAD_TOO_LARGE",
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: "UNSUPPORTED_MEDIA_TYPE",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMIT_EXCEEDED",
    status.HTTP_503_SERVICE_UNAVAILABLE: "SERVICE_UNAVAILABLE",
}


def request_id(request: Request) -> str:
    # the contextvar is already reset when the server-error handler runs
    return correlation_id.get() or request.headers.get(CORRELATION_ID_HEADER) or "-"


def error_body(
    request: Request,
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build the error envelope for a request."""
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "timestamp": datetime.now(UTC).isoformat(),
        "path": request.url.path,
        "requestId": request_id(request),
    }
    if details:
        error["details"] = details
    return {"error": error}


def _log_client_error(request: Request, status_code: int, code: str, message: str) -> None:
    logger.warning(
        "%s %s - %s - %s",
        request.method,
        request.url.path,
        status_code,
        message,
        extra={"error_code": code},
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s - %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        _log_client_error(request, exc.status_code, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.code, exc.message),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = STATUS_CODE_MAP.get(exc.status_code, "INTERNAL_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else "An error occurred"
    _log_client_error(request, exc.status_code, code, message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, code, message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for err in exc.errors():
        # loc is e.g. ("body", "email"); drop the source segment
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or "unknown", "message": err.get("msg", "")})
    _log_client_error(request, 422, "VALIDATION_ERROR", "Validation failed")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(request, "VALIDATION_ERROR", "Validation failed", details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "INTERNAL_ERROR", "An unexpected error occurred"),
        headers={CORRELATION_ID_HEADER: request_id(request)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
