"""FastAPI dependencies: service wiring, bearer authentication and role checks."""

from collections.abc import Callable
from datetime import timedelta
from typing import Annotated

import redis
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.cache import get_redis
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import InvalidTokenError, TokenIssuer
from app.models import Role
from app.repositories import UserRepository
from app.schemas.auth import CurrentUser
from app.services.auth import AuthService
from app.services.email_verification import EmailVerificationService
from app.services.identity import IdentityResolver
from app.services.mail import MailService
from app.services.password_reset import PasswordResetService
from app.services.storage import StorageService
from app.services.upload import UploadService
from app.services.user_cache import UserCache
from app.services.users import UsersService

security = HTTPBearer(auto_error=False)

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_user_repository(db: Annotated[Session, Depends(get_db)]) -> UserRepository:
    return UserRepository(db)


def get_user_cache(
    client: Annotated[redis.Redis, Depends(get_redis)],
    settings: SettingsDep,
) -> UserCache:
    return UserCache(client, ttl_seconds=settings.USER_CACHE_TTL_SECONDS)


def get_token_issuer(settings: SettingsDep) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


def get_mail_service(settings: SettingsDep) -> MailService:
    return MailService.from_settings(settings)


def get_storage_service(settings: SettingsDep) -> StorageService:
    return StorageService.from_settings(settings)


UsersRepoDep = Annotated[UserRepository, Depends(get_user_repository)]
UserCacheDep = Annotated[UserCache, Depends(get_user_cache)]


def get_email_verification_service(
    users: UsersRepoDep,
    mail: Annotated[MailService, Depends(get_mail_service)],
    cache: UserCacheDep,
    settings: SettingsDep,
) -> EmailVerificationService:
    return EmailVerificationService(
        users, mail, cache, ttl=timedelta(hours=settings.EMAIL_VERIFICATION_TTL_HOURS)
    )


def get_password_reset_service(
    users: UsersRepoDep,
    mail: Annotated[MailService, Depends(get_mail_service)],
    cache: UserCacheDep,
    settings: SettingsDep,
) -> PasswordResetService:
    return PasswordResetService(
        users,
        mail,
        cache,
        ttl=timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )


def get_auth_service(
    users: UsersRepoDep,
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
    cache: UserCacheDep,
    email_verification: Annotated[
        EmailVerificationService, Depends(get_email_verification_service)
    ],
    password_reset: Annotated[PasswordResetService, Depends(get_password_reset_service)],
    settings: SettingsDep,
) -> AuthService:
    return AuthService(
        users,
        tokens,
        cache,
        email_verification,
        password_reset,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )


def get_users_service(
    users: UsersRepoDep, cache: UserCacheDep, settings: SettingsDep
) -> UsersService:
    return UsersService(users, cache, bcrypt_rounds=settings.BCRYPT_ROUNDS)


def get_upload_service(
    storage: Annotated[StorageService, Depends(get_storage_service)],
    settings: SettingsDep,
) -> UploadService:
    return UploadService(
        storage,
        max_file_size=settings.MAX_FILE_SIZE,
        allowed_mime_types=settings.allowed_mime_types,
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
    users: UsersRepoDep,
    cache: UserCacheDep,
) -> CurrentUser:
    """Dependency: require a valid access token for an active session. Raises 401 otherwise."""
    if credentials is None:
        raise UnauthorizedError()
    try:
        claims = tokens.verify(credentials.credentials, "access")
    except InvalidTokenError as e:
        raise UnauthorizedError("Invalid or expired token") from e
    return IdentityResolver(users, cache).resolve(claims)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def require_roles(*roles: Role) -> Callable[[CurrentUser], CurrentUser]:
    """Dependency factory: allow only users holding one of roles. Raises 403 otherwise."""
    allowed = frozenset(roles)

    def checker(current_user: CurrentUserDep) -> CurrentUser:
        if current_user.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return checker


AdminDep = Annotated[CurrentUser, Depends(require_roles(Role.SUPERADMIN, Role.ADMIN))]
