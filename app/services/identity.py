"""Resolve verified access-token claims to the current user, cache first."""

from app.core.exceptions import SessionExpiredError, UserNotFoundError
from app.core.security import TokenClaims
from app.repositories import UserRepository
from app.schemas.auth import CurrentUser
from app.services.user_cache import CachedUser, UserCache


class IdentityResolver:
    """
    Access tokens stay cryptographically valid until they expire, so the
    session check happens here: a user whose refresh token was cleared (logout,
    password reset, deletion) is rejected even with an unexpired access token.
    """

    def __init__(self, users: UserRepository, cache: UserCache) -> None:
        self.users = users
        self.cache = cache

    def resolve(self, claims: TokenClaims) -> CurrentUser:
        cached = self.cache.get(claims.subject_id)
        if cached is None:
            user = self.users.get_active_by_id(claims.subject_id)
            if user is None:
                raise UserNotFoundError()
            self.cache.set(user)
            cached = CachedUser.from_user(user)

        if cached.deleted_at is not None:
            raise UserNotFoundError()
        if not cached.refresh_token_hash:
            raise SessionExpiredError()

        return CurrentUser(
            id=cached.id,
            uid=cached.uid,
            email=cached.email,
            full_name=cached.full_name,
            role=cached.role,
        )
