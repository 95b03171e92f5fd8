"""
Session lifecycle: signup, signin, refresh and logout.

A session is active while the user row holds a refresh-token hash. Signin and
refresh replace the hash (so a refresh token works once), logout and password
reset clear it. Every write is followed by a cache invalidation before the
method returns, so identity resolution never sees the pre-write state.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from app.core.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
)
from app.core.security import (
    BCRYPT_ROUNDS,
    InvalidTokenError,
    TokenClaims,
    TokenIssuer,
    TokenPair,
    hash_password,
    hash_token,
    verify_password,
    verify_token_hash,
)
from app.models import User
from app.repositories import UserRepository
from app.services.email_verification import EmailVerificationService
from app.services.mail import MailDeliveryError
from app.services.password_reset import PasswordResetService
from app.services.user_cache import UserCache

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    access_token: str
    refresh_token: str
    user: User


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    # Compared against when the email is unknown so both signin failures cost one bcrypt check.
    return hash_password("not-a-real-password")


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        tokens: TokenIssuer,
        cache: UserCache,
        email_verification: EmailVerificationService,
        password_reset: PasswordResetService,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ) -> None:
        self.users = users
        self.tokens = tokens
        self.cache = cache
        self.email_verification = email_verification
        self.password_reset = password_reset
        self.bcrypt_rounds = bcrypt_rounds

    def signup(self, email: str, password: str, full_name: str) -> AuthResult:
        """
        Create an unverified regular user and start a session.

        Raises EmailTakenError when an active account already uses the email.
        The account is kept even if the verification email cannot be delivered;
        the user can ask for it again via resend-verification.
        """
        if self.users.get_active_by_email(email) is not None:
            raise EmailTakenError()
        user = self.users.create(
            email=email,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            full_name=full_name,
        )
        logger.info("User signed up", extra={"user_uid": user.uid})
        try:
            self.email_verification.send_verification_email(user)
        except MailDeliveryError:
            logger.exception("Verification email not delivered", extra={"user_uid": user.uid})

        pair = self._start_session(user)
        return AuthResult(pair.access_token, pair.refresh_token, user)

    def signin(self, email: str, password: str) -> AuthResult:
        """Raises InvalidCredentialsError for an unknown email and a wrong password alike."""
        user = self.users.get_active_by_email(email)
        if user is None:
            verify_password(password, _dummy_password_hash())
            raise InvalidCredentialsError()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        pair = self._start_session(user)
        return AuthResult(pair.access_token, pair.refresh_token, user)

    def logout(self, user_id: int) -> None:
        """End the session. Idempotent."""
        self.users.set_refresh_token_hash(user_id, None)
        self.cache.invalidate(user_id)

    def refresh_tokens(self, refresh_token: str) -> AuthResult:
        """
        Exchange a refresh token for a new pair. The old refresh token stops
        working immediately. Every failure is InvalidRefreshTokenError.
        """
        try:
            claims = self.tokens.verify(refresh_token, "refresh")
        except InvalidTokenError as e:
            raise InvalidRefreshTokenError() from e

        user = self.users.get_active_by_id(claims.subject_id)
        if user is None or not user.refresh_token_hash:
            raise InvalidRefreshTokenError()
        stored_hash = user.refresh_token_hash
        if not verify_token_hash(refresh_token, stored_hash):
            raise InvalidRefreshTokenError()

        user_id = user.id
        pair = self.tokens.issue_pair(self._claims_for(user))
        new_hash = hash_token(pair.refresh_token, rounds=self.bcrypt_rounds)
        # Compare-and-swap: of two concurrent refreshes with one token, only one rotates.
        if not self.users.rotate_refresh_token_hash(user_id, stored_hash, new_hash):
            raise InvalidRefreshTokenError()
        self.cache.invalidate(user_id)
        return AuthResult(pair.access_token, pair.refresh_token, user)

    def forgot_password(self, email: str) -> None:
        self.password_reset.send_password_reset_email(email)

    def reset_password(self, token: str, password: str) -> None:
        self.password_reset.reset_password(token, password)

    def verify_email(self, token: str) -> None:
        self.email_verification.verify_email(token)

    def resend_verification_email(self, email: str) -> None:
        self.email_verification.resend_verification_email(email)

    @staticmethod
    def _claims_for(user: User) -> TokenClaims:
        return TokenClaims(subject_id=user.id, uid=user.uid, email=user.email)

    def _start_session(self, user: User) -> TokenPair:
        """Issue a pair, store the refresh-token hash, then drop the cached projection."""
        user_id = user.id
        pair = self.tokens.issue_pair(self._claims_for(user))
        self.users.set_refresh_token_hash(
            user_id, hash_token(pair.refresh_token, rounds=self.bcrypt_rounds)
        )
        self.cache.invalidate(user_id)
        return pair
