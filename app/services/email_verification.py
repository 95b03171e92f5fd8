"""Email verification: issue a single-use token by mail, consume it to mark the email verified."""

import logging
from datetime import timedelta

from app.core.clock import Clock, utc_now
from app.core.exceptions import AlreadyVerifiedError, InvalidOrExpiredTokenError
from app.core.security import generate_flow_token
from app.models import User
from app.repositories import UserRepository
from app.services.mail import MailService
from app.services.user_cache import UserCache

logger = logging.getLogger(__name__)

VERIFICATION_TTL = timedelta(hours=24)


class EmailVerificationService:
    def __init__(
        self,
        users: UserRepository,
        mail: MailService,
        cache: UserCache,
        ttl: timedelta = VERIFICATION_TTL,
        now: Clock = utc_now,
    ) -> None:
        self.users = users
        self.mail = mail
        self.cache = cache
        self.ttl = ttl
        self.now = now

    def send_verification_email(self, user: User) -> None:
        """Replace any outstanding verification token with a fresh one and mail the link."""
        token = generate_flow_token()
        self.users.set_verification_token(user.id, token, self.now() + self.ttl)
        self.mail.send_email_verification(user.email, token)

    def verify_email(self, token: str) -> None:
        """Consume a verification token. Raises InvalidOrExpiredTokenError if unknown, used or expired."""
        now = self.now()
        user = self.users.find_by_verification_token(token, now)
        if user is None:
            raise InvalidOrExpiredTokenError("Invalid or expired verification token")
        user_id, user_uid = user.id, user.uid
        # Conditional update: a concurrent consumer that got there first leaves nothing to match.
        if not self.users.consume_verification_token(user_id, token, now):
            raise InvalidOrExpiredTokenError("Invalid or expired verification token")
        self.cache.invalidate(user_id)
        logger.info("Email verified", extra={"user_uid": user_uid})

    def resend_verification_email(self, email: str) -> None:
        """
        Mail a new verification link. Silently does nothing for unknown emails;
        raises AlreadyVerifiedError when the account is already verified.
        """
        user = self.users.get_active_by_email(email)
        if user is None:
            return
        if user.email_verified:
            raise AlreadyVerifiedError()
        self.send_verification_email(user)
