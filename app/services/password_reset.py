"""Password recovery: mail a one-hour reset token, consume it to set a new password."""

import logging
from datetime import timedelta

from app.core.clock import Clock, utc_now
from app.core.exceptions import InvalidOrExpiredTokenError
from app.core.security import BCRYPT_ROUNDS, generate_flow_token, hash_password
from app.repositories import UserRepository
from app.services.mail import MailDeliveryError, MailService
from app.services.user_cache import UserCache

logger = logging.getLogger(__name__)

RESET_TTL = timedelta(hours=1)


class PasswordResetService:
    def __init__(
        self,
        users: UserRepository,
        mail: MailService,
        cache: UserCache,
        ttl: timedelta = RESET_TTL,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
        now: Clock = utc_now,
    ) -> None:
        self.users = users
        self.mail = mail
        self.cache = cache
        self.ttl = ttl
        self.bcrypt_rounds = bcrypt_rounds
        self.now = now

    def send_password_reset_email(self, email: str) -> None:
        """
        Issue a reset token and mail it. Unknown emails and delivery failures are
        not reported to the caller, so the response never reveals whether an
        account exists.
        """
        user = self.users.get_active_by_email(email)
        if user is None:
            return
        token = generate_flow_token()
        self.users.set_password_reset_token(user.id, token, self.now() + self.ttl)
        try:
            self.mail.send_password_reset(user.email, token)
        except MailDeliveryError:
            logger.exception("Password reset email not delivered", extra={"user_uid": user.uid})

    def reset_password(self, token: str, new_password: str) -> None:
        """
        Consume a reset token: set the new password and clear the stored refresh
        token so every existing session must sign in again.
        """
        now = self.now()
        user = self.users.find_by_password_reset_token(token, now)
        if user is None:
            raise InvalidOrExpiredTokenError("Invalid or expired reset token")
        user_id, user_uid = user.id, user.uid
        new_hash = hash_password(new_password, rounds=self.bcrypt_rounds)
        if not self.users.consume_password_reset_token(user_id, token, now, new_hash):
            raise InvalidOrExpiredTokenError("Invalid or expired reset token")
        self.cache.invalidate(user_id)
        logger.info("Password reset", extra={"user_uid": user_uid})
