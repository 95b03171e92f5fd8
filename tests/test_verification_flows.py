"""Email verification and password reset: single use, expiry boundaries, anti-enumeration."""

import unittest
from datetime import timedelta

from app.core.exceptions import (
    AlreadyVerifiedError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidRefreshTokenError,
)
from app.services.mail import MailDeliveryError
from tests.fakes import ServiceBundle, make_session_factory


class FlowTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.s = ServiceBundle(self.db)
        self.signup = self.s.auth.signup("a@x.com", "Passw0rd!", "A")

    def tearDown(self) -> None:
        self.db.close()


class TestEmailVerification(FlowTestCase):
    def test_verify_marks_user_verified(self) -> None:
        self.s.auth.verify_email(self.s.last_verification_token())
        user = self.s.repo.get_active_by_email("a@x.com")
        self.assertTrue(user.email_verified)
        self.assertIsNone(user.email_verification_token)

    def test_token_is_single_use(self) -> None:
        token = self.s.last_verification_token()
        self.s.auth.verify_email(token)
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.s.auth.verify_email(token)

    def test_unknown_token_rejected(self) -> None:
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.s.auth.verify_email("0" * 64)

    def test_valid_just_before_expiry(self) -> None:
        token = self.s.last_verification_token()
        self.s.clock.advance(timedelta(hours=24) - timedelta(microseconds=1))
        self.s.auth.verify_email(token)
        self.assertTrue(self.s.repo.get_active_by_email("a@x.com").email_verified)

    def test_expired_exactly_at_expiry(self) -> None:
        token = self.s.last_verification_token()
        self.s.clock.advance(timedelta(hours=24))
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.s.auth.verify_email(token)
        self.assertFalse(self.s.repo.get_active_by_email("a@x.com").email_verified)

    def test_resend_replaces_token(self) -> None:
        old = self.s.last_verification_token()
        self.s.auth.resend_verification_email("a@x.com")
        new = self.s.last_verification_token()
        self.assertNotEqual(old, new)
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.s.auth.verify_email(old)
        self.s.auth.verify_email(new)

    def test_resend_for_unknown_email_is_silent(self) -> None:
        self.s.mail.reset_mock()
        self.s.auth.resend_verification_email("nobody@x.com")
        self.s.mail.send_email_verification.assert_not_called()

    def test_resend_for_verified_user_fails(self) -> None:
        self.s.auth.verify_email(self.s.last_verification_token())
        with self.assertRaises(AlreadyVerifiedError):
            self.s.auth.resend_verification_email("a@x.com")


class TestPasswordReset(FlowTestCase):
    def test_reset_changes_password_and_ends_sessions(self) -> None:
        self.s.auth.forgot_password("a@x.com")
        self.s.auth.reset_password(self.s.last_reset_token(), "N3wPassword!")

        with self.assertRaises(InvalidRefreshTokenError):
            self.s.auth.refresh_tokens(self.signup.refresh_token)
        with self.assertRaises(InvalidCredentialsError):
            self.s.auth.signin("a@x.com", "Passw0rd!")
        self.assertTrue(self.s.auth.signin("a@x.com", "N3wPassword!").access_token)

    def test_token_is_single_use(self) -> None:
        self.s.auth.forgot_password("a@x.com")
        token = self.s.last_reset_token()
        self.s.auth.reset_password(token, "N3wPassword!")
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.s.auth.reset_password(token, "Another1!")

    def test_valid_just_before_expiry(self) -> None:
        self.s.auth.forgot_password("a@x.com")
        self.s.clock.advance(timedelta(hours=1) - timedelta(microseconds=1))
        self.s.auth.reset_password(self.s.last_reset_token(), "N3wPassword!")

    def test_expired_exactly_at_expiry(self) -> None:
        self.s.auth.forgot_password("a@x.com")
        self.s.clock.advance(timedelta(hours=1))
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.s.auth.reset_password(self.s.last_reset_token(), "N3wPassword!")
        self.assertTrue(self.s.auth.signin("a@x.com", "Passw0rd!").access_token)

    def test_unknown_email_sends_nothing(self) -> None:
        self.s.auth.forgot_password("nobody@x.com")
        self.s.mail.send_password_reset.assert_not_called()

    def test_delivery_failure_is_not_reported(self) -> None:
        self.s.mail.send_password_reset.side_effect = MailDeliveryError("smtp down")
        self.s.auth.forgot_password("a@x.com")
        self.s.mail.send_password_reset.assert_called_once()


if __name__ == "__main__":
    unittest.main()
