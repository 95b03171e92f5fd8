"""Outgoing email: verification and password reset messages over SMTP."""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING
from urllib.parse import urlencode

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
      <h2>{heading}</h2>
      <p>{intro}</p>
      <a href="{url}"
         style="display: inline-block; padding: 12px 24px; background-color: #007bff;
                color: white; text-decoration: none; border-radius: 4px; margin: 16px 0;">
        {button}
      </a>
      <p style="color: #666; font-size: 14px;">
        Or copy and paste this link: <br/>
        <a href="{url}">{url}</a>
      </p>
      <p style="color: #666; font-size: 12px; margin-top: 32px;">{footer}</p>
    </div>
  </body>
</html>
"""


class MailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot receive a message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def build_link(base_url: str, token: str) -> str:
    """Append ?token=... (or &token=...) to a frontend URL."""
    sep = "&" if "?" in base_url else "?"
    return f"{base_url}{sep}{urlencode({'token': token})}"


class MailService:
    """
    Sends transactional email via SMTP with STARTTLS.

    When no SMTP host is configured the service runs in log-only mode: it logs
    the recipient and subject and returns without sending. Tokens are never logged.
    """

    def __init__(
        self,
        smtp_host: str | None,
        smtp_port: int = 587,
        smtp_username: str | None = None,
        smtp_password: str | None = None,
        from_email: str | None = None,
        from_name: str = "Gatehouse",
        timeout: float = 10.0,
        verification_url: str = "http://localhost:3000/verify-email",
        reset_url: str = "http://localhost:3000/reset-password",
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self.verification_url = verification_url
        self.reset_url = reset_url
        self.enabled = bool(smtp_host and from_email)

    @classmethod
    def from_settings(cls, settings: Settings) -> MailService:
        return cls(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_username=settings.SMTP_USERNAME,
            smtp_password=(
                settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
            ),
            from_email=settings.MAIL_FROM,
            from_name=settings.MAIL_FROM_NAME,
            timeout=settings.SMTP_TIMEOUT_SEC,
            verification_url=settings.EMAIL_VERIFICATION_URL,
            reset_url=settings.PASSWORD_RESET_URL,
        )

    def send_email_verification(self, to_email: str, token: str) -> None:
        url = build_link(self.verification_url, token)
        html = _HTML_TEMPLATE.format(
            heading="Verify Your Email",
            intro="Please click the button below to verify your email address:",
            url=url,
            button="Verify Email",
            footer="If you didn't create an account, you can safely ignore this email. "
            "This link will expire in 24 hours.",
        )
        text = (
            "Verify your email\n\n"
            f"Open this link to verify your email address:\n{url}\n\n"
            "This link will expire in 24 hours."
        )
        self.send_mail(to_email, "Verify your email", html, text)

    def send_password_reset(self, to_email: str, token: str) -> None:
        url = build_link(self.reset_url, token)
        html = _HTML_TEMPLATE.format(
            heading="Reset Your Password",
            intro="You requested to reset your password. Click the button below to proceed:",
            url=url,
            button="Reset Password",
            footer="If you didn't request a password reset, you can safely ignore this email. "
            "This link will expire in 1 hour.",
        )
        text = (
            "Reset your password\n\n"
            f"Open this link to choose a new password:\n{url}\n\n"
            "This link will expire in 1 hour."
        )
        self.send_mail(to_email, "Reset your password", html, text)

    def send_mail(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        """Send one multipart message. Raises MailDeliveryError on SMTP failure."""
        if not self.enabled:
            logger.info(
                "SMTP not configured; skipping email",
                extra={"mail_to": to_email, "mail_subject": subject},
            )
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            raise MailDeliveryError(f"Failed to send email: {e}") from e
        logger.info("Email sent", extra={"mail_to": to_email, "mail_subject": subject})
