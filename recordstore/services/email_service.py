"""Email service for account notifications (welcome, password reset)."""

from typing import Optional
from urllib.parse import urlencode

import aiosmtplib
import structlog

from recordstore.config import Settings, get_settings
from recordstore.models.user import User
from recordstore.services.auth_service import RESET_TOKEN_EXPIRE_MINUTES

logger = structlog.get_logger(__name__)


class EmailService:
    """Service for sending account emails via SMTP."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def send_email(self, to_email: str, subject: str, body: str) -> bool:
        """Send a plain-text email via SMTP.

        Returns True on success (or when email is disabled), False on failure.
        """
        settings = self.settings

        if not settings.email_enabled:
            logger.info("email_disabled_skipping_send", to=to_email, subject=subject)
            return True

        message = (
            f"From: {settings.email_from}\r\n"
            f"To: {to_email}\r\n"
            f"Subject: {subject}\r\n"
            f"Content-Type: text/plain; charset=utf-8\r\n"
            f"\r\n"
            f"{body}"
        )

        try:
            await aiosmtplib.send(
                message,
                sender=settings.email_from,
                recipients=[to_email],
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username or None,
                password=settings.smtp_password or None,
                use_tls=settings.smtp_use_tls,
            )
        except Exception as e:
            logger.error("email_send_failed", to=to_email, subject=subject, error=str(e))
            return False

        logger.info("email_sent", to=to_email, subject=subject)
        return True

    async def send_welcome_email(self, user: User) -> bool:
        """Send the post-registration welcome email."""
        body = (
            f"WELCOME {user.name.upper()}!\n\n"
            f"Your account '{user.username}' has been created.\n"
            f"You can sign in at {self.settings.frontend_url}\n\n"
            f"---\n"
            f"Happy listening."
        )
        return await self.send_email(user.email, "Welcome to Record Store", body)

    async def send_reset_password_email(self, user: User, token: str) -> bool:
        """Send password reset instructions carrying the raw reset token."""
        link = f"{self.settings.frontend_url}/reset_password?{urlencode({'token': token})}"
        body = (
            f"Hello {user.name},\n\n"
            f"We received a request to reset your password.\n"
            f"Use the link below within {RESET_TOKEN_EXPIRE_MINUTES} minutes:\n\n"
            f"{link}\n\n"
            f"Reset token: {token}\n\n"
            f"If you did not ask for a reset, you can ignore this email."
        )
        return await self.send_email(user.email, "Password reset instructions", body)
