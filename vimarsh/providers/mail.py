"""
Outgoing mail.

``LoggingMailSender`` writes each message to the application log instead of
delivering it; swap in a real transport by implementing ``MailSender``.
"""

import logging
from abc import ABC, abstractmethod

from vimarsh.models import User

logger = logging.getLogger(__name__)

_RULE = "=" * 50


class MailSender(ABC):
    """Abstract base class for transactional mail."""

    @abstractmethod
    async def send_otp_email(self, user: User) -> None:
        """Send the account verification passcode."""
        ...

    @abstractmethod
    async def send_welcome_email(self, user: User) -> None:
        ...

    @abstractmethod
    async def send_password_reset_email(self, user: User) -> None:
        ...


class LoggingMailSender(MailSender):
    """Mail sender that logs messages instead of delivering them."""

    def __init__(self, frontend_url: str = ""):
        self.frontend_url = frontend_url.rstrip("/") or "http://localhost:8080"

    def _log_message(self, title: str, to: str, subject: str, *lines: str) -> None:
        body = "\n".join([_RULE, title, _RULE, f"To: {to}", f"Subject: {subject}", *lines, _RULE])
        logger.info(f"\n{body}")

    async def send_otp_email(self, user: User) -> None:
        self._log_message(
            "OTP VERIFICATION EMAIL",
            user.email,
            "Verify your Code Vimarsh account",
            f"Your OTP code is: {user.otp_code}",
            "This code will expire in 10 minutes.",
        )

    async def send_welcome_email(self, user: User) -> None:
        self._log_message(
            "WELCOME EMAIL",
            user.email,
            "Welcome to Code Vimarsh!",
            "Your account has been successfully verified.",
        )

    async def send_password_reset_email(self, user: User) -> None:
        reset_url = f"{self.frontend_url}/reset-password?token={user.password_reset_token}"
        self._log_message(
            "PASSWORD RESET EMAIL",
            user.email,
            "Reset your Code Vimarsh password",
            f"Reset link: {reset_url}",
            "This link will expire in 10 minutes.",
        )
