"""
Local credential store and admin authentication.

Local accounts are password accounts gated by an emailed one-time passcode.
Admin sessions are issued against a single operator-configured credential.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

from vimarsh.core.config import AuthConfig, Settings
from vimarsh.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
)
from vimarsh.core.security import (
    PasswordHasher,
    TokenSigner,
    constant_time_equals,
    generate_otp,
    generate_reset_token,
)
from vimarsh.core.validation import (
    normalize_email,
    require_fields,
    validate_login,
    validate_new_password,
    validate_registration,
)
from vimarsh.models import AuthProvider, User, UserPreferences
from vimarsh.models.base import utcnow
from vimarsh.providers.mail import MailSender
from vimarsh.repositories import DuplicateKeyError, UserRepository

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"
USER_TOKEN_TYPE = "user"
ADMIN_TOKEN_TYPE = "admin"


class LocalCredentialStore:
    """
    Password accounts with OTP verification and reset tokens.

    Password hashing runs in a worker thread; bcrypt is deliberately slow.
    """

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        signer: TokenSigner,
        mail: MailSender,
        config: AuthConfig,
    ):
        self.users = users
        self.hasher = hasher
        self.signer = signer
        self.mail = mail
        self.config = config

    def issue_token(self, user: User) -> str:
        """Sign a member session token for ``user``."""
        claims = {
            "sub": user.id,
            "userId": user.id,
            "email": user.email,
            "role": user.role.value,
            "type": USER_TOKEN_TYPE,
        }
        return self.signer.create(claims, timedelta(minutes=self.config.access_token_expire_minutes))

    async def _send(self, send: Callable[[User], Awaitable[None]], user: User) -> None:
        try:
            await send(user)
        except Exception:
            logger.exception(f"Failed to send mail to {user.email}")

    def _new_otp(self, user: User) -> None:
        user.otp_code = generate_otp()
        user.otp_expires = utcnow() + timedelta(minutes=self.config.otp_ttl_minutes)

    async def create_user(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        subscribe_newsletter: bool = False,
    ) -> User:
        """
        Create a temporary local account and email its passcode.

        Raises:
            BadRequestError: Missing or invalid fields.
            ConflictError: The email is already registered.
        """
        validate_registration(first_name, last_name, email, password)
        email = normalize_email(email)

        if await self.users.find_by_email(email) is not None:
            raise ConflictError(
                "Email already registered",
                {"email": "An account with this email already exists"},
            )

        user = User(
            auth_provider=AuthProvider.LOCAL,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            password_hash=await asyncio.to_thread(self.hasher.hash, password),
            is_temp_user=True,
            email_verified=False,
            preferences=UserPreferences(subscribe_newsletter=bool(subscribe_newsletter)),
        )
        self._new_otp(user)

        try:
            await self.users.create(user)
        except DuplicateKeyError as e:
            raise ConflictError(
                "Email already registered",
                {"email": "An account with this email already exists"},
            ) from e

        logger.info(f"Created local user {user.id}")
        await self._send(self.mail.send_otp_email, user)
        return user

    async def _find_unverified(self, email: str) -> User:
        user = await self.users.find_by_email(normalize_email(email))
        if user is None:
            raise NotFoundError("User not found")
        if not user.is_temp_user:
            raise BadRequestError("Account already verified")
        return user

    async def verify_otp(self, email: Optional[str], otp: Optional[str]) -> tuple[User, str]:
        """
        Verify an account with its passcode.

        Returns:
            The verified user and a session token.
        """
        require_fields("Email and OTP are required", email=email, otp=otp)
        user = await self._find_unverified(email)

        if not user.otp_code or not constant_time_equals(otp.strip(), user.otp_code):
            raise BadRequestError("Invalid OTP code")
        if user.otp_expires is None or user.otp_expires < utcnow():
            raise BadRequestError("OTP code has expired")

        user.is_temp_user = False
        user.email_verified = True
        user.otp_code = None
        user.otp_expires = None
        user.last_login = utcnow()
        await self.users.update(user)

        logger.info(f"Verified local user {user.id}")
        await self._send(self.mail.send_welcome_email, user)
        return user, self.issue_token(user)

    async def regenerate_otp(self, email: Optional[str]) -> None:
        """Issue a fresh passcode for an unverified account."""
        require_fields("Email is required", email=email)
        user = await self._find_unverified(email)
        self._new_otp(user)
        await self.users.update(user)
        await self._send(self.mail.send_otp_email, user)

    async def login(self, email: Optional[str], password: Optional[str]) -> tuple[User, str]:
        """
        Authenticate a local account.

        Each gate fails with its own message so the client can route the
        user to the right remediation (signup, OTP entry, support).
        """
        validate_login(email, password)
        user = await self.users.find_by_email(normalize_email(email))

        if user is None:
            raise UnauthorizedError(
                "Invalid credentials",
                {"email": "No account found with this email"},
            )
        if not user.is_active:
            raise UnauthorizedError(
                "Account deactivated",
                {"email": "Your account has been deactivated"},
            )
        if user.is_temp_user:
            raise UnauthorizedError(
                "Account not verified",
                {
                    "email": "Please verify your account with OTP before signing in.",
                    "requiresOTPVerification": True,
                },
            )
        if not user.email_verified:
            raise UnauthorizedError(
                "Email not verified",
                {
                    "email": "Please verify your email before signing in.",
                    "requiresEmailVerification": True,
                },
            )
        if not await asyncio.to_thread(self.hasher.verify, password, user.password_hash):
            raise UnauthorizedError(
                "Invalid credentials",
                {"password": "Incorrect password"},
            )

        user.last_login = utcnow()
        await self.users.update(user)
        logger.info(f"Local login for user {user.id}")
        return user, self.issue_token(user)

    async def forgot_password(self, email: Optional[str]) -> str:
        """
        Start a password reset.

        The response is identical whether or not the account exists.
        """
        require_fields("Email is required", email=email)
        user = await self.users.find_by_email(normalize_email(email))
        if user is not None:
            user.password_reset_token = generate_reset_token()
            user.password_reset_expires = utcnow() + timedelta(
                minutes=self.config.reset_token_ttl_minutes
            )
            await self.users.update(user)
            await self._send(self.mail.send_password_reset_email, user)
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, token: Optional[str], password: Optional[str]) -> User:
        """
        Set a new password using a reset token.

        Raises:
            BadRequestError: Missing, unknown or expired token, or weak password.
        """
        require_fields("Reset token is required", token=token)
        validate_new_password(password)

        user = await self.users.find_by_reset_token(token.strip())
        if (
            user is None
            or user.password_reset_expires is None
            or user.password_reset_expires < utcnow()
        ):
            raise BadRequestError("Invalid or expired reset token")

        user.password_hash = await asyncio.to_thread(self.hasher.hash, password)
        user.password_reset_token = None
        user.password_reset_expires = None
        await self.users.update(user)
        logger.info(f"Password reset for user {user.id}")
        return user

    async def current_user(self, token: Optional[str]) -> User:
        """Resolve a member session token to its user."""
        if not token:
            raise UnauthorizedError("No token provided")
        claims = self.signer.decode(token)
        if claims is None or claims.get("type") != USER_TOKEN_TYPE:
            raise UnauthorizedError("Invalid token")
        user = await self.users.get(str(claims.get("sub")))
        if user is None:
            raise UnauthorizedError("User not found")
        if not user.is_active:
            raise UnauthorizedError("Account deactivated")
        return user


class AdminAuthenticator:
    """Fixed-credential admin login backed by operator configuration."""

    def __init__(self, settings: Settings, signer: TokenSigner):
        self.settings = settings
        self.signer = signer

    def _admin(self) -> dict[str, Any]:
        name = self.settings.admin_name.strip()
        return {
            "email": normalize_email(self.settings.admin_email),
            "role": "admin",
            "name": name or None,
        }

    def login(self, email: Optional[str], password: Optional[str]) -> tuple[str, dict[str, Any]]:
        """
        Exchange admin credentials for a session token.

        Raises:
            BadRequestError: Missing email or password.
            ServerError: Admin credentials are not configured.
            UnauthorizedError: Credentials do not match.
        """
        require_fields("Email and password are required", email=email, password=password)
        if not self.settings.admin_email or not self.settings.admin_password:
            raise ServerError("Admin credentials are not configured on the server")

        email_ok = constant_time_equals(normalize_email(email), normalize_email(self.settings.admin_email))
        password_ok = constant_time_equals(password, self.settings.admin_password)
        if not (email_ok and password_ok):
            logger.warning("Rejected admin login attempt")
            raise UnauthorizedError("Invalid credentials")

        admin = self._admin()
        token = self.signer.create(
            {"type": ADMIN_TOKEN_TYPE, **admin},
            timedelta(minutes=self.settings.auth.admin_token_expire_minutes),
        )
        return token, admin

    def verify(self, token: Optional[str]) -> dict[str, Any]:
        """
        Validate an admin session token.

        Raises:
            UnauthorizedError: Missing, invalid or expired token.
            ForbiddenError: A valid token without admin claims.
        """
        if not token:
            raise UnauthorizedError("Unauthorized")
        claims = self.signer.decode(token)
        if claims is None:
            raise UnauthorizedError("Invalid token")
        if claims.get("role") != "admin" or claims.get("type") != ADMIN_TOKEN_TYPE:
            raise ForbiddenError("Forbidden")
        return {"email": claims.get("email"), "role": claims.get("role"), "name": claims.get("name")}
