"""
Password hashing, session tokens and one-time secrets.
"""

import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext


class PasswordHasher:
    """bcrypt password hashing with a configurable cost factor."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """Hash a password; bcrypt embeds a fresh salt in every hash."""
        return self._context.hash(password)

    def verify(self, password: str, password_hash: Optional[str]) -> bool:
        """Verify a password against a stored hash."""
        if not password_hash:
            return False
        return self._context.verify(password, password_hash)


class TokenSigner:
    """Issues and decodes signed session tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self._secret = secret
        self._algorithm = algorithm

    def create(self, claims: dict[str, Any], expires_delta: timedelta) -> str:
        """Sign ``claims`` with an ``exp`` claim ``expires_delta`` from now."""
        to_encode = claims.copy()
        to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Optional[dict[str, Any]]:
        """Decode and verify a token. Returns None if invalid, expired or tampered."""
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError:
            return None


def generate_otp() -> str:
    """Six-digit numeric passcode."""
    return str(secrets.randbelow(900000) + 100000)


def generate_reset_token() -> str:
    """32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def constant_time_equals(a: str, b: str) -> bool:
    """Compare two strings as bytes without leaking the mismatch position."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
