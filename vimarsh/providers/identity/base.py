"""
Identity provider base abstractions.

The reconciler only needs one thing from an external identity system: turn a
bearer token into a verified identity. Concrete adapters (Supabase) implement
``IdentityProvider``; tests inject a fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ExternalIdentity:
    """
    A verified user as reported by the external identity provider.

    Attributes:
        provider_id: The provider's stable user id
        email: Email address as reported (not yet normalized)
        email_confirmed_at: When the provider confirmed the email, if ever
        metadata: Free-form user metadata (names, avatar, ...)
    """

    provider_id: str
    email: str | None = None
    email_confirmed_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def email_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

    def metadata_value(self, *keys: str) -> str | None:
        """Return the first non-empty string among ``keys`` in the metadata."""
        for key in keys:
            value = self.metadata.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None


class IdentityProvider(ABC):
    """Abstract base class for external identity providers."""

    @abstractmethod
    async def get_identity(self, token: str) -> ExternalIdentity:
        """
        Verify ``token`` and return the identity it belongs to.

        Raises:
            InvalidTokenError: If the provider rejects the token.
            IdentityProviderError: If the provider is unreachable or misconfigured.
        """
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    async def close(self) -> None:
        """Release provider resources. Default implementation does nothing."""


class IdentityProviderError(Exception):
    """Provider unreachable or misconfigured."""

    def __init__(self, message: str, provider: str | None = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class InvalidTokenError(IdentityProviderError):
    """The provider rejected the token (invalid, expired or revoked)."""
