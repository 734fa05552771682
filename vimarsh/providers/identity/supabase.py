"""
Identity provider backed by the Supabase Auth API.
"""

import logging
from typing import Any

from supabase import AsyncClient, AuthError, AuthRetryableError, create_async_client

from vimarsh.core.config import Settings
from vimarsh.providers.identity.base import (
    ExternalIdentity,
    IdentityProvider,
    IdentityProviderError,
    InvalidTokenError,
)

logger = logging.getLogger(__name__)


class SupabaseIdentityProvider(IdentityProvider):
    """Verifies Supabase access tokens with ``auth.get_user``."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: AsyncClient | None = None

    @property
    def provider_name(self) -> str:
        return "supabase"

    def _resolve_supabase_key(self) -> str:
        """
        Resolve the API key used for Supabase Auth calls.

        Prefers the service key for server-side verification and falls back
        to the anon key.
        """
        if self.settings.supabase_service_key:
            return self.settings.supabase_service_key
        if self.settings.supabase_anon_key:
            return self.settings.supabase_anon_key
        raise ValueError(
            "Supabase key is not configured. Set SUPABASE_SERVICE_KEY "
            "or SUPABASE_ANON_KEY in environment variables."
        )

    async def _get_client(self) -> AsyncClient:
        """Create the Supabase async client once and reuse it."""
        if self._client is None:
            if not self.settings.supabase_url:
                raise ValueError(
                    "Supabase URL is not configured. Set SUPABASE_URL in environment variables."
                )
            self._client = await create_async_client(
                self.settings.supabase_url,
                self._resolve_supabase_key(),
            )
        return self._client

    async def get_identity(self, token: str) -> ExternalIdentity:
        try:
            client = await self._get_client()
            user_response = await client.auth.get_user(token)
        except ValueError as e:
            raise IdentityProviderError(str(e), self.provider_name) from e
        except AuthRetryableError as e:
            logger.error(f"Supabase Auth unreachable: {e}")
            raise IdentityProviderError(
                "Identity provider is unreachable", self.provider_name
            ) from e
        except AuthError as e:
            raise InvalidTokenError("Invalid or expired token", self.provider_name) from e

        if user_response is None or user_response.user is None:
            raise InvalidTokenError("Invalid or expired token", self.provider_name)

        return _map_supabase_user(user_response.user)


def _map_supabase_user(user: Any) -> ExternalIdentity:
    """Map a Supabase user object to an ``ExternalIdentity``."""
    metadata = getattr(user, "user_metadata", None) or {}
    return ExternalIdentity(
        provider_id=str(getattr(user, "id")),
        email=getattr(user, "email", None),
        email_confirmed_at=getattr(user, "email_confirmed_at", None),
        metadata=dict(metadata),
    )
