"""
Tests for the Supabase identity provider.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from supabase import AuthApiError, AuthRetryableError

from vimarsh.core.config import Settings
from vimarsh.providers.identity import IdentityProviderError, InvalidTokenError
from vimarsh.providers.identity.supabase import SupabaseIdentityProvider

CONFIRMED = datetime(2024, 1, 10, tzinfo=timezone.utc)


@pytest.fixture
def supabase_settings(test_settings: Settings) -> Settings:
    return test_settings.model_copy(
        update={
            "supabase_url": "https://project.supabase.co",
            "supabase_anon_key": "anon-key",
            "supabase_service_key": "",
        }
    )


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.auth.get_user = AsyncMock()
    return client


def supabase_user(**overrides) -> SimpleNamespace:
    data = {
        "id": "sb-user-1",
        "email": "Asha@Example.com",
        "email_confirmed_at": CONFIRMED,
        "user_metadata": {"firstName": "Asha", "lastName": "Patel"},
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class TestSupabaseIdentityProvider:
    """Tests for SupabaseIdentityProvider.get_identity."""

    @pytest.mark.asyncio
    async def test_maps_user(self, supabase_settings, mock_client) -> None:
        """Test a verified token maps onto an ExternalIdentity."""
        mock_client.auth.get_user.return_value = SimpleNamespace(user=supabase_user())
        provider = SupabaseIdentityProvider(supabase_settings)

        with patch(
            "vimarsh.providers.identity.supabase.create_async_client",
            AsyncMock(return_value=mock_client),
        ) as create:
            identity = await provider.get_identity("token")
            await provider.get_identity("token")

        assert identity.provider_id == "sb-user-1"
        assert identity.email == "Asha@Example.com"
        assert identity.email_confirmed is True
        assert identity.metadata_value("firstName") == "Asha"
        create.assert_awaited_once_with("https://project.supabase.co", "anon-key")

    @pytest.mark.asyncio
    async def test_prefers_service_key(self, supabase_settings, mock_client) -> None:
        settings = supabase_settings.model_copy(update={"supabase_service_key": "service-key"})
        mock_client.auth.get_user.return_value = SimpleNamespace(user=supabase_user())

        with patch(
            "vimarsh.providers.identity.supabase.create_async_client",
            AsyncMock(return_value=mock_client),
        ) as create:
            await SupabaseIdentityProvider(settings).get_identity("token")

        create.assert_awaited_once_with("https://project.supabase.co", "service-key")

    @pytest.mark.asyncio
    async def test_missing_metadata(self, supabase_settings, mock_client) -> None:
        mock_client.auth.get_user.return_value = SimpleNamespace(
            user=supabase_user(user_metadata=None, email_confirmed_at=None)
        )

        with patch(
            "vimarsh.providers.identity.supabase.create_async_client",
            AsyncMock(return_value=mock_client),
        ):
            identity = await SupabaseIdentityProvider(supabase_settings).get_identity("token")

        assert identity.metadata == {}
        assert identity.email_confirmed is False

    @pytest.mark.asyncio
    async def test_rejected_token(self, supabase_settings, mock_client) -> None:
        """Test an auth API rejection becomes InvalidTokenError."""
        mock_client.auth.get_user.side_effect = AuthApiError("invalid JWT", 401, "bad_jwt")

        with patch(
            "vimarsh.providers.identity.supabase.create_async_client",
            AsyncMock(return_value=mock_client),
        ):
            with pytest.raises(InvalidTokenError):
                await SupabaseIdentityProvider(supabase_settings).get_identity("token")

    @pytest.mark.asyncio
    async def test_no_user_in_response(self, supabase_settings, mock_client) -> None:
        mock_client.auth.get_user.return_value = None

        with patch(
            "vimarsh.providers.identity.supabase.create_async_client",
            AsyncMock(return_value=mock_client),
        ):
            with pytest.raises(InvalidTokenError):
                await SupabaseIdentityProvider(supabase_settings).get_identity("token")

    @pytest.mark.asyncio
    async def test_unreachable(self, supabase_settings, mock_client) -> None:
        """Test a retryable transport failure is a provider error, not a bad token."""
        mock_client.auth.get_user.side_effect = AuthRetryableError("connection reset", 0)

        with patch(
            "vimarsh.providers.identity.supabase.create_async_client",
            AsyncMock(return_value=mock_client),
        ):
            with pytest.raises(IdentityProviderError) as exc_info:
                await SupabaseIdentityProvider(supabase_settings).get_identity("token")

        assert not isinstance(exc_info.value, InvalidTokenError)
        assert exc_info.value.provider == "supabase"

    @pytest.mark.asyncio
    async def test_not_configured(self, test_settings) -> None:
        """Test missing URL or key surfaces as a provider error."""
        settings = test_settings.model_copy(
            update={"supabase_url": "", "supabase_anon_key": "", "supabase_service_key": ""}
        )

        with pytest.raises(IdentityProviderError) as exc_info:
            await SupabaseIdentityProvider(settings).get_identity("token")

        assert "SUPABASE_URL" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_key(self, supabase_settings) -> None:
        settings = supabase_settings.model_copy(update={"supabase_anon_key": ""})

        with pytest.raises(IdentityProviderError) as exc_info:
            await SupabaseIdentityProvider(settings).get_identity("token")

        assert "SUPABASE_SERVICE_KEY" in exc_info.value.message
