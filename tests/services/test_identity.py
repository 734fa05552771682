"""
Tests for the identity reconciler.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from vimarsh.core.errors import BadRequestError, ConflictError, ServerError, UnauthorizedError
from vimarsh.models import AuthProvider, User
from vimarsh.providers.identity import ExternalIdentity
from vimarsh.repositories import DuplicateKeyError
from vimarsh.services import IdentityReconciler

CONFIRMED = datetime(2024, 1, 10, tzinfo=timezone.utc)


@pytest.fixture
def reconciler(repositories, identity_provider) -> IdentityReconciler:
    return IdentityReconciler(repositories.users, identity_provider)


class TestVerifyToken:
    """Tests for token verification."""

    @pytest.mark.asyncio
    async def test_missing_token(self, reconciler) -> None:
        with pytest.raises(UnauthorizedError):
            await reconciler.verify_token(None)

    @pytest.mark.asyncio
    async def test_rejected_token(self, reconciler) -> None:
        """Test a token the provider rejects is a 401."""
        with pytest.raises(UnauthorizedError) as exc_info:
            await reconciler.verify_token("forged")
        assert exc_info.value.message == "Invalid token."

    @pytest.mark.asyncio
    async def test_provider_unreachable(self, reconciler, identity_provider) -> None:
        """Test a provider outage is a server error, not a 401."""
        identity_provider.unavailable = True
        with pytest.raises(ServerError):
            await reconciler.verify_token("member-token")


class TestReconcile:
    """Tests for IdentityReconciler.reconcile."""

    @pytest.mark.asyncio
    async def test_creates_user_on_first_login(self, reconciler, repositories) -> None:
        """Test a new identity creates exactly one normalized user."""
        identity = ExternalIdentity(
            provider_id="sb-1",
            email="  New.Member@Example.COM ",
            email_confirmed_at=CONFIRMED,
            metadata={"given_name": "New", "family_name": "Member"},
        )

        user = await reconciler.reconcile(identity)

        assert user.email == "new.member@example.com"
        assert user.supabase_id == "sb-1"
        assert user.auth_provider == AuthProvider.SUPABASE
        assert (user.first_name, user.last_name) == ("New", "Member")
        assert user.email_verified is True
        assert user.is_temp_user is False
        assert repositories.users.user_count == 1

    @pytest.mark.asyncio
    async def test_name_fallbacks(self, reconciler) -> None:
        """Test missing metadata names fall back to the email local-part and 'User'."""
        identity = ExternalIdentity(provider_id="sb-2", email="riya@example.com")

        user = await reconciler.reconcile(identity)

        assert user.first_name == "riya"
        assert user.last_name == "User"
        assert user.email_verified is False

    @pytest.mark.asyncio
    async def test_long_local_part_is_truncated(self, reconciler) -> None:
        identity = ExternalIdentity(provider_id="sb-3", email=f"{'x' * 80}@example.com")

        user = await reconciler.reconcile(identity)

        assert len(user.first_name) == 50

    @pytest.mark.asyncio
    async def test_missing_email_rejected(self, reconciler, repositories) -> None:
        with pytest.raises(BadRequestError):
            await reconciler.reconcile(ExternalIdentity(provider_id="sb-4", email=""))
        assert repositories.users.user_count == 0

    @pytest.mark.asyncio
    async def test_links_legacy_local_account_by_email(self, reconciler, repositories) -> None:
        """Test an existing local account with the same email is adopted, not duplicated."""
        legacy = await repositories.users.create(
            User(
                first_name="Legacy",
                last_name="Member",
                email="legacy@example.com",
                password_hash="hash",
                is_temp_user=True,
            )
        )
        identity = ExternalIdentity(
            provider_id="sb-5",
            email="Legacy@Example.com",
            email_confirmed_at=CONFIRMED,
            metadata={"firstName": "Other"},
        )

        user = await reconciler.reconcile(identity)

        assert user.id == legacy.id
        assert user.supabase_id == "sb-5"
        assert user.auth_provider == AuthProvider.SUPABASE
        assert user.first_name == "Legacy"
        assert user.is_temp_user is False
        assert user.email_verified is True
        assert repositories.users.user_count == 1

    @pytest.mark.asyncio
    async def test_relinks_when_email_changes_upstream(self, reconciler, repositories) -> None:
        """Test lookup by provider id wins and the stored email is refreshed."""
        first = await reconciler.reconcile(ExternalIdentity(provider_id="sb-6", email="old@example.com"))

        second = await reconciler.reconcile(
            ExternalIdentity(provider_id="sb-6", email="new@example.com", email_confirmed_at=CONFIRMED)
        )

        assert second.id == first.id
        assert second.email == "new@example.com"
        assert second.email_verified is True
        assert repositories.users.user_count == 1

    @pytest.mark.asyncio
    async def test_reconcile_is_idempotent(self, reconciler, repositories) -> None:
        identity = ExternalIdentity(provider_id="sb-7", email="same@example.com")

        first = await reconciler.reconcile(identity)
        second = await reconciler.reconcile(identity)

        assert first.id == second.id
        assert repositories.users.user_count == 1

    @pytest.mark.asyncio
    async def test_explicit_names_overwrite(self, reconciler) -> None:
        """Test names passed by the caller replace stored names."""
        identity = ExternalIdentity(provider_id="sb-8", email="x@example.com", metadata={"firstName": "Meta"})
        await reconciler.reconcile(identity)

        user = await reconciler.reconcile(identity, first_name="Explicit", last_name="Name")

        assert (user.first_name, user.last_name) == ("Explicit", "Name")

    @pytest.mark.asyncio
    async def test_metadata_names_do_not_overwrite(self, reconciler) -> None:
        """Test metadata names only fill empty names."""
        await reconciler.reconcile(
            ExternalIdentity(provider_id="sb-9", email="y@example.com", metadata={"firstName": "Original"})
        )

        user = await reconciler.reconcile(
            ExternalIdentity(provider_id="sb-9", email="y@example.com", metadata={"firstName": "Changed"})
        )

        assert user.first_name == "Original"

    @pytest.mark.asyncio
    async def test_insert_race_retries_lookup(self, reconciler, repositories) -> None:
        """Test a concurrent first login that wins the insert is adopted on retry."""
        winner = User(
            first_name="Winner",
            last_name="User",
            email="race@example.com",
            supabase_id="sb-10",
            auth_provider=AuthProvider.SUPABASE,
        )
        original_create = repositories.users.create

        async def create_after_competitor(user):
            await original_create(winner)
            raise DuplicateKeyError("users", "email")

        repositories.users.create = AsyncMock(side_effect=create_after_competitor)

        user = await reconciler.reconcile(ExternalIdentity(provider_id="sb-10", email="race@example.com"))

        assert user.id == winner.id
        assert repositories.users.user_count == 1

    @pytest.mark.asyncio
    async def test_email_taken_by_other_user_is_conflict(self, reconciler, repositories) -> None:
        """Test an upstream email change onto another local account is a 409, not a store error."""
        await repositories.users.create(User(first_name="Local", last_name="User", email="new@example.com"))
        linked = await reconciler.reconcile(ExternalIdentity(provider_id="sb-11", email="old@example.com"))

        with pytest.raises(ConflictError) as exc_info:
            await reconciler.reconcile(ExternalIdentity(provider_id="sb-11", email="new@example.com"))

        assert exc_info.value.message == "Email already linked to another account"
        assert (await repositories.users.get(linked.id)).email == "old@example.com"
        assert (await repositories.users.find_by_email("new@example.com")).supabase_id is None

    @pytest.mark.asyncio
    async def test_authenticate_returns_user_and_identity(self, reconciler) -> None:
        user, identity = await reconciler.authenticate("member-token")

        assert identity.provider_id == "sb-user-1"
        assert user.email == "asha.patel@example.com"
        assert (user.first_name, user.last_name) == ("Asha", "Patel")
