"""
Identity reconciliation.

Maps an externally verified identity onto exactly one local ``User`` row,
linking accounts created by the older local-credential flow by email.
"""

import logging
from typing import Optional

from vimarsh.core.errors import BadRequestError, ConflictError, ServerError, UnauthorizedError
from vimarsh.core.validation import NAME_MAX_LENGTH, normalize_email
from vimarsh.models import AuthProvider, User
from vimarsh.providers.identity import (
    ExternalIdentity,
    IdentityProvider,
    IdentityProviderError,
    InvalidTokenError,
)
from vimarsh.repositories import DuplicateKeyError, UserRepository

logger = logging.getLogger(__name__)

FIRST_NAME_KEYS = ("firstName", "first_name", "given_name")
LAST_NAME_KEYS = ("lastName", "last_name", "family_name")
FALLBACK_NAME = "User"


def _clean_name(value: Optional[str]) -> str:
    return (value or "").strip()[:NAME_MAX_LENGTH]


class IdentityReconciler:
    """
    Resolves bearer tokens to local users.

    Policy on every reconciliation:

    - lookup by provider id, then by email (email match adopts the record)
    - provider id, email, email verification and active flags are refreshed
    - names from provider metadata only fill empty names; names passed
      explicitly by the caller overwrite
    - exactly one write per call
    """

    def __init__(self, users: UserRepository, identity_provider: IdentityProvider):
        self.users = users
        self.identity_provider = identity_provider

    async def verify_token(self, token: Optional[str]) -> ExternalIdentity:
        """
        Verify a bearer token with the identity provider.

        Raises:
            UnauthorizedError: No token, or the provider rejected it.
            ServerError: Provider unreachable or not configured.
        """
        if not token:
            raise UnauthorizedError("Access denied. No token provided.")
        try:
            return await self.identity_provider.get_identity(token)
        except InvalidTokenError as e:
            raise UnauthorizedError("Invalid token.") from e
        except IdentityProviderError as e:
            logger.error(f"Identity provider failure: {e.message}")
            raise ServerError("Server error in authentication.", detail=e.message) from e

    async def authenticate(self, token: Optional[str]) -> tuple[User, ExternalIdentity]:
        """Verify ``token`` and return the reconciled local user with its identity."""
        identity = await self.verify_token(token)
        user = await self.reconcile(identity)
        return user, identity

    async def reconcile(
        self,
        identity: ExternalIdentity,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """
        Find or create the local user for ``identity``.

        Args:
            identity: Verified external identity.
            first_name: Explicit first name that overwrites the stored one.
            last_name: Explicit last name that overwrites the stored one.

        Raises:
            BadRequestError: If the identity carries no email.
            ConflictError: The email belongs to a different local user.
        """
        email = normalize_email(identity.email)
        if not email:
            raise BadRequestError("Supabase user has no email")

        try:
            return await self._reconcile_once(identity, email, first_name, last_name)
        except DuplicateKeyError:
            # A concurrent first login created the row between lookup and insert.
            logger.info(f"Retrying reconciliation for {email} after concurrent insert")

        try:
            return await self._reconcile_once(identity, email, first_name, last_name)
        except DuplicateKeyError as e:
            logger.warning(
                f"Provider id {identity.provider_id} cannot take {email}: {e.key} held by another user"
            )
            raise ConflictError("Email already linked to another account") from e

    async def _reconcile_once(
        self,
        identity: ExternalIdentity,
        email: str,
        first_name: Optional[str],
        last_name: Optional[str],
    ) -> User:
        meta_first = _clean_name(identity.metadata_value(*FIRST_NAME_KEYS))
        meta_last = _clean_name(identity.metadata_value(*LAST_NAME_KEYS))
        explicit_first = _clean_name(first_name)
        explicit_last = _clean_name(last_name)

        user = await self.users.find_by_supabase_id(identity.provider_id)
        if user is None:
            user = await self.users.find_by_email(email)

        if user is None:
            local_part = _clean_name(email.split("@")[0])
            user = User(
                auth_provider=AuthProvider.SUPABASE,
                supabase_id=identity.provider_id,
                email=email,
                first_name=explicit_first or meta_first or local_part or FALLBACK_NAME,
                last_name=explicit_last or meta_last or FALLBACK_NAME,
                email_verified=identity.email_confirmed,
                is_temp_user=False,
                is_active=True,
            )
            await self.users.create(user)
            logger.info(f"Created user {user.id} for provider id {identity.provider_id}")
            return user

        if user.supabase_id != identity.provider_id:
            logger.info(f"Linking user {user.id} to provider id {identity.provider_id}")

        user.auth_provider = AuthProvider.SUPABASE
        user.supabase_id = identity.provider_id
        user.email = email
        user.email_verified = identity.email_confirmed
        user.is_temp_user = False
        user.is_active = True

        if explicit_first:
            user.first_name = explicit_first
        elif not user.first_name.strip():
            user.first_name = meta_first or _clean_name(email.split("@")[0]) or FALLBACK_NAME
        if explicit_last:
            user.last_name = explicit_last
        elif not user.last_name.strip():
            user.last_name = meta_last or FALLBACK_NAME

        return await self.users.update(user)
