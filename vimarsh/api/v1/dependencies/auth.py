"""
Authentication dependencies.

Three credentials reach the API as bearer tokens:

- Supabase access tokens (members), verified by the identity provider
- member session tokens issued by the local credential store
- admin session tokens issued by the admin authenticator
"""

import logging
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from vimarsh.core.container import (
    get_admin_authenticator_dep,
    get_credential_store_dep,
    get_reconciler_dep,
)
from vimarsh.core.errors import AppError
from vimarsh.models import User
from vimarsh.providers.identity import ExternalIdentity
from vimarsh.services import AdminAuthenticator, IdentityReconciler, LocalCredentialStore

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Optional[str]:
    """Extract the bearer token, or None when the header is absent."""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


async def get_identity(
    token: Optional[str] = Depends(get_bearer_token),
    reconciler: IdentityReconciler = Depends(get_reconciler_dep),
) -> ExternalIdentity:
    """Verified external identity; 401 without a valid token."""
    return await reconciler.verify_token(token)


async def get_optional_identity(
    token: Optional[str] = Depends(get_bearer_token),
    reconciler: IdentityReconciler = Depends(get_reconciler_dep),
) -> Optional[ExternalIdentity]:
    """
    Verified external identity when a usable token is present.

    Token failures of any kind degrade to an anonymous caller.
    """
    if token is None:
        return None
    try:
        return await reconciler.verify_token(token)
    except AppError as e:
        logger.debug(f"Ignoring unusable token on public endpoint: {e.message}")
        return None


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    reconciler: IdentityReconciler = Depends(get_reconciler_dep),
) -> User:
    """Local user reconciled from the caller's external identity."""
    user, _ = await reconciler.authenticate(token)
    return user


async def get_session_user(
    token: Optional[str] = Depends(get_bearer_token),
    store: LocalCredentialStore = Depends(get_credential_store_dep),
) -> User:
    """User behind a member session token issued by the local credential store."""
    return await store.current_user(token)


def require_admin(
    token: Optional[str] = Depends(get_bearer_token),
    authenticator: AdminAuthenticator = Depends(get_admin_authenticator_dep),
) -> dict[str, Any]:
    """Admin claims; 401 for missing or invalid tokens, 403 for non-admin tokens."""
    return authenticator.verify(token)
