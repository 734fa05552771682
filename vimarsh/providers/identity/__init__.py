"""
External identity providers.
"""

from vimarsh.providers.identity.base import (
    ExternalIdentity,
    IdentityProvider,
    IdentityProviderError,
    InvalidTokenError,
)

__all__ = [
    "ExternalIdentity",
    "IdentityProvider",
    "IdentityProviderError",
    "InvalidTokenError",
]
