"""
Dependency Injection Container for the Code Vimarsh API.

Provides lazy initialization of shared resources using lru_cache.
Ensures clients are created once during startup and shared across
FastAPI dependencies.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

import httpx
from fastapi import Depends, Request

from vimarsh.core.config import DatabaseProvider, Settings, get_settings
from vimarsh.core.security import PasswordHasher, TokenSigner
from vimarsh.providers.images import CloudinaryImageHost
from vimarsh.repositories import Repositories
from vimarsh.services import (
    AdminAuthenticator,
    EventCatalog,
    EventRegistrationLedger,
    IdentityReconciler,
    LocalCredentialStore,
    ProfileStore,
    TeamDirectory,
    ensure_default_events,
)

if TYPE_CHECKING:
    from vimarsh.providers.identity import IdentityProvider
    from vimarsh.providers.mail import MailSender
    from vimarsh.repositories.mongo import MongoStore

logger = logging.getLogger(__name__)


class Container:
    """
    Dependency Injection Container.

    Manages lifecycle of shared resources:
    - Settings (configuration)
    - HTTP Client (httpx.AsyncClient, used by the image host)
    - Repositories (MongoDB or in-memory)
    - Identity provider, mail sender, image host
    - Domain services built on top of them

    Any client can be supplied up front, which is how tests inject fakes.

    Usage:
        container = get_container()
        await container.startup()
        ledger = container.get_ledger()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        repositories: Repositories | None = None,
        identity_provider: "IdentityProvider | None" = None,
        mail_sender: "MailSender | None" = None,
        image_host: CloudinaryImageHost | None = None,
    ):
        """
        Initialize the container.

        Args:
            settings: Optional settings override. If None, loads from config.
            repositories: Optional pre-built repositories (skips the store).
            identity_provider: Optional identity provider override.
            mail_sender: Optional mail sender override.
            image_host: Optional image host override.
        """
        self._settings = settings
        self._repositories = repositories
        self._identity_provider = identity_provider
        self._mail_sender = mail_sender
        self._image_host = image_host
        self._http_client: httpx.AsyncClient | None = None
        self._mongo_store: "MongoStore | None" = None
        self._password_hasher: PasswordHasher | None = None
        self._token_signer: TokenSigner | None = None

    @property
    def settings(self) -> Settings:
        """
        Get the application settings.

        Returns:
            Cached Settings instance.
        """
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def get_http_client(self) -> httpx.AsyncClient:
        """
        Get or create the shared HTTP client.

        The client is lazily initialized on first access.
        Call close_http_client() during shutdown to properly close connections.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0),
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._http_client

    async def close_http_client(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def get_repositories(self) -> Repositories:
        """
        Get or create the repositories for the configured store.

        Raises:
            ValueError: If the configured store is not supported.
        """
        if self._repositories is None:
            provider = self.settings.database.provider

            if provider == DatabaseProvider.MONGO:
                from vimarsh.repositories.mongo import MongoStore

                self._mongo_store = MongoStore(
                    uri=self.settings.mongodb_uri,
                    database_name=self.settings.database.name,
                )
                self._repositories = await self._mongo_store.connect()

            elif provider == DatabaseProvider.MEMORY:
                from vimarsh.repositories import create_memory_repositories

                logger.warning("Using in-memory repositories; data is not persisted")
                self._repositories = create_memory_repositories()

            else:
                raise ValueError(f"Unsupported database provider: {provider}")

        return self._repositories

    @property
    def repositories(self) -> Repositories:
        """
        Repositories opened by ``startup``.

        Raises:
            RuntimeError: If accessed before startup.
        """
        if self._repositories is None:
            raise RuntimeError("Container not started: repositories are not initialized")
        return self._repositories

    async def close_repositories(self) -> None:
        if self._mongo_store is not None:
            await self._mongo_store.close()
            self._mongo_store = None
            self._repositories = None

    def get_identity_provider(self) -> "IdentityProvider":
        """Get or create the identity provider (Supabase)."""
        if self._identity_provider is None:
            from vimarsh.providers.identity.supabase import SupabaseIdentityProvider

            self._identity_provider = SupabaseIdentityProvider(self.settings)
        return self._identity_provider

    async def close_identity_provider(self) -> None:
        if self._identity_provider is not None:
            await self._identity_provider.close()
            self._identity_provider = None

    def get_mail_sender(self) -> "MailSender":
        if self._mail_sender is None:
            from vimarsh.providers.mail import LoggingMailSender

            self._mail_sender = LoggingMailSender(frontend_url=self.settings.frontend_url)
        return self._mail_sender

    def get_image_host(self) -> CloudinaryImageHost:
        if self._image_host is None:
            self._image_host = CloudinaryImageHost(self.settings, self.get_http_client())
        return self._image_host

    def get_password_hasher(self) -> PasswordHasher:
        if self._password_hasher is None:
            self._password_hasher = PasswordHasher(rounds=self.settings.auth.password_hash_rounds)
        return self._password_hasher

    def get_token_signer(self) -> TokenSigner:
        """
        Get or create the session token signer.

        Raises:
            ValueError: If JWT_SECRET is not configured.
        """
        if self._token_signer is None:
            self._token_signer = TokenSigner(
                secret=self.settings.get_jwt_secret(),
                algorithm=self.settings.auth.jwt_algorithm,
            )
        return self._token_signer

    # Services are built per call over the shared clients.

    def get_reconciler(self) -> IdentityReconciler:
        return IdentityReconciler(self.repositories.users, self.get_identity_provider())

    def get_ledger(self) -> EventRegistrationLedger:
        return EventRegistrationLedger(self.repositories.events, self.repositories.registrations)

    def get_event_catalog(self) -> EventCatalog:
        return EventCatalog(self.repositories.events, self.repositories.registrations)

    def get_credential_store(self) -> LocalCredentialStore:
        return LocalCredentialStore(
            users=self.repositories.users,
            hasher=self.get_password_hasher(),
            signer=self.get_token_signer(),
            mail=self.get_mail_sender(),
            config=self.settings.auth,
        )

    def get_admin_authenticator(self) -> AdminAuthenticator:
        return AdminAuthenticator(self.settings, self.get_token_signer())

    def get_profile_store(self) -> ProfileStore:
        return ProfileStore(self.repositories.profiles, self.get_image_host())

    def get_team_directory(self) -> TeamDirectory:
        return TeamDirectory(self.repositories.teams, self.repositories.team_members)

    async def startup(self) -> None:
        """
        Initialize resources on application startup.

        Called by FastAPI lifespan context manager.
        Opens the store (creating indexes) and seeds default events when enabled.
        """
        # Pre-initialize settings to catch config errors early
        _ = self.settings
        _ = self.get_http_client()
        repositories = await self.get_repositories()

        if self.settings.events.seed_default_events:
            await ensure_default_events(repositories.events)

    async def shutdown(self) -> None:
        """
        Clean up resources on application shutdown.

        Called by FastAPI lifespan context manager.
        """
        await self.close_identity_provider()
        await self.close_repositories()
        await self.close_http_client()


# Global container instance using lru_cache for singleton behavior
@lru_cache
def get_container() -> Container:
    """
    Get the cached container instance.

    Call get_container.cache_clear() to reset (useful for testing).
    """
    return Container()


def clear_container_cache() -> None:
    """
    Clear the container cache.

    Useful for testing to reset the container state.
    Also clears the settings cache.
    """
    get_container.cache_clear()
    get_settings.cache_clear()


# Convenience functions for FastAPI dependencies. The application stores its
# container on ``app.state`` so each app instance resolves its own clients.
def get_container_dep(request: Request) -> Container:
    """FastAPI dependency for the container bound to the running app."""
    return request.app.state.container


def get_settings_dep(container: Container = Depends(get_container_dep)) -> Settings:
    """
    FastAPI dependency for getting settings.

    Usage:
        @app.get("/")
        async def root(settings: Settings = Depends(get_settings_dep)):
            ...
    """
    return container.settings


def get_reconciler_dep(container: Container = Depends(get_container_dep)) -> IdentityReconciler:
    return container.get_reconciler()


def get_ledger_dep(container: Container = Depends(get_container_dep)) -> EventRegistrationLedger:
    return container.get_ledger()


def get_event_catalog_dep(container: Container = Depends(get_container_dep)) -> EventCatalog:
    return container.get_event_catalog()


def get_credential_store_dep(
    container: Container = Depends(get_container_dep),
) -> LocalCredentialStore:
    """
    FastAPI dependency for the local credential store.

    Raises:
        ValueError: If JWT_SECRET is not configured.
    """
    return container.get_credential_store()


def get_admin_authenticator_dep(
    container: Container = Depends(get_container_dep),
) -> AdminAuthenticator:
    return container.get_admin_authenticator()


def get_profile_store_dep(container: Container = Depends(get_container_dep)) -> ProfileStore:
    return container.get_profile_store()


def get_image_host_dep(container: Container = Depends(get_container_dep)) -> CloudinaryImageHost:
    return container.get_image_host()


def get_repositories_dep(container: Container = Depends(get_container_dep)) -> Repositories:
    return container.repositories


def get_team_directory_dep(container: Container = Depends(get_container_dep)) -> TeamDirectory:
    return container.get_team_directory()
