"""
Pytest configuration and fixtures for the Code Vimarsh API tests.

Tests run against in-memory repositories and a fake identity provider
injected through the container.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from vimarsh.core.config import Settings
from vimarsh.core.container import Container, clear_container_cache
from vimarsh.main import create_app
from vimarsh.models import Event, EventMode, User
from vimarsh.providers.identity import (
    ExternalIdentity,
    IdentityProvider,
    IdentityProviderError,
    InvalidTokenError,
)
from vimarsh.providers.mail import MailSender
from vimarsh.repositories import Repositories, create_memory_repositories

MEMBER_TOKEN = "member-token"
MEMBER_PROVIDER_ID = "sb-user-1"


class FakeIdentityProvider(IdentityProvider):
    """Identity provider backed by a token -> identity map."""

    def __init__(self):
        self.identities: dict[str, ExternalIdentity] = {}
        self.unavailable = False
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    def add(self, token: str, identity: ExternalIdentity) -> None:
        self.identities[token] = identity

    async def get_identity(self, token: str) -> ExternalIdentity:
        self.calls += 1
        if self.unavailable:
            raise IdentityProviderError("provider down", self.provider_name)
        if token not in self.identities:
            raise InvalidTokenError("Invalid or expired token", self.provider_name)
        return self.identities[token]


class RecordingMailSender(MailSender):
    """Mail sender that records (kind, email, snapshot) tuples."""

    def __init__(self):
        self.sent: list[tuple[str, str, User]] = []
        self.fail = False

    async def _record(self, kind: str, user: User) -> None:
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.sent.append((kind, user.email, user.model_copy(deep=True)))

    async def send_otp_email(self, user: User) -> None:
        await self._record("otp", user)

    async def send_welcome_email(self, user: User) -> None:
        await self._record("welcome", user)

    async def send_password_reset_email(self, user: User) -> None:
        await self._record("reset", user)

    def last(self, kind: str) -> User:
        return [user for sent_kind, _, user in self.sent if sent_kind == kind][-1]


@pytest.fixture(autouse=True)
def clear_caches() -> Generator[None, None, None]:
    """
    Clear all caches before and after each test.

    This ensures test isolation by resetting singleton state.
    """
    clear_container_cache()
    yield
    clear_container_cache()


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """
    Create a temporary config.yaml file for testing.

    Args:
        tmp_path: Pytest tmp_path fixture.

    Returns:
        Path to the temporary config file.
    """
    config_content = """
log_level: "DEBUG"
jwt_secret: "test-jwt-secret"
admin_email: "Admin@CodeVimarsh.dev"
admin_password: "correct horse battery staple"
admin_name: "Site Admin"
cloudinary_cloud_name: "demo-cloud"
cloudinary_api_key: "123456"
cloudinary_api_secret: "cloud-secret"

database:
  provider: "memory"
  name: "codevimarsh_test"

auth:
  password_hash_rounds: 4
  otp_ttl_minutes: 10
  reset_token_ttl_minutes: 10

events:
  seed_default_events: false
"""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(config_content)
    return config_path


@pytest.fixture
def test_settings(temp_config_file: Path) -> Settings:
    """Settings loaded from the temporary config file."""
    return Settings.from_yaml(temp_config_file)


@pytest.fixture
def repositories() -> Repositories:
    return create_memory_repositories()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    provider = FakeIdentityProvider()
    provider.add(
        MEMBER_TOKEN,
        ExternalIdentity(
            provider_id=MEMBER_PROVIDER_ID,
            email="Asha.Patel@Example.com ",
            email_confirmed_at=datetime(2024, 1, 10, tzinfo=timezone.utc),
            metadata={"firstName": "Asha", "lastName": "Patel"},
        ),
    )
    return provider


@pytest.fixture
def mail_sender() -> RecordingMailSender:
    return RecordingMailSender()


@pytest.fixture
def test_container(
    test_settings: Settings,
    repositories: Repositories,
    identity_provider: FakeIdentityProvider,
    mail_sender: RecordingMailSender,
) -> Container:
    """Container wired with in-memory repositories and fake providers."""
    return Container(
        settings=test_settings,
        repositories=repositories,
        identity_provider=identity_provider,
        mail_sender=mail_sender,
    )


@pytest.fixture
def client(test_container: Container) -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.

    Yields:
        TestClient instance.
    """
    app = create_app(container=test_container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def member_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {MEMBER_TOKEN}"}


@pytest.fixture
def admin_headers(test_container: Container) -> dict[str, str]:
    token, _ = test_container.get_admin_authenticator().login(
        "admin@codevimarsh.dev", "correct horse battery staple"
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory for unsaved events with sensible defaults."""

    def _make(**overrides) -> Event:
        data = {
            "slug": "dsa-bootcamp",
            "title": "DSA Bootcamp",
            "description": "Arrays, trees and dynamic programming.",
            "date": datetime(2024, 2, 15, tzinfo=timezone.utc),
            "time": "10:00 AM",
            "mode": EventMode.OFFLINE,
            "location": "Main Auditorium",
            "image": "https://images.example.com/dsa.png",
        }
        data.update(overrides)
        return Event(**data)

    return _make
