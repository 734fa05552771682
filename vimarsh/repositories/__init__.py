"""
Storage layer.

Repositories are created once by the container and injected into services.
"""

from vimarsh.repositories.base import (
    DuplicateKeyError,
    EventRepository,
    ProfileRepository,
    RegistrationRepository,
    Repositories,
    TeamMemberRepository,
    TeamRepository,
    UserRepository,
)
from vimarsh.repositories.memory import create_memory_repositories

__all__ = [
    "DuplicateKeyError",
    "EventRepository",
    "ProfileRepository",
    "RegistrationRepository",
    "Repositories",
    "TeamMemberRepository",
    "TeamRepository",
    "UserRepository",
    "create_memory_repositories",
]
