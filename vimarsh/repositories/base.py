"""
Repository interfaces.

Defines the async storage contracts the services depend on. Implementations
must enforce the uniqueness constraints themselves (store-level), raising
``DuplicateKeyError`` instead of leaking driver errors:

- users: ``email``; ``supabase_id`` when present
- events: ``slug``
- event registrations: (``event_id``, ``user_supabase_id``)
- user profiles: ``user_id``; ``prn_number``
- teams: ``slug``
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from vimarsh.models import Event, EventRegistration, Team, TeamMember, User, UserProfile


class DuplicateKeyError(Exception):
    """Raised when a write violates a unique index."""

    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(f"Duplicate key on {collection}.{key}")


class UserRepository(ABC):
    """Storage for user accounts."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_supabase_id(self, supabase_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def create(self, user: User) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateKeyError: If the email or supabase id is taken.
        """
        ...

    @abstractmethod
    async def update(self, user: User) -> User:
        """
        Replace an existing user document.

        Raises:
            DuplicateKeyError: If the new email or supabase id is taken.
            LookupError: If the user does not exist.
        """
        ...

    @abstractmethod
    async def find_by_reset_token(self, token: str) -> Optional[User]:
        ...


class EventRepository(ABC):
    """Storage for the event catalog."""

    @abstractmethod
    async def list_all(self) -> list[Event]:
        """All events ordered by date ascending, newest created first on ties."""
        ...

    @abstractmethod
    async def get(self, event_id: str) -> Optional[Event]:
        ...

    @abstractmethod
    async def create(self, event: Event) -> Event:
        """
        Raises:
            DuplicateKeyError: If the slug is taken.
        """
        ...

    @abstractmethod
    async def update_fields(self, event_id: str, fields: dict[str, Any]) -> Optional[Event]:
        """
        Set ``fields`` on an event and return the updated document.

        Returns:
            None if no event matched.

        Raises:
            DuplicateKeyError: If the slug is taken.
        """
        ...

    @abstractmethod
    async def delete(self, event_id: str) -> Optional[Event]:
        """Delete an event, returning the removed document or None."""
        ...

    @abstractmethod
    async def increment_registered_count(self, event_id: str, delta: int) -> bool:
        """
        Atomically add ``delta`` to ``registered_count``.

        A negative delta only applies while the counter stays non-negative.

        Returns:
            True if an event matched and was updated.
        """
        ...

    @abstractmethod
    async def insert_if_missing(self, event: Event) -> bool:
        """
        Insert ``event`` unless an event with its slug exists.

        Returns:
            True if the event was inserted.
        """
        ...

    @abstractmethod
    async def delete_by_slugs(self, slugs: list[str]) -> int:
        ...


class RegistrationRepository(ABC):
    """Storage for the event registration ledger."""

    @abstractmethod
    async def create(self, registration: EventRegistration) -> EventRegistration:
        """
        Raises:
            DuplicateKeyError: If the user already registered for the event.
        """
        ...

    @abstractmethod
    async def delete(self, registration_id: str) -> bool:
        ...

    @abstractmethod
    async def find(self, event_id: str, user_supabase_id: str) -> Optional[EventRegistration]:
        ...

    @abstractmethod
    async def list_for_user(self, user_supabase_id: str) -> list[EventRegistration]:
        ...

    @abstractmethod
    async def list_for_event(self, event_id: str) -> list[EventRegistration]:
        """Registrations for an event, newest first."""
        ...

    @abstractmethod
    async def count_for_event(self, event_id: str) -> int:
        ...

    @abstractmethod
    async def delete_for_event(self, event_id: str) -> int:
        ...


class ProfileRepository(ABC):
    """Storage for member profiles."""

    @abstractmethod
    async def get_by_user(self, user_id: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    async def find_by_prn(self, prn_number: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    async def save(self, profile: UserProfile) -> UserProfile:
        """
        Insert or replace a profile (keyed by id).

        Raises:
            DuplicateKeyError: If the user or PRN number already has another profile.
        """
        ...


class TeamRepository(ABC):
    """Storage for teams."""

    @abstractmethod
    async def list_all(self, active_only: bool = False) -> list[Team]:
        """Teams ordered newest created first."""
        ...

    @abstractmethod
    async def get(self, team_id: str) -> Optional[Team]:
        ...

    @abstractmethod
    async def find_by_slug(self, slug: str) -> Optional[Team]:
        ...

    @abstractmethod
    async def create(self, team: Team) -> Team:
        """
        Raises:
            DuplicateKeyError: If the slug is taken.
        """
        ...

    @abstractmethod
    async def update_fields(self, team_id: str, fields: dict[str, Any]) -> Optional[Team]:
        """
        Set ``fields`` on a team and return the updated document.

        Returns:
            None if no team matched.

        Raises:
            DuplicateKeyError: If the slug is taken.
        """
        ...

    @abstractmethod
    async def delete(self, team_id: str) -> Optional[Team]:
        ...


class TeamMemberRepository(ABC):
    """Storage for team rosters."""

    @abstractmethod
    async def list_for_team(self, team_id: str, active_only: bool = False) -> list[TeamMember]:
        """Members ordered by ``order`` ascending, newest created first on ties."""
        ...

    @abstractmethod
    async def count_active(self, team_ids: list[str]) -> dict[str, int]:
        """Active member counts keyed by team id; teams without members are omitted."""
        ...

    @abstractmethod
    async def get(self, member_id: str) -> Optional[TeamMember]:
        ...

    @abstractmethod
    async def create(self, member: TeamMember) -> TeamMember:
        ...

    @abstractmethod
    async def update_fields(self, member_id: str, fields: dict[str, Any]) -> Optional[TeamMember]:
        ...

    @abstractmethod
    async def delete(self, member_id: str) -> Optional[TeamMember]:
        ...

    @abstractmethod
    async def delete_for_team(self, team_id: str) -> int:
        ...


class Repositories:
    """Bundle of the repositories backed by one store."""

    def __init__(
        self,
        users: UserRepository,
        events: EventRepository,
        registrations: RegistrationRepository,
        profiles: ProfileRepository,
        teams: TeamRepository,
        team_members: TeamMemberRepository,
    ):
        self.users = users
        self.events = events
        self.registrations = registrations
        self.profiles = profiles
        self.teams = teams
        self.team_members = team_members
