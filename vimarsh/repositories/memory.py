"""
In-memory repository implementations.

Dictionary-backed stores for development and testing. Not suitable for
production (no persistence, single-process only).

Each repository serializes its writes with an asyncio.Lock so that the
uniqueness checks behave like unique indexes under concurrent requests.
Documents are copied on the way in and out, so callers never share state
with the store.
"""

import asyncio
from typing import Any, Optional

from vimarsh.models import Event, EventRegistration, Team, TeamMember, User, UserProfile
from vimarsh.models.base import utcnow
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


class InMemoryUserRepository(UserRepository):
    """User storage keyed by id."""

    def __init__(self):
        self._users: dict[str, User] = {}
        self._lock = asyncio.Lock()

    def _check_unique(self, user: User) -> None:
        for other in self._users.values():
            if other.id == user.id:
                continue
            if other.email == user.email:
                raise DuplicateKeyError("users", "email")
            if user.supabase_id and other.supabase_id == user.supabase_id:
                raise DuplicateKeyError("users", "supabase_id")

    async def get(self, user_id: str) -> Optional[User]:
        async with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    async def _find(self, **criteria: Any) -> Optional[User]:
        async with self._lock:
            for user in self._users.values():
                if all(getattr(user, key) == value for key, value in criteria.items()):
                    return user.model_copy(deep=True)
            return None

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self._find(email=email)

    async def find_by_supabase_id(self, supabase_id: str) -> Optional[User]:
        return await self._find(supabase_id=supabase_id)

    async def find_by_reset_token(self, token: str) -> Optional[User]:
        return await self._find(password_reset_token=token)

    async def create(self, user: User) -> User:
        async with self._lock:
            if user.id in self._users:
                raise DuplicateKeyError("users", "id")
            self._check_unique(user)
            self._users[user.id] = user.model_copy(deep=True)
            return user

    async def update(self, user: User) -> User:
        async with self._lock:
            if user.id not in self._users:
                raise LookupError(f"User not found: {user.id}")
            self._check_unique(user)
            user.touch()
            self._users[user.id] = user.model_copy(deep=True)
            return user

    @property
    def user_count(self) -> int:
        return len(self._users)


class InMemoryEventRepository(EventRepository):
    """Event storage keyed by id."""

    def __init__(self):
        self._events: dict[str, Event] = {}
        self._lock = asyncio.Lock()

    def _check_slug(self, slug: str, event_id: str) -> None:
        for other in self._events.values():
            if other.id != event_id and other.slug == slug:
                raise DuplicateKeyError("events", "slug")

    async def list_all(self) -> list[Event]:
        async with self._lock:
            events = [e.model_copy(deep=True) for e in self._events.values()]
        # Two stable sorts: created_at desc, then date asc.
        events.sort(key=lambda e: e.created_at, reverse=True)
        events.sort(key=lambda e: e.date)
        return events

    async def get(self, event_id: str) -> Optional[Event]:
        async with self._lock:
            event = self._events.get(event_id)
            return event.model_copy(deep=True) if event else None

    async def create(self, event: Event) -> Event:
        async with self._lock:
            self._check_slug(event.slug, event.id)
            self._events[event.id] = event.model_copy(deep=True)
            return event

    async def update_fields(self, event_id: str, fields: dict[str, Any]) -> Optional[Event]:
        async with self._lock:
            current = self._events.get(event_id)
            if current is None:
                return None
            if "slug" in fields:
                self._check_slug(fields["slug"], event_id)
            updated = Event.model_validate(
                {**current.model_dump(), **fields, "updated_at": utcnow()}
            )
            self._events[event_id] = updated
            return updated.model_copy(deep=True)

    async def delete(self, event_id: str) -> Optional[Event]:
        async with self._lock:
            return self._events.pop(event_id, None)

    async def increment_registered_count(self, event_id: str, delta: int) -> bool:
        async with self._lock:
            event = self._events.get(event_id)
            if event is None or event.registered_count + delta < 0:
                return False
            event.registered_count += delta
            return True

    async def insert_if_missing(self, event: Event) -> bool:
        async with self._lock:
            if any(other.slug == event.slug for other in self._events.values()):
                return False
            self._events[event.id] = event.model_copy(deep=True)
            return True

    async def delete_by_slugs(self, slugs: list[str]) -> int:
        async with self._lock:
            doomed = [eid for eid, event in self._events.items() if event.slug in slugs]
            for eid in doomed:
                del self._events[eid]
            return len(doomed)


class InMemoryRegistrationRepository(RegistrationRepository):
    """Registration ledger keyed by id with a (event, user) unique index."""

    def __init__(self):
        self._registrations: dict[str, EventRegistration] = {}
        self._lock = asyncio.Lock()

    async def create(self, registration: EventRegistration) -> EventRegistration:
        async with self._lock:
            for other in self._registrations.values():
                if (
                    other.event_id == registration.event_id
                    and other.user_supabase_id == registration.user_supabase_id
                ):
                    raise DuplicateKeyError("event_registrations", "event_id_user_supabase_id")
            self._registrations[registration.id] = registration.model_copy(deep=True)
            return registration

    async def delete(self, registration_id: str) -> bool:
        async with self._lock:
            return self._registrations.pop(registration_id, None) is not None

    async def find(self, event_id: str, user_supabase_id: str) -> Optional[EventRegistration]:
        async with self._lock:
            for reg in self._registrations.values():
                if reg.event_id == event_id and reg.user_supabase_id == user_supabase_id:
                    return reg.model_copy(deep=True)
            return None

    async def list_for_user(self, user_supabase_id: str) -> list[EventRegistration]:
        async with self._lock:
            return [
                reg.model_copy(deep=True)
                for reg in self._registrations.values()
                if reg.user_supabase_id == user_supabase_id
            ]

    async def list_for_event(self, event_id: str) -> list[EventRegistration]:
        async with self._lock:
            regs = [
                reg.model_copy(deep=True)
                for reg in self._registrations.values()
                if reg.event_id == event_id
            ]
        regs.sort(key=lambda r: r.created_at, reverse=True)
        return regs

    async def count_for_event(self, event_id: str) -> int:
        async with self._lock:
            return sum(1 for reg in self._registrations.values() if reg.event_id == event_id)

    async def delete_for_event(self, event_id: str) -> int:
        async with self._lock:
            doomed = [rid for rid, reg in self._registrations.items() if reg.event_id == event_id]
            for rid in doomed:
                del self._registrations[rid]
            return len(doomed)

    @property
    def registration_count(self) -> int:
        return len(self._registrations)


class InMemoryProfileRepository(ProfileRepository):
    """Profile storage with unique user and PRN number."""

    def __init__(self):
        self._profiles: dict[str, UserProfile] = {}
        self._lock = asyncio.Lock()

    async def get_by_user(self, user_id: str) -> Optional[UserProfile]:
        async with self._lock:
            for profile in self._profiles.values():
                if profile.user_id == user_id:
                    return profile.model_copy(deep=True)
            return None

    async def find_by_prn(self, prn_number: str) -> Optional[UserProfile]:
        async with self._lock:
            for profile in self._profiles.values():
                if profile.prn_number == prn_number:
                    return profile.model_copy(deep=True)
            return None

    async def save(self, profile: UserProfile) -> UserProfile:
        async with self._lock:
            for other in self._profiles.values():
                if other.id == profile.id:
                    continue
                if other.user_id == profile.user_id:
                    raise DuplicateKeyError("user_profiles", "user_id")
                if other.prn_number == profile.prn_number:
                    raise DuplicateKeyError("user_profiles", "prn_number")
            profile.touch()
            self._profiles[profile.id] = profile.model_copy(deep=True)
            return profile


class InMemoryTeamRepository(TeamRepository):
    """Team storage keyed by id with a unique slug."""

    def __init__(self):
        self._teams: dict[str, Team] = {}
        self._lock = asyncio.Lock()

    def _check_slug(self, slug: str, team_id: str) -> None:
        for other in self._teams.values():
            if other.id != team_id and other.slug == slug:
                raise DuplicateKeyError("teams", "slug")

    async def list_all(self, active_only: bool = False) -> list[Team]:
        async with self._lock:
            teams = [
                t.model_copy(deep=True) for t in self._teams.values() if t.is_active or not active_only
            ]
        teams.sort(key=lambda t: t.created_at, reverse=True)
        return teams

    async def get(self, team_id: str) -> Optional[Team]:
        async with self._lock:
            team = self._teams.get(team_id)
            return team.model_copy(deep=True) if team else None

    async def find_by_slug(self, slug: str) -> Optional[Team]:
        async with self._lock:
            for team in self._teams.values():
                if team.slug == slug:
                    return team.model_copy(deep=True)
            return None

    async def create(self, team: Team) -> Team:
        async with self._lock:
            self._check_slug(team.slug, team.id)
            self._teams[team.id] = team.model_copy(deep=True)
            return team

    async def update_fields(self, team_id: str, fields: dict[str, Any]) -> Optional[Team]:
        async with self._lock:
            current = self._teams.get(team_id)
            if current is None:
                return None
            if "slug" in fields:
                self._check_slug(fields["slug"], team_id)
            updated = Team.model_validate({**current.model_dump(), **fields, "updated_at": utcnow()})
            self._teams[team_id] = updated
            return updated.model_copy(deep=True)

    async def delete(self, team_id: str) -> Optional[Team]:
        async with self._lock:
            return self._teams.pop(team_id, None)


class InMemoryTeamMemberRepository(TeamMemberRepository):
    """Team member storage keyed by id."""

    def __init__(self):
        self._members: dict[str, TeamMember] = {}
        self._lock = asyncio.Lock()

    async def list_for_team(self, team_id: str, active_only: bool = False) -> list[TeamMember]:
        async with self._lock:
            members = [
                m.model_copy(deep=True)
                for m in self._members.values()
                if m.team_id == team_id and (m.is_active or not active_only)
            ]
        members.sort(key=lambda m: m.created_at, reverse=True)
        members.sort(key=lambda m: m.order)
        return members

    async def count_active(self, team_ids: list[str]) -> dict[str, int]:
        counts: dict[str, int] = {}
        async with self._lock:
            for member in self._members.values():
                if member.is_active and member.team_id in team_ids:
                    counts[member.team_id] = counts.get(member.team_id, 0) + 1
        return counts

    async def get(self, member_id: str) -> Optional[TeamMember]:
        async with self._lock:
            member = self._members.get(member_id)
            return member.model_copy(deep=True) if member else None

    async def create(self, member: TeamMember) -> TeamMember:
        async with self._lock:
            self._members[member.id] = member.model_copy(deep=True)
            return member

    async def update_fields(self, member_id: str, fields: dict[str, Any]) -> Optional[TeamMember]:
        async with self._lock:
            current = self._members.get(member_id)
            if current is None:
                return None
            updated = TeamMember.model_validate({**current.model_dump(), **fields, "updated_at": utcnow()})
            self._members[member_id] = updated
            return updated.model_copy(deep=True)

    async def delete(self, member_id: str) -> Optional[TeamMember]:
        async with self._lock:
            return self._members.pop(member_id, None)

    async def delete_for_team(self, team_id: str) -> int:
        async with self._lock:
            doomed = [mid for mid, member in self._members.items() if member.team_id == team_id]
            for mid in doomed:
                del self._members[mid]
            return len(doomed)

    @property
    def member_count(self) -> int:
        return len(self._members)


def create_memory_repositories() -> Repositories:
    """Build a fresh set of in-memory repositories."""
    return Repositories(
        users=InMemoryUserRepository(),
        events=InMemoryEventRepository(),
        registrations=InMemoryRegistrationRepository(),
        profiles=InMemoryProfileRepository(),
        teams=InMemoryTeamRepository(),
        team_members=InMemoryTeamMemberRepository(),
    )
