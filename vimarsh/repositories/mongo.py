"""
MongoDB repository implementations.

Uses the pymongo async client. Uniqueness is enforced by the indexes created
in ``MongoStore.ensure_indexes``; driver duplicate-key errors are translated
into ``DuplicateKeyError`` so callers never see raw store errors.
"""

import logging
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

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

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

USERS = "users"
EVENTS = "events"
REGISTRATIONS = "event_registrations"
PROFILES = "user_profiles"
TEAMS = "teams"
TEAM_MEMBERS = "team_members"


def _plain(value: Any) -> Any:
    """Strip enums so BSON sees primitive values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def to_document(model: BaseModel) -> dict[str, Any]:
    """Serialize a model into a MongoDB document keyed by ``_id``."""
    doc = _plain(model.model_dump())
    doc["_id"] = doc.pop("id")
    return doc


def from_document(model_cls: type[M], doc: Optional[dict[str, Any]]) -> Optional[M]:
    """Rebuild a model from a MongoDB document."""
    if doc is None:
        return None
    data = dict(doc)
    data["id"] = data.pop("_id")
    return model_cls.model_validate(data)


def _duplicate(collection: str, error: MongoDuplicateKeyError) -> DuplicateKeyError:
    pattern = (error.details or {}).get("keyPattern") or {}
    key = "_".join(pattern.keys()) or "unknown"
    return DuplicateKeyError(collection, key)


class MongoUserRepository(UserRepository):
    def __init__(self, collection):
        self._collection = collection

    async def get(self, user_id: str) -> Optional[User]:
        return from_document(User, await self._collection.find_one({"_id": user_id}))

    async def find_by_email(self, email: str) -> Optional[User]:
        return from_document(User, await self._collection.find_one({"email": email}))

    async def find_by_supabase_id(self, supabase_id: str) -> Optional[User]:
        return from_document(User, await self._collection.find_one({"supabase_id": supabase_id}))

    async def find_by_reset_token(self, token: str) -> Optional[User]:
        return from_document(User, await self._collection.find_one({"password_reset_token": token}))

    async def create(self, user: User) -> User:
        try:
            await self._collection.insert_one(to_document(user))
        except MongoDuplicateKeyError as e:
            raise _duplicate(USERS, e) from e
        return user

    async def update(self, user: User) -> User:
        user.touch()
        try:
            result = await self._collection.replace_one({"_id": user.id}, to_document(user))
        except MongoDuplicateKeyError as e:
            raise _duplicate(USERS, e) from e
        if result.matched_count != 1:
            raise LookupError(f"User not found: {user.id}")
        return user


class MongoEventRepository(EventRepository):
    def __init__(self, collection):
        self._collection = collection

    async def list_all(self) -> list[Event]:
        cursor = self._collection.find({}).sort([("date", ASCENDING), ("created_at", DESCENDING)])
        return [from_document(Event, doc) async for doc in cursor]

    async def get(self, event_id: str) -> Optional[Event]:
        return from_document(Event, await self._collection.find_one({"_id": event_id}))

    async def create(self, event: Event) -> Event:
        try:
            await self._collection.insert_one(to_document(event))
        except MongoDuplicateKeyError as e:
            raise _duplicate(EVENTS, e) from e
        return event

    async def update_fields(self, event_id: str, fields: dict[str, Any]) -> Optional[Event]:
        update = {**_plain(fields), "updated_at": utcnow()}
        try:
            doc = await self._collection.find_one_and_update(
                {"_id": event_id},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError as e:
            raise _duplicate(EVENTS, e) from e
        return from_document(Event, doc)

    async def delete(self, event_id: str) -> Optional[Event]:
        return from_document(Event, await self._collection.find_one_and_delete({"_id": event_id}))

    async def increment_registered_count(self, event_id: str, delta: int) -> bool:
        query: dict[str, Any] = {"_id": event_id}
        if delta < 0:
            query["registered_count"] = {"$gte": -delta}
        result = await self._collection.update_one(query, {"$inc": {"registered_count": delta}})
        return result.matched_count == 1

    async def insert_if_missing(self, event: Event) -> bool:
        doc = to_document(event)
        result = await self._collection.update_one(
            {"slug": event.slug},
            {"$setOnInsert": doc},
            upsert=True,
        )
        return result.upserted_id is not None

    async def delete_by_slugs(self, slugs: list[str]) -> int:
        result = await self._collection.delete_many({"slug": {"$in": slugs}})
        return result.deleted_count


class MongoRegistrationRepository(RegistrationRepository):
    def __init__(self, collection):
        self._collection = collection

    async def create(self, registration: EventRegistration) -> EventRegistration:
        try:
            await self._collection.insert_one(to_document(registration))
        except MongoDuplicateKeyError as e:
            raise _duplicate(REGISTRATIONS, e) from e
        return registration

    async def delete(self, registration_id: str) -> bool:
        result = await self._collection.delete_one({"_id": registration_id})
        return result.deleted_count == 1

    async def find(self, event_id: str, user_supabase_id: str) -> Optional[EventRegistration]:
        doc = await self._collection.find_one(
            {"event_id": event_id, "user_supabase_id": user_supabase_id}
        )
        return from_document(EventRegistration, doc)

    async def list_for_user(self, user_supabase_id: str) -> list[EventRegistration]:
        cursor = self._collection.find({"user_supabase_id": user_supabase_id})
        return [from_document(EventRegistration, doc) async for doc in cursor]

    async def list_for_event(self, event_id: str) -> list[EventRegistration]:
        cursor = self._collection.find({"event_id": event_id}).sort("created_at", DESCENDING)
        return [from_document(EventRegistration, doc) async for doc in cursor]

    async def count_for_event(self, event_id: str) -> int:
        return await self._collection.count_documents({"event_id": event_id})

    async def delete_for_event(self, event_id: str) -> int:
        result = await self._collection.delete_many({"event_id": event_id})
        return result.deleted_count


class MongoProfileRepository(ProfileRepository):
    def __init__(self, collection):
        self._collection = collection

    async def get_by_user(self, user_id: str) -> Optional[UserProfile]:
        return from_document(UserProfile, await self._collection.find_one({"user_id": user_id}))

    async def find_by_prn(self, prn_number: str) -> Optional[UserProfile]:
        return from_document(UserProfile, await self._collection.find_one({"prn_number": prn_number}))

    async def save(self, profile: UserProfile) -> UserProfile:
        profile.touch()
        try:
            await self._collection.replace_one({"_id": profile.id}, to_document(profile), upsert=True)
        except MongoDuplicateKeyError as e:
            raise _duplicate(PROFILES, e) from e
        return profile


class MongoTeamRepository(TeamRepository):
    def __init__(self, collection):
        self._collection = collection

    async def list_all(self, active_only: bool = False) -> list[Team]:
        query = {"is_active": True} if active_only else {}
        cursor = self._collection.find(query).sort("created_at", DESCENDING)
        return [from_document(Team, doc) async for doc in cursor]

    async def get(self, team_id: str) -> Optional[Team]:
        return from_document(Team, await self._collection.find_one({"_id": team_id}))

    async def find_by_slug(self, slug: str) -> Optional[Team]:
        return from_document(Team, await self._collection.find_one({"slug": slug}))

    async def create(self, team: Team) -> Team:
        try:
            await self._collection.insert_one(to_document(team))
        except MongoDuplicateKeyError as e:
            raise _duplicate(TEAMS, e) from e
        return team

    async def update_fields(self, team_id: str, fields: dict[str, Any]) -> Optional[Team]:
        try:
            doc = await self._collection.find_one_and_update(
                {"_id": team_id},
                {"$set": {**fields, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError as e:
            raise _duplicate(TEAMS, e) from e
        return from_document(Team, doc)

    async def delete(self, team_id: str) -> Optional[Team]:
        return from_document(Team, await self._collection.find_one_and_delete({"_id": team_id}))


class MongoTeamMemberRepository(TeamMemberRepository):
    def __init__(self, collection):
        self._collection = collection

    async def list_for_team(self, team_id: str, active_only: bool = False) -> list[TeamMember]:
        query: dict[str, Any] = {"team_id": team_id}
        if active_only:
            query["is_active"] = True
        cursor = self._collection.find(query).sort([("order", ASCENDING), ("created_at", DESCENDING)])
        return [from_document(TeamMember, doc) async for doc in cursor]

    async def count_active(self, team_ids: list[str]) -> dict[str, int]:
        pipeline = [
            {"$match": {"team_id": {"$in": team_ids}, "is_active": True}},
            {"$group": {"_id": "$team_id", "count": {"$sum": 1}}},
        ]
        cursor = await self._collection.aggregate(pipeline)
        return {doc["_id"]: doc["count"] async for doc in cursor}

    async def get(self, member_id: str) -> Optional[TeamMember]:
        return from_document(TeamMember, await self._collection.find_one({"_id": member_id}))

    async def create(self, member: TeamMember) -> TeamMember:
        await self._collection.insert_one(to_document(member))
        return member

    async def update_fields(self, member_id: str, fields: dict[str, Any]) -> Optional[TeamMember]:
        doc = await self._collection.find_one_and_update(
            {"_id": member_id},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return from_document(TeamMember, doc)

    async def delete(self, member_id: str) -> Optional[TeamMember]:
        return from_document(TeamMember, await self._collection.find_one_and_delete({"_id": member_id}))

    async def delete_for_team(self, team_id: str) -> int:
        result = await self._collection.delete_many({"team_id": team_id})
        return result.deleted_count


class MongoStore:
    """
    Owns the MongoDB client and hands out repositories over one database.

    The client is opened once at startup and shared by every request.
    """

    def __init__(self, uri: str, database_name: str):
        self._uri = uri
        self._database_name = database_name
        self._client: AsyncMongoClient | None = None
        self._repositories: Repositories | None = None

    async def connect(self) -> Repositories:
        """Open the client, ensure indexes and build the repositories."""
        if self._repositories is not None:
            return self._repositories

        self._client = AsyncMongoClient(self._uri, tz_aware=True)
        db = self._client[self._database_name]
        await self.ensure_indexes(db)

        self._repositories = Repositories(
            users=MongoUserRepository(db[USERS]),
            events=MongoEventRepository(db[EVENTS]),
            registrations=MongoRegistrationRepository(db[REGISTRATIONS]),
            profiles=MongoProfileRepository(db[PROFILES]),
            teams=MongoTeamRepository(db[TEAMS]),
            team_members=MongoTeamMemberRepository(db[TEAM_MEMBERS]),
        )
        logger.info(f"Connected to MongoDB database '{self._database_name}'")
        return self._repositories

    @staticmethod
    async def ensure_indexes(db) -> None:
        """Create the unique indexes the repositories rely on."""
        await db[USERS].create_index("email", unique=True)
        await db[USERS].create_index(
            "supabase_id",
            unique=True,
            partialFilterExpression={"supabase_id": {"$type": "string"}},
        )
        await db[USERS].create_index([("created_at", DESCENDING)])
        await db[EVENTS].create_index("slug", unique=True)
        await db[EVENTS].create_index([("date", ASCENDING), ("created_at", DESCENDING)])
        await db[REGISTRATIONS].create_index(
            [("event_id", ASCENDING), ("user_supabase_id", ASCENDING)],
            unique=True,
        )
        await db[REGISTRATIONS].create_index("user_supabase_id")
        await db[PROFILES].create_index("user_id", unique=True)
        await db[PROFILES].create_index("prn_number", unique=True)
        await db[TEAMS].create_index("slug", unique=True)
        await db[TEAM_MEMBERS].create_index(
            [("team_id", ASCENDING), ("order", ASCENDING), ("created_at", DESCENDING)]
        )

    async def close(self) -> None:
        """Close the client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._repositories = None
            logger.info("MongoDB connection closed")
