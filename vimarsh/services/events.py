"""
Admin-facing event catalog management.

``registered_count`` is owned by the registration ledger; catalog writes
never touch it.
"""

import logging
from typing import Any

from vimarsh.core.errors import ConflictError, NotFoundError
from vimarsh.core.validation import validate_event_fields
from vimarsh.models import Event
from vimarsh.repositories import DuplicateKeyError, EventRepository, RegistrationRepository
from vimarsh.services.seeder import DEFAULT_EVENT_SLUGS

logger = logging.getLogger(__name__)


def _without_counter(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key != "registered_count"}


class EventCatalog:
    def __init__(self, events: EventRepository, registrations: RegistrationRepository):
        self.events = events
        self.registrations = registrations

    async def list_all(self) -> list[Event]:
        return await self.events.list_all()

    async def create(self, data: dict[str, Any]) -> Event:
        """
        Create an event with a zero registration count.

        Raises:
            BadRequestError: Missing or invalid fields.
            ConflictError: The slug is already used.
        """
        cleaned = validate_event_fields(_without_counter(data))
        event = Event(**cleaned, registered_count=0)
        try:
            await self.events.create(event)
        except DuplicateKeyError as e:
            raise ConflictError("Event slug already exists") from e
        logger.info(f"Created event {event.id} ({event.slug})")
        return event

    async def update(self, event_id: str, data: dict[str, Any]) -> Event:
        """Apply a partial update; only supplied fields change."""
        cleaned = validate_event_fields(_without_counter(data), partial=True)
        if not cleaned:
            event = await self.events.get(event_id)
        else:
            try:
                event = await self.events.update_fields(event_id, cleaned)
            except DuplicateKeyError as e:
                raise ConflictError("Event slug already exists") from e
        if event is None:
            raise NotFoundError("Event not found")
        return event

    async def delete(self, event_id: str) -> None:
        """Delete an event together with its registrations."""
        event = await self.events.delete(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        removed = await self.registrations.delete_for_event(event_id)
        logger.info(f"Deleted event {event_id} and {removed} registration(s)")

    async def delete_seeded(self) -> int:
        """Delete the default events and their registrations. Returns the event count."""
        seeded = [event for event in await self.events.list_all() if event.slug in DEFAULT_EVENT_SLUGS]
        for event in seeded:
            await self.registrations.delete_for_event(event.id)
        deleted = await self.events.delete_by_slugs(DEFAULT_EVENT_SLUGS)
        logger.info(f"Deleted {deleted} seeded event(s)")
        return deleted
