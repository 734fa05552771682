"""
Event registration ledger.

A registration row and the event's ``registered_count`` live in different
documents and the store offers no multi-document transactions. Every write
therefore pairs a ledger mutation with an atomic counter update, and undoes
the ledger mutation when the counter update does not land.
"""

import logging
from typing import Any, Optional

from vimarsh.core.errors import BadRequestError, ConflictError, NotFoundError, ServerError
from vimarsh.core.validation import normalize_email
from vimarsh.models import Event, EventRegistration, EventView
from vimarsh.providers.identity import ExternalIdentity
from vimarsh.repositories import DuplicateKeyError, EventRepository, RegistrationRepository

logger = logging.getLogger(__name__)


def _first_text(*values: Any) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _view(event: Event, has_registered: bool) -> EventView:
    return EventView(**event.model_dump(), has_registered=has_registered)


class EventRegistrationLedger:
    """Registers identities for events and keeps the counters in step."""

    def __init__(self, events: EventRepository, registrations: RegistrationRepository):
        self.events = events
        self.registrations = registrations

    async def list_events(self, identity: Optional[ExternalIdentity] = None) -> list[EventView]:
        """
        All events, each annotated with whether ``identity`` registered.

        The caller's registrations are read with a single query and joined in
        memory.
        """
        events = await self.events.list_all()
        registered_ids: set[str] = set()
        if identity is not None:
            registrations = await self.registrations.list_for_user(identity.provider_id)
            registered_ids = {reg.event_id for reg in registrations}
        return [_view(event, event.id in registered_ids) for event in events]

    async def register(
        self,
        event_id: str,
        identity: ExternalIdentity,
        name: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> tuple[EventView, EventRegistration]:
        """
        Register ``identity`` for an event.

        Returns:
            The refreshed event (``has_registered`` true) and the new registration.

        Raises:
            NotFoundError: The event does not exist (or vanished mid-flight).
            BadRequestError: The identity carries no email.
            ConflictError: Already registered.
            ServerError: The counter update failed; the registration was removed.
        """
        event = await self.events.get(event_id)
        if event is None:
            raise NotFoundError("Event not found")

        user_email = normalize_email(identity.email)
        if not user_email:
            raise BadRequestError("Authenticated user has no email")

        meta = identity.metadata
        meta_first = _first_text(meta.get("firstName"), meta.get("first_name"))
        meta_last = _first_text(meta.get("lastName"), meta.get("last_name"))
        joined = " ".join(
            part for part in (_first_text(meta.get("firstName")), _first_text(meta.get("lastName"))) if part
        )

        registration = EventRegistration(
            event_id=event.id,
            user_supabase_id=identity.provider_id,
            first_name=_first_text(first_name, meta_first),
            last_name=_first_text(last_name, meta_last),
            user_email=user_email,
            user_name=_first_text(name, meta.get("full_name"), joined),
        )

        try:
            await self.registrations.create(registration)
        except DuplicateKeyError as e:
            raise ConflictError("You have already registered for this event") from e

        try:
            matched = await self.events.increment_registered_count(event.id, 1)
        except Exception as e:
            logger.warning(
                f"Counter increment failed for event {event.id}; "
                f"removing registration {registration.id}"
            )
            await self._discard(registration)
            raise ServerError("Server error during event registration", detail=str(e)) from e

        if not matched:
            logger.warning(
                f"Event {event.id} vanished during registration; "
                f"removing registration {registration.id}"
            )
            await self._discard(registration)
            raise NotFoundError("Event not found")

        logger.info(f"Registered {identity.provider_id} for event {event.id}")

        updated = await self.events.get(event.id)
        if updated is None:
            raise NotFoundError("Event not found")
        return _view(updated, True), registration

    async def unregister(self, event_id: str, identity: ExternalIdentity) -> EventView:
        """
        Remove ``identity``'s registration for an event.

        Raises:
            NotFoundError: Unknown event, or no registration to remove.
            ServerError: The counter update failed; the registration was restored.
        """
        event = await self.events.get(event_id)
        if event is None:
            raise NotFoundError("Event not found")

        registration = await self.registrations.find(event.id, identity.provider_id)
        if registration is None:
            raise NotFoundError("You are not registered for this event")

        if not await self.registrations.delete(registration.id):
            # Lost a race with another unregister for the same row.
            raise NotFoundError("You are not registered for this event")

        try:
            matched = await self.events.increment_registered_count(event.id, -1)
        except Exception as e:
            logger.warning(
                f"Counter decrement failed for event {event.id}; "
                f"restoring registration {registration.id}"
            )
            await self.registrations.create(registration)
            raise ServerError("Server error while cancelling registration", detail=str(e)) from e

        updated = await self.events.get(event.id)
        if updated is None:
            raise NotFoundError("Event not found")
        if not matched:
            logger.warning(f"Counter for event {event.id} was already zero on unregister")

        logger.info(f"Unregistered {identity.provider_id} from event {event.id}")
        return _view(updated, False)

    async def registrations_for_event(self, event_id: str) -> list[dict[str, Any]]:
        """Admin projection of an event's registrations, newest first."""
        if await self.events.get(event_id) is None:
            raise NotFoundError("Event not found")
        registrations = await self.registrations.list_for_event(event_id)
        return [
            {
                "firstName": reg.first_name or "",
                "lastName": reg.last_name or "",
                "email": reg.user_email,
                "registeredAt": reg.created_at,
            }
            for reg in registrations
        ]

    async def _discard(self, registration: EventRegistration) -> None:
        try:
            await self.registrations.delete(registration.id)
        except Exception:
            logger.exception(f"Failed to remove registration {registration.id} during compensation")
            raise
