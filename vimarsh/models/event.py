"""
Event and EventRegistration documents.

``Event.registered_count`` is a denormalized count of the registrations that
reference the event; only the registration ledger writes it.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from vimarsh.models.base import Document


class EventMode(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"
    HYBRID = "Hybrid"


class Event(Document):
    """A schedulable community activity."""

    slug: str
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=2000)
    date: datetime
    time: str
    mode: EventMode
    location: str
    image: str
    registered_count: int = Field(default=0, ge=0)


class EventView(Event):
    """An event annotated for a particular caller."""

    has_registered: bool = False


class EventRegistration(Document):
    """The fact that a Supabase user registered for an event."""

    event_id: str
    user_supabase_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_email: str
    user_name: Optional[str] = None
