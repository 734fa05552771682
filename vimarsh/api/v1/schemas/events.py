"""
Event and registration schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from vimarsh.api.v1.schemas.common import CamelModel
from vimarsh.models import EventRegistration, EventView


class RegisterForEventRequest(CamelModel):
    """Optional snapshot names; provider metadata is used when absent."""

    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class RegistrationData(CamelModel):
    event: EventView
    registration: EventRegistration


class EventData(CamelModel):
    event: EventView


class EventRequest(CamelModel):
    """Admin create/update body. All fields optional; create checks required ones."""

    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = Field(default=None, description="ISO-8601 date")
    time: Optional[str] = None
    mode: Optional[str] = None
    location: Optional[str] = None
    image: Optional[str] = None


class RegistrantView(CamelModel):
    first_name: str
    last_name: str
    email: str
    registered_at: datetime


class DeletedCountData(CamelModel):
    deleted_count: int
