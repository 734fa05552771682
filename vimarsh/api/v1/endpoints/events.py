"""
Public event listing and member registration endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from vimarsh.api.v1.dependencies.auth import get_identity, get_optional_identity
from vimarsh.api.v1.schemas.common import SuccessResponse
from vimarsh.api.v1.schemas.events import EventData, RegisterForEventRequest, RegistrationData
from vimarsh.core.container import get_ledger_dep
from vimarsh.models import EventView
from vimarsh.providers.identity import ExternalIdentity
from vimarsh.services import EventRegistrationLedger

router = APIRouter()


@router.get("", response_model=SuccessResponse[list[EventView]])
async def list_events(
    identity: Optional[ExternalIdentity] = Depends(get_optional_identity),
    ledger: EventRegistrationLedger = Depends(get_ledger_dep),
) -> SuccessResponse[list[EventView]]:
    """
    List events with their registration counts.

    ``hasRegistered`` is filled in when a valid bearer token is supplied.
    """
    events = await ledger.list_events(identity)
    return SuccessResponse[list[EventView]](data=events)


@router.post(
    "/{event_id}/register",
    response_model=SuccessResponse[RegistrationData],
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    event_id: str,
    request: Optional[RegisterForEventRequest] = None,
    identity: ExternalIdentity = Depends(get_identity),
    ledger: EventRegistrationLedger = Depends(get_ledger_dep),
) -> SuccessResponse[RegistrationData]:
    """Register the caller for an event."""
    request = request or RegisterForEventRequest()
    event, registration = await ledger.register(
        event_id,
        identity,
        name=request.name,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return SuccessResponse[RegistrationData](
        message="Registered successfully",
        data=RegistrationData(event=event, registration=registration),
    )


@router.delete("/{event_id}/register", response_model=SuccessResponse[EventData])
async def unregister_from_event(
    event_id: str,
    identity: ExternalIdentity = Depends(get_identity),
    ledger: EventRegistrationLedger = Depends(get_ledger_dep),
) -> SuccessResponse[EventData]:
    """Cancel the caller's registration for an event."""
    event = await ledger.unregister(event_id, identity)
    return SuccessResponse[EventData](
        message="Registration cancelled",
        data=EventData(event=event),
    )
