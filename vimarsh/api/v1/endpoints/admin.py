"""
Admin endpoints: session, event catalog, registrations, teams and user lookup.

Everything except ``/login`` requires an admin session token.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status

from vimarsh.api.v1.dependencies.auth import require_admin
from vimarsh.api.v1.schemas.admin import (
    AdminData,
    AdminLoginRequest,
    AdminSessionData,
    AdminView,
    UploadSignatureData,
    UserProfileLookupData,
)
from vimarsh.api.v1.schemas.common import MessageResponse, SuccessResponse
from vimarsh.api.v1.schemas.events import DeletedCountData, EventRequest, RegistrantView
from vimarsh.api.v1.schemas.teams import TeamMemberRequest, TeamRequest
from vimarsh.core.container import (
    get_admin_authenticator_dep,
    get_event_catalog_dep,
    get_image_host_dep,
    get_ledger_dep,
    get_repositories_dep,
    get_team_directory_dep,
)
from vimarsh.core.errors import BadRequestError, NotFoundError
from vimarsh.core.validation import normalize_email
from vimarsh.models import Event, Team, TeamMember
from vimarsh.providers.images import CloudinaryImageHost
from vimarsh.repositories import Repositories
from vimarsh.services import AdminAuthenticator, EventCatalog, EventRegistrationLedger, TeamDirectory

router = APIRouter()


@router.post("/login", response_model=SuccessResponse[AdminSessionData])
async def admin_login(
    request: AdminLoginRequest,
    authenticator: AdminAuthenticator = Depends(get_admin_authenticator_dep),
) -> SuccessResponse[AdminSessionData]:
    """Exchange the operator-configured admin credentials for a session token."""
    token, admin = authenticator.login(request.email, request.password)
    return SuccessResponse[AdminSessionData](
        message="Admin login successful",
        data=AdminSessionData(token=token, admin=AdminView(**admin)),
    )


@router.get("/me", response_model=SuccessResponse[AdminData])
async def admin_me(admin: dict[str, Any] = Depends(require_admin)) -> SuccessResponse[AdminData]:
    """Validate an admin token."""
    return SuccessResponse[AdminData](data=AdminData(admin=AdminView(**admin)))


@router.get("/cloudinary/signature", response_model=SuccessResponse[UploadSignatureData])
async def cloudinary_signature(
    _: dict[str, Any] = Depends(require_admin),
    image_host: CloudinaryImageHost = Depends(get_image_host_dep),
) -> SuccessResponse[UploadSignatureData]:
    """Signed parameters for a direct browser upload."""
    return SuccessResponse[UploadSignatureData](
        data=UploadSignatureData(**image_host.upload_signature())
    )


@router.get("/events", response_model=SuccessResponse[list[Event]])
async def admin_list_events(
    _: dict[str, Any] = Depends(require_admin),
    catalog: EventCatalog = Depends(get_event_catalog_dep),
) -> SuccessResponse[list[Event]]:
    return SuccessResponse[list[Event]](data=await catalog.list_all())


@router.post(
    "/events",
    response_model=SuccessResponse[Event],
    status_code=status.HTTP_201_CREATED,
)
async def admin_create_event(
    request: EventRequest,
    _: dict[str, Any] = Depends(require_admin),
    catalog: EventCatalog = Depends(get_event_catalog_dep),
) -> SuccessResponse[Event]:
    event = await catalog.create(request.model_dump())
    return SuccessResponse[Event](message="Event created", data=event)


# Declared before /events/{event_id} so "seeded" is not captured as an id.
@router.delete("/events/seeded", response_model=SuccessResponse[DeletedCountData])
async def admin_delete_seeded_events(
    _: dict[str, Any] = Depends(require_admin),
    catalog: EventCatalog = Depends(get_event_catalog_dep),
) -> SuccessResponse[DeletedCountData]:
    deleted = await catalog.delete_seeded()
    return SuccessResponse[DeletedCountData](data=DeletedCountData(deleted_count=deleted))


@router.put("/events/{event_id}", response_model=SuccessResponse[Event])
async def admin_update_event(
    event_id: str,
    request: EventRequest,
    _: dict[str, Any] = Depends(require_admin),
    catalog: EventCatalog = Depends(get_event_catalog_dep),
) -> SuccessResponse[Event]:
    event = await catalog.update(event_id, request.model_dump(exclude_unset=True))
    return SuccessResponse[Event](message="Event updated", data=event)


@router.delete("/events/{event_id}", response_model=MessageResponse)
async def admin_delete_event(
    event_id: str,
    _: dict[str, Any] = Depends(require_admin),
    catalog: EventCatalog = Depends(get_event_catalog_dep),
) -> MessageResponse:
    await catalog.delete(event_id)
    return MessageResponse(message="Event deleted")


@router.get(
    "/events/{event_id}/registrations",
    response_model=SuccessResponse[list[RegistrantView]],
)
async def admin_event_registrations(
    event_id: str,
    _: dict[str, Any] = Depends(require_admin),
    ledger: EventRegistrationLedger = Depends(get_ledger_dep),
) -> SuccessResponse[list[RegistrantView]]:
    """Registrations for an event, newest first."""
    rows = await ledger.registrations_for_event(event_id)
    return SuccessResponse[list[RegistrantView]](
        data=[RegistrantView.model_validate(row) for row in rows]
    )


@router.get("/teams", response_model=SuccessResponse[list[Team]])
async def admin_list_teams(
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[list[Team]]:
    """All teams, active or not, newest first."""
    return SuccessResponse[list[Team]](data=await directory.list_all())


@router.post(
    "/teams",
    response_model=SuccessResponse[Team],
    status_code=status.HTTP_201_CREATED,
)
async def admin_create_team(
    request: TeamRequest,
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[Team]:
    team = await directory.create(request.model_dump())
    return SuccessResponse[Team](message="Team created", data=team)


@router.put("/teams/{team_id}", response_model=SuccessResponse[Team])
async def admin_update_team(
    team_id: str,
    request: TeamRequest,
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[Team]:
    team = await directory.update(team_id, request.model_dump(exclude_unset=True))
    return SuccessResponse[Team](message="Team updated", data=team)


@router.delete("/teams/{team_id}", response_model=MessageResponse)
async def admin_delete_team(
    team_id: str,
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> MessageResponse:
    await directory.delete(team_id)
    return MessageResponse(message="Team deleted")


@router.get("/teams/{team_id}/members", response_model=SuccessResponse[list[TeamMember]])
async def admin_list_team_members(
    team_id: str,
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[list[TeamMember]]:
    return SuccessResponse[list[TeamMember]](data=await directory.list_members(team_id))


@router.post(
    "/teams/{team_id}/members",
    response_model=SuccessResponse[TeamMember],
    status_code=status.HTTP_201_CREATED,
)
async def admin_add_team_member(
    team_id: str,
    request: TeamMemberRequest,
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[TeamMember]:
    member = await directory.add_member(team_id, request.model_dump())
    return SuccessResponse[TeamMember](message="Member added", data=member)


@router.put("/members/{member_id}", response_model=SuccessResponse[TeamMember])
async def admin_update_team_member(
    member_id: str,
    request: TeamMemberRequest,
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[TeamMember]:
    member = await directory.update_member(member_id, request.model_dump(exclude_unset=True))
    return SuccessResponse[TeamMember](message="Member updated", data=member)


@router.delete("/members/{member_id}", response_model=MessageResponse)
async def admin_delete_team_member(
    member_id: str,
    _: dict[str, Any] = Depends(require_admin),
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> MessageResponse:
    await directory.delete_member(member_id)
    return MessageResponse(message="Member deleted")


@router.get("/users/profile", response_model=SuccessResponse[UserProfileLookupData])
async def admin_user_profile(
    email: Optional[str] = Query(default=None),
    _: dict[str, Any] = Depends(require_admin),
    repositories: Repositories = Depends(get_repositories_dep),
) -> SuccessResponse[UserProfileLookupData]:
    """Look up a user and their profile by email."""
    email = normalize_email(email)
    if not email:
        raise BadRequestError("Email is required")
    user = await repositories.users.find_by_email(email)
    if user is None:
        raise NotFoundError("User not found")
    profile = await repositories.profiles.get_by_user(user.id)
    return SuccessResponse[UserProfileLookupData](
        data=UserProfileLookupData(user=user.public_profile(), profile=profile)
    )
