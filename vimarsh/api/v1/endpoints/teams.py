"""
Public team pages.
"""

from fastapi import APIRouter, Depends

from vimarsh.api.v1.schemas.common import SuccessResponse
from vimarsh.core.container import get_team_directory_dep
from vimarsh.models import TeamMember, TeamView
from vimarsh.services import TeamDirectory

router = APIRouter()


@router.get("", response_model=SuccessResponse[list[TeamView]])
async def list_teams(
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[list[TeamView]]:
    """Active teams, newest first, with ``membersCount``."""
    return SuccessResponse[list[TeamView]](data=await directory.list_active())


@router.get("/{slug}", response_model=SuccessResponse[TeamView])
async def get_team(
    slug: str,
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[TeamView]:
    return SuccessResponse[TeamView](data=await directory.get_active(slug))


@router.get("/{slug}/members", response_model=SuccessResponse[list[TeamMember]])
async def list_team_members(
    slug: str,
    directory: TeamDirectory = Depends(get_team_directory_dep),
) -> SuccessResponse[list[TeamMember]]:
    """Active members ordered by position."""
    return SuccessResponse[list[TeamMember]](data=await directory.active_members(slug))
