"""
Team and TeamMember documents.

Members reference their team by id; deleting a team removes its members.
"""

from typing import Optional

from pydantic import Field

from vimarsh.models.base import Document


class Team(Document):
    """A community team shown on the public teams page."""

    slug: str
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=3000)
    color: str
    icon: str
    is_active: bool = True


class TeamView(Team):
    """A team annotated with the number of its active members."""

    members_count: int = Field(default=0, ge=0)


class TeamMember(Document):
    team_id: str
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    role: str = Field(..., max_length=200)
    linkedin: Optional[str] = None
    image: Optional[str] = None
    order: int = 0
    is_active: bool = True
