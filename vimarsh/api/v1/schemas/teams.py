"""
Team and team member schemas.
"""

from typing import Optional

from vimarsh.api.v1.schemas.common import CamelModel


class TeamRequest(CamelModel):
    """Admin create/update body. ``isActive`` is only honoured on update."""

    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    is_active: Optional[bool] = None


class TeamMemberRequest(CamelModel):
    """Admin create/update body. Send ``linkedin`` or ``image`` as null to clear them."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    linkedin: Optional[str] = None
    image: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
