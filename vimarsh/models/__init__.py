"""
Document models shared by repositories, services and the API.
"""

from vimarsh.models.event import Event, EventMode, EventRegistration, EventView
from vimarsh.models.profile import Division, UserProfile
from vimarsh.models.team import Team, TeamMember, TeamView
from vimarsh.models.user import AuthProvider, Theme, User, UserPreferences, UserPublic, UserRole

__all__ = [
    "AuthProvider",
    "Division",
    "Event",
    "EventMode",
    "EventRegistration",
    "EventView",
    "Team",
    "TeamMember",
    "TeamView",
    "Theme",
    "User",
    "UserPreferences",
    "UserProfile",
    "UserPublic",
    "UserRole",
]
