"""
API v1 package.

Exports the main API router that aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from vimarsh.api.v1.endpoints import admin, auth, events, profile, teams
from vimarsh.api.v1.schemas.common import ERROR_RESPONSES

# Create the main v1 router; every failure shares the error envelope
api_router = APIRouter(responses=ERROR_RESPONSES)

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(teams.router, prefix="/teams", tags=["Teams"])
api_router.include_router(profile.router, prefix="/profile", tags=["Profile"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])

__all__ = ["api_router"]
