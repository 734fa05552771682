"""
Member profile endpoints. The caller is reconciled from its Supabase token.
"""

from fastapi import APIRouter, Depends

from vimarsh.api.v1.dependencies.auth import get_current_user
from vimarsh.api.v1.schemas.common import SuccessResponse
from vimarsh.api.v1.schemas.profile import ProfileData, ProfileRequest
from vimarsh.core.container import get_profile_store_dep
from vimarsh.models import User
from vimarsh.services import ProfileStore

router = APIRouter()


@router.get("", response_model=SuccessResponse[ProfileData])
async def get_profile(
    current_user: User = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store_dep),
) -> SuccessResponse[ProfileData]:
    """Get the caller's profile (``profile`` is null when none exists yet)."""
    profile = await store.get(current_user)
    return SuccessResponse[ProfileData](data=ProfileData(profile=profile))


@router.post("", response_model=SuccessResponse[ProfileData])
async def save_profile(
    request: ProfileRequest,
    current_user: User = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store_dep),
) -> SuccessResponse[ProfileData]:
    """Create or update the caller's profile."""
    profile = await store.save(current_user, request.model_dump())
    message = (
        "Profile completed successfully!"
        if profile.is_profile_complete
        else "Profile updated successfully"
    )
    return SuccessResponse[ProfileData](message=message, data=ProfileData(profile=profile))


@router.delete("/image", response_model=SuccessResponse[ProfileData])
async def delete_profile_image(
    current_user: User = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store_dep),
) -> SuccessResponse[ProfileData]:
    profile = await store.remove_image(current_user)
    return SuccessResponse[ProfileData](
        message="Profile image removed successfully",
        data=ProfileData(profile=profile),
    )
