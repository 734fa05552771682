"""
Member profile store: one supplemental profile per user.
"""

import logging
from typing import Any, Optional

from vimarsh.core.errors import BadRequestError, ConflictError, NotFoundError
from vimarsh.core.validation import validate_profile_data
from vimarsh.models import User, UserProfile
from vimarsh.models.profile import PROFILE_REQUIRED_FIELDS
from vimarsh.providers.images import CloudinaryImageHost, extract_public_id
from vimarsh.repositories import DuplicateKeyError, ProfileRepository

logger = logging.getLogger(__name__)

_REQUIRED_MESSAGES = {
    "full_name": ("fullName", "Full name is required"),
    "prn_number": ("prnNumber", "PRN number is required"),
    "class_name": ("class", "Class is required"),
    "division": ("division", "Division is required"),
}

def _prn_conflict() -> ConflictError:
    return ConflictError(
        "PRN number already exists",
        {"prnNumber": "This PRN number is already registered"},
    )


class ProfileStore:
    def __init__(self, profiles: ProfileRepository, image_host: Optional[CloudinaryImageHost] = None):
        self.profiles = profiles
        self.image_host = image_host

    async def get(self, user: User) -> Optional[UserProfile]:
        return await self.profiles.get_by_user(user.id)

    async def save(self, user: User, data: dict[str, Any]) -> UserProfile:
        """
        Create or update ``user``'s profile.

        Args:
            user: The reconciled owner.
            data: Snake-case profile fields; None means "leave unchanged".

        Raises:
            BadRequestError: Invalid fields, or required fields missing on create.
            ConflictError: The PRN number belongs to another user.
        """
        cleaned = validate_profile_data({k: v for k, v in data.items() if v is not None})
        profile = await self.profiles.get_by_user(user.id)

        missing = {}
        for field in PROFILE_REQUIRED_FIELDS:
            value = cleaned.get(field)
            blank = value is not None and not str(value).strip()
            if blank or (profile is None and value is None):
                key, message = _REQUIRED_MESSAGES[field]
                missing[key] = message
        if missing:
            raise BadRequestError("Validation failed", missing)

        prn_number = cleaned.get("prn_number")
        if prn_number:
            owner = await self.profiles.find_by_prn(prn_number)
            if owner is not None and owner.user_id != user.id:
                raise _prn_conflict()

        new_image = cleaned.pop("profile_image", None)

        if profile is None:
            profile = UserProfile(user_id=user.id, **cleaned)
            if new_image:
                profile.profile_image = new_image
                profile.cloudinary_public_id = extract_public_id(new_image)
        else:
            for field, value in cleaned.items():
                setattr(profile, field, value)
            if new_image and new_image != profile.profile_image:
                if profile.cloudinary_public_id:
                    await self._destroy_quietly(profile.cloudinary_public_id)
                profile.profile_image = new_image
                profile.cloudinary_public_id = extract_public_id(new_image)

        try:
            await self.profiles.save(profile)
        except DuplicateKeyError as e:
            if e.key == "prn_number":
                raise _prn_conflict() from e
            raise ConflictError("Profile already exists") from e

        logger.info(f"Saved profile for user {user.id} (complete={profile.is_profile_complete})")
        return profile

    async def remove_image(self, user: User) -> UserProfile:
        """Clear the profile image, deleting the hosted copy when there is one."""
        profile = await self.profiles.get_by_user(user.id)
        if profile is None:
            raise NotFoundError("Profile not found")
        if profile.cloudinary_public_id:
            await self._destroy_quietly(profile.cloudinary_public_id)
        profile.profile_image = None
        profile.cloudinary_public_id = None
        return await self.profiles.save(profile)

    async def _destroy_quietly(self, public_id: str) -> None:
        if self.image_host is None or not self.image_host.is_configured:
            logger.warning(f"Image host not configured; leaving {public_id} in place")
            return
        try:
            await self.image_host.destroy(public_id)
        except Exception:
            logger.exception(f"Error deleting hosted image {public_id}")
