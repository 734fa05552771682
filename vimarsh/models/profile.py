"""
UserProfile document: supplemental identity info, one per user.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, computed_field

from vimarsh.models.base import Document

PROFILE_REQUIRED_FIELDS = ("full_name", "prn_number", "class_name", "division")


class Division(str, Enum):
    GIA = "GIA"
    SFI = "SFI"


class UserProfile(Document):
    """Member profile linked one-to-one with a user."""

    user_id: str
    full_name: str = Field(..., max_length=100)
    profile_image: Optional[str] = None
    cloudinary_public_id: Optional[str] = None
    prn_number: str
    class_name: str = Field(..., alias="class", max_length=50)
    division: Division
    bio: str = Field(default="", max_length=500)

    @computed_field(alias="isProfileComplete")
    @property
    def is_profile_complete(self) -> bool:
        """True when every required identity field is non-empty."""
        for field in PROFILE_REQUIRED_FIELDS:
            value = getattr(self, field)
            if value is None or not str(getattr(value, "value", value)).strip():
                return False
        return True
