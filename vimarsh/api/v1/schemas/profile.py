"""
Profile schemas.
"""

from typing import Optional

from pydantic import Field

from vimarsh.api.v1.schemas.common import CamelModel
from vimarsh.models import UserProfile


class ProfileRequest(CamelModel):
    full_name: Optional[str] = None
    profile_image: Optional[str] = None
    prn_number: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="class")
    division: Optional[str] = None
    bio: Optional[str] = None


class ProfileData(CamelModel):
    profile: Optional[UserProfile] = None
