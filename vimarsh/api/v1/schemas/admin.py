"""
Admin session and lookup schemas.
"""

from typing import Optional

from vimarsh.api.v1.schemas.common import CamelModel
from vimarsh.models import UserProfile, UserPublic


class AdminLoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminView(CamelModel):
    email: Optional[str] = None
    role: str = "admin"
    name: Optional[str] = None


class AdminSessionData(CamelModel):
    token: str
    admin: AdminView


class AdminData(CamelModel):
    admin: AdminView


class UploadSignatureData(CamelModel):
    timestamp: int
    signature: str
    api_key: str
    cloud_name: str
    folder: str


class UserProfileLookupData(CamelModel):
    user: UserPublic
    profile: Optional[UserProfile] = None
