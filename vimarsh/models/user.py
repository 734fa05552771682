"""
User document.

One row per person. Local accounts carry a bcrypt password hash and OTP
verification state; accounts reconciled from Supabase carry ``supabase_id``.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vimarsh.models.base import Document


class AuthProvider(str, Enum):
    """How the account authenticates."""

    LOCAL = "local"
    SUPABASE = "supabase"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class UserPreferences(BaseModel):
    """Per-user preferences."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subscribe_newsletter: bool = False
    theme: Theme = Theme.SYSTEM


class UserPublic(BaseModel):
    """Client-safe projection of a user (no credential material)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    first_name: str
    last_name: str
    email: str
    avatar: Optional[str] = None
    role: UserRole
    auth_provider: AuthProvider
    is_active: bool
    email_verified: bool
    last_login: Optional[datetime] = None
    preferences: UserPreferences
    created_at: datetime


class User(Document):
    """Persisted user account."""

    auth_provider: AuthProvider = AuthProvider.LOCAL
    supabase_id: Optional[str] = Field(default=None, description="External provider user id")
    first_name: str = Field(..., max_length=50)
    last_name: str = Field(..., max_length=50)
    email: str
    password_hash: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    email_verified: bool = False
    is_temp_user: bool = False
    otp_code: Optional[str] = None
    otp_expires: Optional[datetime] = None
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None
    last_login: Optional[datetime] = None
    preferences: UserPreferences = Field(default_factory=UserPreferences)

    def public_profile(self) -> UserPublic:
        return UserPublic(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            avatar=self.avatar,
            role=self.role,
            auth_provider=self.auth_provider,
            is_active=self.is_active,
            email_verified=self.email_verified,
            last_login=self.last_login,
            preferences=self.preferences,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, provider={self.auth_provider.value})>"
