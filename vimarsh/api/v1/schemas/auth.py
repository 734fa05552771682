"""
Authentication schemas for request and response models.

Request fields are optional at the schema level; the credential store
validates them and reports every problem in one field map.
"""

from typing import Optional

from pydantic import Field

from vimarsh.api.v1.schemas.common import CamelModel
from vimarsh.models import UserPublic


class RegisterRequest(CamelModel):
    """Local signup request."""

    first_name: Optional[str] = Field(default=None, description="First name")
    last_name: Optional[str] = Field(default=None, description="Last name")
    email: Optional[str] = Field(default=None, description="Email address")
    password: Optional[str] = Field(default=None, description="Password (min 8 characters)")
    subscribe_newsletter: bool = Field(default=False, description="Newsletter opt-in")


class RegisterData(CamelModel):
    user: UserPublic
    requires_otp_verification: bool = Field(default=True, alias="requiresOTPVerification")
    email: str


class VerifyOtpRequest(CamelModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class EmailRequest(CamelModel):
    """Request carrying only an email (resend OTP, forgot password)."""

    email: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = Field(default=None, description="Reset token from the emailed link")
    password: Optional[str] = Field(default=None, description="New password")


class SessionData(CamelModel):
    """A user with a freshly issued session token."""

    user: UserPublic
    token: str


class UserData(CamelModel):
    user: UserPublic


class SyncRequest(CamelModel):
    """Optional explicit names for the provider sync."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
