"""
Member authentication endpoints.

Local accounts (password + OTP) and the Supabase account sync.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from vimarsh.api.v1.dependencies.auth import get_identity, get_session_user
from vimarsh.api.v1.schemas.auth import (
    EmailRequest,
    LoginRequest,
    RegisterData,
    RegisterRequest,
    ResetPasswordRequest,
    SessionData,
    SyncRequest,
    UserData,
    VerifyOtpRequest,
)
from vimarsh.api.v1.schemas.common import MessageResponse, SuccessResponse
from vimarsh.core.container import get_credential_store_dep, get_reconciler_dep
from vimarsh.models import User
from vimarsh.providers.identity import ExternalIdentity
from vimarsh.services import IdentityReconciler, LocalCredentialStore

router = APIRouter()


@router.post(
    "/register",
    response_model=SuccessResponse[RegisterData],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    store: LocalCredentialStore = Depends(get_credential_store_dep),
) -> SuccessResponse[RegisterData]:
    """Create a local account and email its verification code."""
    user = await store.create_user(
        request.first_name,
        request.last_name,
        request.email,
        request.password,
        subscribe_newsletter=request.subscribe_newsletter,
    )
    return SuccessResponse[RegisterData](
        message="User registered successfully. Please check your email for OTP verification.",
        data=RegisterData(user=user.public_profile(), email=user.email),
    )


@router.post("/verify-otp", response_model=SuccessResponse[SessionData])
async def verify_otp(
    request: VerifyOtpRequest,
    store: LocalCredentialStore = Depends(get_credential_store_dep),
) -> SuccessResponse[SessionData]:
    user, token = await store.verify_otp(request.email, request.otp)
    return SuccessResponse[SessionData](
        message="OTP verified successfully. Account created!",
        data=SessionData(user=user.public_profile(), token=token),
    )


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(
    request: EmailRequest,
    store: LocalCredentialStore = Depends(get_credential_store_dep),
) -> MessageResponse:
    await store.regenerate_otp(request.email)
    return MessageResponse(message="New OTP sent. Please check your email.")


@router.post("/login", response_model=SuccessResponse[SessionData])
async def login(
    request: LoginRequest,
    store: LocalCredentialStore = Depends(get_credential_store_dep),
) -> SuccessResponse[SessionData]:
    """Authenticate a local account and return a session token."""
    user, token = await store.login(request.email, request.password)
    return SuccessResponse[SessionData](
        message="Login successful",
        data=SessionData(user=user.public_profile(), token=token),
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: EmailRequest,
    store: LocalCredentialStore = Depends(get_credential_store_dep),
) -> MessageResponse:
    """Start a password reset. The response never reveals whether the account exists."""
    message = await store.forgot_password(request.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    store: LocalCredentialStore = Depends(get_credential_store_dep),
) -> MessageResponse:
    await store.reset_password(request.token, request.password)
    return MessageResponse(message="Password reset successful")


@router.get("/me", response_model=SuccessResponse[UserData])
async def get_current_user_info(
    current_user: User = Depends(get_session_user),
) -> SuccessResponse[UserData]:
    """Get the user behind a member session token."""
    return SuccessResponse[UserData](data=UserData(user=current_user.public_profile()))


@router.post("/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """
    Logout current user.

    Session tokens are stateless; logout is handled on the client by
    discarding the token.
    """
    return MessageResponse(message="Logout successful")


@router.post("/supabase-sync", response_model=SuccessResponse[UserData])
async def supabase_sync(
    request: Optional[SyncRequest] = None,
    identity: ExternalIdentity = Depends(get_identity),
    reconciler: IdentityReconciler = Depends(get_reconciler_dep),
) -> SuccessResponse[UserData]:
    """Reconcile the caller's Supabase account, applying any explicit names."""
    request = request or SyncRequest()
    user = await reconciler.reconcile(
        identity,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return SuccessResponse[UserData](
        message="User synced successfully",
        data=UserData(user=user.public_profile()),
    )
