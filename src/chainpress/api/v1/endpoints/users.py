"""Profile endpoints for wallets that completed sign-in."""

from __future__ import annotations

from fastapi import APIRouter

from chainpress.api.v1.dependencies import AuthManagerDep, raise_http_error
from chainpress.core.errors import (
    IdentityStoreUnavailableError,
    InvalidAddressError,
    UnauthorizedError,
)
from chainpress.core.settings import settings
from chainpress.schemas.user import (
    ProfileRequest,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
)
from chainpress.services.auth_session import Profile

router = APIRouter(prefix="/user", tags=["users"])


@router.post("/register", response_model=RegisterResponse)
def register_profile(payload: RegisterRequest, auth: AuthManagerDep) -> RegisterResponse:
    """Attach name, email and password to the identity behind a live session."""
    try:
        user = auth.register(
            payload.address,
            payload.token,
            Profile(name=payload.name, email=str(payload.email), password=payload.password),
        )
    except (InvalidAddressError, UnauthorizedError, IdentityStoreUnavailableError) as err:
        raise_http_error(err)
    return RegisterResponse(user_id=user.id, redirect=settings.dashboard_path)


@router.post("/profile", response_model=ProfileResponse)
def read_profile(payload: ProfileRequest, auth: AuthManagerDep) -> ProfileResponse:
    """Report whether the session's identity has completed its profile."""
    try:
        user = auth.check_session(payload.address, payload.token)
    except (InvalidAddressError, UnauthorizedError, IdentityStoreUnavailableError) as err:
        raise_http_error(err)
    if not user.profile_set:
        return ProfileResponse(exists=False)
    return ProfileResponse(exists=True, name=user.display_name)
