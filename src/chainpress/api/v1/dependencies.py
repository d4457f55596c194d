"""Shared API dependencies for sessions, services and error mapping."""

from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from chainpress.core.errors import (
    ContentNotFoundError,
    DigestComputeFailureError,
    IdentityStoreUnavailableError,
    InvalidAddressError,
    RateLimitedError,
    UnauthorizedError,
)
from chainpress.db.session import get_db
from chainpress.models import User
from chainpress.services.auth_session import AuthSessionManager
from chainpress.services.content_integrity import ContentIntegrityService
from chainpress.services.nonce_store import NonceStore, get_nonce_store
from chainpress.services.pinning import PinningClient, get_pinning_client

# HTTP Bearer scheme for session tokens
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[Session, Depends(get_db)]


def get_nonce_store_dep() -> NonceStore:
    return get_nonce_store()


NonceStoreDep = Annotated[NonceStore, Depends(get_nonce_store_dep)]


def get_auth_manager(db: SessionDep, nonce_store: NonceStoreDep) -> AuthSessionManager:
    return AuthSessionManager(db, nonce_store=nonce_store)


def get_integrity_service(db: SessionDep) -> ContentIntegrityService:
    return ContentIntegrityService(db)


def get_pinning_client_dep() -> PinningClient:
    return get_pinning_client()


AuthManagerDep = Annotated[AuthSessionManager, Depends(get_auth_manager)]
IntegrityDep = Annotated[ContentIntegrityService, Depends(get_integrity_service)]
PinningDep = Annotated[PinningClient, Depends(get_pinning_client_dep)]


def raise_http_error(err: Exception) -> NoReturn:
    """Translate a domain exception into the matching ``HTTPException``.

    Auth gate failures expose only their ``public_message``.
    """
    if isinstance(err, UnauthorizedError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=err.public_message,
        ) from err
    if isinstance(err, InvalidAddressError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid address",
        ) from err
    if isinstance(err, RateLimitedError):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers={"Retry-After": str(err.retry_after)},
        ) from err
    if isinstance(err, IdentityStoreUnavailableError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable",
        ) from err
    if isinstance(err, ContentNotFoundError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        ) from err
    if isinstance(err, DigestComputeFailureError):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Content digest could not be stored",
        ) from err
    raise err


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    auth: AuthManagerDep,
) -> User:
    """Resolve the identity holding the bearer session token.

    Raises:
        HTTPException: If the token is unknown or expired.
    """
    try:
        return auth.authenticate_token(credentials.credentials)
    except (UnauthorizedError, IdentityStoreUnavailableError) as err:
        raise_http_error(err)


def get_optional_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)
    ],
    auth: AuthManagerDep,
) -> User | None:
    """Like :func:`get_current_user` but anonymous callers resolve to ``None``."""
    if credentials is None:
        return None
    return get_current_user(credentials, auth)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
