"""Wallet sign-in endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from chainpress.api.v1.dependencies import AuthManagerDep, raise_http_error
from chainpress.core.errors import (
    IdentityStoreUnavailableError,
    InvalidAddressError,
    RateLimitedError,
    UnauthorizedError,
)
from chainpress.schemas.auth import NonceRequest, NonceResponse, VerifyRequest, VerifyResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/nonce",
    summary="Issue a sign-in challenge nonce",
    response_model=NonceResponse,
)
def issue_nonce(payload: NonceRequest, auth: AuthManagerDep) -> NonceResponse:
    """Mint a single-use nonce the wallet must embed in its signed message."""
    try:
        nonce = auth.request_challenge(payload.address)
    except (InvalidAddressError, RateLimitedError) as err:
        raise_http_error(err)
    return NonceResponse(nonce=nonce)


@router.post(
    "/verify",
    summary="Verify a signed challenge and open a session",
    response_model=VerifyResponse,
)
def verify_signature(payload: VerifyRequest, auth: AuthManagerDep) -> VerifyResponse:
    """Consume the nonce, check the message and signature, and issue a token.

    Failures answer 401 with either "Nonce mismatch or expired" or
    "Message mismatch"; the specific failed check is only logged.
    """
    if not (
        payload.address.strip()
        and payload.signature.strip()
        and payload.nonce.strip()
        and payload.message.strip()
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing fields",
        )

    try:
        session = auth.verify(
            payload.address,
            payload.signature.strip(),
            payload.nonce,
            payload.chain_id,
            payload.message,
        )
    except UnauthorizedError as err:
        logger.info("Sign-in rejected for %s: %s", payload.address, err.reason)
        raise_http_error(err)
    except (InvalidAddressError, IdentityStoreUnavailableError) as err:
        raise_http_error(err)

    return VerifyResponse(token=session.token, user_id=session.user_id)
