"""Wallet authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from dob_auth.api.dependencies import AuthServiceDep, CurrentWalletDep
from dob_auth.schemas.auth import (
    ChallengeRequest,
    ChallengeResponse,
    ErrorResponse,
    LogoutResponse,
    SessionResponse,
    UserOut,
    VerifyRequest,
    VerifyResponse,
)

router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.post("/challenge", response_model=ChallengeResponse)
def request_challenge(body: ChallengeRequest, service: AuthServiceDep) -> ChallengeResponse:
    """Issue a single-use challenge for the wallet to sign.

    A new request replaces any challenge the wallet still has outstanding.
    """
    challenge = service.issue_challenge(body.wallet_address)
    return ChallengeResponse(challenge=challenge.value)


@router.post("/verify", response_model=VerifyResponse)
def verify_challenge(body: VerifyRequest, service: AuthServiceDep) -> VerifyResponse:
    """Exchange a signed challenge for a bearer token."""
    issued = service.verify_and_issue_session(
        body.wallet_address,
        body.signature,
        body.challenge,
    )
    return VerifyResponse(
        token=issued.token,
        expires_in=str(issued.expires_in),
        user=UserOut(
            id=issued.user.id,
            wallet_address=issued.user.wallet_address,
            created_at=issued.user.created_at,
            updated_at=issued.user.updated_at,
        ),
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(current: CurrentWalletDep, service: AuthServiceDep) -> LogoutResponse:
    """Revoke the caller's session; the token is rejected from now on."""
    service.logout(current.wallet_address)
    return LogoutResponse()


@router.get("/session", response_model=SessionResponse)
def current_session(current: CurrentWalletDep) -> SessionResponse:
    return SessionResponse(
        wallet_address=current.wallet_address,
        user_id=current.user_id,
        expires_at=current.session.expires_at,
    )
