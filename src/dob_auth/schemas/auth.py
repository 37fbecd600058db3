"""Authentication request and response schemas.

Field names on the wire are camelCase to match the web frontend.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

CHALLENGE_MESSAGE = "Please sign this challenge with your wallet to authenticate"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChallengeRequest(_CamelModel):
    """Request a login challenge for a wallet."""

    wallet_address: str = Field(
        ...,
        alias="walletAddress",
        min_length=1,
        description="Stellar account address (G...)",
    )


class ChallengeResponse(_CamelModel):
    """Challenge the wallet must sign before calling /auth/verify."""

    success: bool = True
    challenge: str = Field(..., description="Single-use challenge string to sign")
    message: str = CHALLENGE_MESSAGE


class VerifyRequest(_CamelModel):
    """Signed challenge submitted in exchange for a bearer token."""

    wallet_address: str = Field(..., alias="walletAddress", min_length=1)
    signature: str = Field(
        ...,
        min_length=1,
        description="Ed25519 signature over the challenge, base64 or hex encoded",
    )
    challenge: str = Field(..., min_length=1, description="Challenge returned by /auth/challenge")


class UserOut(_CamelModel):
    """Public view of the user behind a wallet."""

    id: str
    wallet_address: str = Field(..., alias="walletAddress")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class VerifyResponse(_CamelModel):
    """Bearer token issued after a successful verification."""

    success: bool = True
    token: str
    expires_in: str = Field(
        ...,
        alias="expiresIn",
        description="Token lifetime in seconds",
    )
    user: UserOut


class SessionResponse(_CamelModel):
    """Identity attached to the presented bearer token."""

    success: bool = True
    wallet_address: str = Field(..., alias="walletAddress")
    user_id: str = Field(..., alias="userId")
    expires_at: datetime = Field(..., alias="expiresAt")


class LogoutResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    success: bool = False
    error: str
