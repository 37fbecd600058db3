"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import (
    ChallengeRequest,
    ChallengeResponse,
    ErrorResponse,
    LogoutResponse,
    SessionResponse,
    UserOut,
    VerifyRequest,
    VerifyResponse,
)

__all__ = [
    "ChallengeRequest", "ChallengeResponse",
    "VerifyRequest", "VerifyResponse",
    "SessionResponse", "LogoutResponse",
    "ErrorResponse", "UserOut",
]
