"""Exception hierarchy for the wallet authentication flow.

Each error carries the HTTP status it maps to and a public message that is
safe to return to clients. The exception's own message may hold internal
detail and is only ever logged.
"""

from __future__ import annotations

from typing import ClassVar


class AuthError(Exception):
    """Base exception raised for authentication failures."""

    status_code: ClassVar[int] = 400
    public_message: ClassVar[str] = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class InvalidInput(AuthError):
    """Raised when a required field is missing or malformed."""

    status_code = 400
    public_message = "Invalid request data"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message)
        # Field-level problems are the caller's own input, so they are safe to echo.
        self.client_message = message or self.public_message


class ChallengeNotFound(AuthError):
    """Raised when no live challenge matches the wallet and value supplied."""

    status_code = 401
    public_message = "Invalid or expired challenge"


class ChallengeExpired(AuthError):
    """Raised when the wallet's challenge is past its expiry."""

    status_code = 401
    public_message = "Invalid or expired challenge"


class InvalidSignature(AuthError):
    """Raised when the signature does not prove control of the wallet key."""

    status_code = 401
    public_message = "Invalid signature"


class TokenInvalid(AuthError):
    """Raised for missing, malformed or forged bearer tokens."""

    status_code = 401
    public_message = "Could not validate credentials"


class TokenExpired(AuthError):
    """Raised when the bearer token's own ``exp`` claim has passed."""

    status_code = 401
    public_message = "Token expired"


class SessionRevoked(AuthError):
    """Raised when a structurally valid token has no matching live session."""

    status_code = 401
    public_message = "Could not validate credentials"


class StoreUnavailable(AuthError):
    """Raised when a challenge, session or user store fails or times out.

    Retryable: the caller may repeat the request.
    """

    status_code = 503
    public_message = "Service temporarily unavailable"


__all__ = [
    "AuthError",
    "ChallengeExpired",
    "ChallengeNotFound",
    "InvalidInput",
    "InvalidSignature",
    "SessionRevoked",
    "StoreUnavailable",
    "TokenExpired",
    "TokenInvalid",
]
