"""Shared API dependencies for authentication."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dob_auth.services.auth_service import AuthenticatedWallet, AuthService
from dob_auth.services.errors import StoreUnavailable, TokenInvalid

# HTTP Bearer scheme; missing headers are reported as 401 by get_current_wallet.
bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService built at application startup."""
    service: AuthService | None = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise StoreUnavailable("Authentication service is not initialised")
    return service


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def get_current_wallet(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    service: AuthServiceDep,
) -> AuthenticatedWallet:
    """Authenticate the request's bearer token against its signature and live session.

    Raises:
        TokenInvalid: If the Authorization header is missing or not a bearer token.
        TokenExpired: If the token has expired.
        SessionRevoked: If the token's session was revoked or superseded.
    """
    if credentials is None or not credentials.credentials:
        raise TokenInvalid("Missing bearer token")
    return service.authenticate(credentials.credentials)


# Type alias for the authenticated wallet dependency
CurrentWalletDep = Annotated[AuthenticatedWallet, Depends(get_current_wallet)]
