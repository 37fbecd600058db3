"""Domain services for wallet authentication."""

from .auth_service import AuthenticatedWallet, AuthService, IssuedSession, build_auth_service
from .cleanup import CleanupResult, CleanupScheduler
from .errors import AuthError, StoreUnavailable

__all__ = [
    "AuthError",
    "AuthService",
    "AuthenticatedWallet",
    "CleanupResult",
    "CleanupScheduler",
    "IssuedSession",
    "StoreUnavailable",
    "build_auth_service",
]
