"""HTTP API for wallet authentication."""

from .endpoints import auth_router

__all__ = ["auth_router"]
