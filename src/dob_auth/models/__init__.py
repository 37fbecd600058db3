# src/dob_auth/models/__init__.py
"""SQLAlchemy models for the DOB Validator auth service."""

from .auth import ChallengeRecord, SessionRecord
from .user import User

__all__ = [
    "ChallengeRecord",
    "SessionRecord",
    "User",
]
