# src/dob_auth/models/auth.py
"""Tables backing the shared challenge and session stores."""

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dob_auth.db.session import Base


class ChallengeRecord(Base):
    """Outstanding authentication challenge, at most one per wallet."""

    __tablename__ = "auth_challenge"

    wallet_address: Mapped[str] = mapped_column(String(56), primary_key=True)
    value: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    # Epoch milliseconds keep expiry comparisons identical across dialects.
    issued_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)


class SessionRecord(Base):
    """Server-side record backing the bearer token issued to a wallet."""

    __tablename__ = "auth_session"

    wallet_address: Mapped[str] = mapped_column(String(56), primary_key=True)
    token: Mapped[str] = mapped_column(Text, nullable=False)
    issued_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
