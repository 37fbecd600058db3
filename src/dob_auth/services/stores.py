"""Challenge and session stores.

AuthService talks to both stores only through the protocols below, so the
in-process implementations here can be swapped for the database or redis
backends without touching the authentication logic.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Protocol

from dob_auth.services.errors import StoreUnavailable


@dataclass(frozen=True)
class Challenge:
    """A single-use string a wallet must sign to prove key ownership."""

    wallet_address: str
    value: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class WalletSession:
    """Server-side record backing a bearer token."""

    wallet_address: str
    token: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class ChallengeStore(Protocol):
    """Keyed store of outstanding challenges, one per wallet address."""

    def put(self, challenge: Challenge) -> None:
        """Store ``challenge``, replacing any prior challenge for the wallet."""
        ...

    def get(self, wallet_address: str) -> Challenge | None: ...

    def consume(self, wallet_address: str, value: str) -> bool:
        """Delete the wallet's challenge only if it still holds ``value``.

        Returns True for exactly one caller per stored challenge.
        """
        ...

    def delete_expired(self, now: datetime) -> int:
        """Remove challenges with ``expires_at <= now`` and return how many."""
        ...


class SessionStore(Protocol):
    """Keyed store of issued sessions, one per wallet address."""

    def put(self, session: WalletSession) -> None:
        """Store ``session``, replacing any prior session for the wallet."""
        ...

    def get(self, wallet_address: str) -> WalletSession | None: ...

    def delete(self, wallet_address: str) -> bool: ...

    def delete_expired(self, now: datetime) -> int:
        """Remove sessions with ``expires_at <= now`` and return how many."""
        ...


class _LockedStore:
    """Mixin serializing access to an in-process map with a bounded wait."""

    def __init__(self, timeout_seconds: float) -> None:
        self._lock = Lock()
        self._timeout = timeout_seconds

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._timeout):
            raise StoreUnavailable(
                f"{type(self).__name__} lock not acquired within {self._timeout}s"
            )
        try:
            yield
        finally:
            self._lock.release()


class InMemoryChallengeStore(_LockedStore):
    """Challenge store for single-instance deployments and tests."""

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        super().__init__(timeout_seconds)
        self._challenges: dict[str, Challenge] = {}

    def put(self, challenge: Challenge) -> None:
        with self._locked():
            self._challenges[challenge.wallet_address] = challenge

    def get(self, wallet_address: str) -> Challenge | None:
        with self._locked():
            return self._challenges.get(wallet_address)

    def consume(self, wallet_address: str, value: str) -> bool:
        with self._locked():
            current = self._challenges.get(wallet_address)
            if current is None or current.value != value:
                return False
            del self._challenges[wallet_address]
            return True

    def delete_expired(self, now: datetime) -> int:
        with self._locked():
            expired = [
                address
                for address, challenge in self._challenges.items()
                if challenge.expires_at <= now
            ]
            for address in expired:
                del self._challenges[address]
            return len(expired)

    def __len__(self) -> int:
        with self._locked():
            return len(self._challenges)


class InMemorySessionStore(_LockedStore):
    """Session store for single-instance deployments and tests."""

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        super().__init__(timeout_seconds)
        self._sessions: dict[str, WalletSession] = {}

    def put(self, session: WalletSession) -> None:
        with self._locked():
            self._sessions[session.wallet_address] = session

    def get(self, wallet_address: str) -> WalletSession | None:
        with self._locked():
            return self._sessions.get(wallet_address)

    def delete(self, wallet_address: str) -> bool:
        with self._locked():
            return self._sessions.pop(wallet_address, None) is not None

    def delete_expired(self, now: datetime) -> int:
        with self._locked():
            expired = [
                address
                for address, session in self._sessions.items()
                if session.expires_at <= now
            ]
            for address in expired:
                del self._sessions[address]
            return len(expired)

    def __len__(self) -> int:
        with self._locked():
            return len(self._sessions)


__all__ = [
    "Challenge",
    "ChallengeStore",
    "InMemoryChallengeStore",
    "InMemorySessionStore",
    "SessionStore",
    "WalletSession",
]
