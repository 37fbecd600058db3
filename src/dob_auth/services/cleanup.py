"""Periodic sweep of expired challenges and sessions.

Expiry is already enforced on read; the sweep only reclaims storage for
records nobody will ever read again.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from dob_auth.db.time import Clock, utcnow
from dob_auth.services.errors import StoreUnavailable
from dob_auth.services.stores import ChallengeStore, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanupResult:
    """Counts of records removed by one sweep."""

    challenges: int
    sessions: int


class CleanupScheduler:
    """Runs ``delete_expired`` on both stores immediately and then on a fixed interval."""

    def __init__(
        self,
        challenges: ChallengeStore,
        sessions: SessionStore,
        *,
        interval_seconds: float = 3600.0,
        clock: Clock = utcnow,
    ) -> None:
        self.challenges = challenges
        self.sessions = sessions
        self.interval = max(0.01, float(interval_seconds))
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> CleanupResult:
        """Delete every challenge and session whose expiry is at or before now.

        Both stores are swept even if one fails; the first failure is then re-raised.
        """
        now = self._clock()
        removed: dict[str, int] = {}
        failure: Exception | None = None
        for name, store in (("challenges", self.challenges), ("sessions", self.sessions)):
            try:
                removed[name] = store.delete_expired(now)
            except Exception as e:
                logger.warning("Sweeping expired %s failed: %s", name, e)
                failure = failure or e
        if failure is not None:
            raise failure

        result = CleanupResult(**removed)
        if result.challenges or result.sessions:
            logger.info(
                "Removed %d expired challenges and %d expired sessions",
                result.challenges,
                result.sessions,
            )
        return result

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.to_thread(self.run_once)
            except StoreUnavailable as e:
                logger.warning("Cleanup sweep skipped, store unavailable: %s", e)
            except Exception:
                logger.exception("Cleanup sweep failed")

            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)


__all__ = ["CleanupResult", "CleanupScheduler"]
