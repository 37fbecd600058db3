import asyncio
from datetime import timedelta

import pytest

from dob_auth.services.cleanup import CleanupResult, CleanupScheduler
from dob_auth.services.errors import StoreUnavailable
from dob_auth.services.stores import Challenge, WalletSession


def _fill(challenge_store, session_store, clock) -> None:
    now = clock()
    challenge_store.put(Challenge("GEXPIRED", "old", now, now + timedelta(seconds=10)))
    challenge_store.put(Challenge("GLIVE", "new", now, now + timedelta(minutes=5)))
    session_store.put(WalletSession("GEXPIRED", "t1", now, now + timedelta(seconds=10)))
    session_store.put(WalletSession("GLIVE", "t2", now, now + timedelta(days=7)))


def test_run_once_removes_only_expired(challenge_store, session_store, clock):
    _fill(challenge_store, session_store, clock)
    scheduler = CleanupScheduler(challenge_store, session_store, clock=clock)

    clock.advance(seconds=10)
    assert scheduler.run_once() == CleanupResult(challenges=1, sessions=1)
    assert challenge_store.get("GEXPIRED") is None
    assert challenge_store.get("GLIVE") is not None
    assert session_store.get("GEXPIRED") is None
    assert session_store.get("GLIVE") is not None


def test_run_once_is_idempotent(challenge_store, session_store, clock):
    _fill(challenge_store, session_store, clock)
    scheduler = CleanupScheduler(challenge_store, session_store, clock=clock)
    clock.advance(minutes=1)

    scheduler.run_once()
    state = (len(challenge_store), len(session_store))

    assert scheduler.run_once() == CleanupResult(challenges=0, sessions=0)
    assert (len(challenge_store), len(session_store)) == state


def test_failing_store_does_not_skip_the_other(mocker, challenge_store, session_store, clock):
    _fill(challenge_store, session_store, clock)
    clock.advance(minutes=1)
    mocker.patch.object(challenge_store, "delete_expired", side_effect=StoreUnavailable("down"))
    scheduler = CleanupScheduler(challenge_store, session_store, clock=clock)

    with pytest.raises(StoreUnavailable):
        scheduler.run_once()

    assert len(session_store) == 1
    assert session_store.get("GLIVE") is not None


@pytest.mark.asyncio
async def test_start_sweeps_immediately_and_stops(challenge_store, session_store, clock):
    _fill(challenge_store, session_store, clock)
    clock.advance(minutes=1)
    scheduler = CleanupScheduler(challenge_store, session_store, interval_seconds=60, clock=clock)

    await scheduler.start()
    for _ in range(50):
        if len(challenge_store) == 1:
            break
        await asyncio.sleep(0.01)

    assert scheduler.running
    assert len(challenge_store) == 1
    assert len(session_store) == 1

    await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_failed_sweep_does_not_stop_loop(mocker, challenge_store, session_store, clock):
    scheduler = CleanupScheduler(challenge_store, session_store, interval_seconds=0.01, clock=clock)
    failures = [StoreUnavailable("down"), RuntimeError("boom")]

    def flaky_sweep() -> CleanupResult:
        if failures:
            raise failures.pop(0)
        return CleanupResult(0, 0)

    run_once = mocker.patch.object(scheduler, "run_once", side_effect=flaky_sweep)

    await scheduler.start()
    for _ in range(100):
        if run_once.call_count >= 3:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()

    assert run_once.call_count >= 3


@pytest.mark.asyncio
async def test_start_is_idempotent(challenge_store, session_store, clock):
    scheduler = CleanupScheduler(challenge_store, session_store, interval_seconds=60, clock=clock)

    await scheduler.start()
    task = scheduler._task
    await scheduler.start()

    assert scheduler._task is task
    await scheduler.stop()


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(challenge_store, session_store):
    scheduler = CleanupScheduler(challenge_store, session_store)
    await scheduler.stop()
    assert not scheduler.running
