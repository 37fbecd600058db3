"""Redis-backed challenge and session stores.

Each wallet owns one hash per store (``value``/``token``, ``issued_at_ms``,
``expires_at_ms``) that also carries a native redis expiry. Compare-and-delete
and delete-if-expired run as Lua scripts so they are atomic on the server.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Final

import redis

from dob_auth.db.time import from_epoch_ms, to_epoch_ms
from dob_auth.services.errors import StoreUnavailable
from dob_auth.services.stores import Challenge, WalletSession

logger = logging.getLogger(__name__)

_COMPARE_AND_DELETE: Final[str] = """
if redis.call('HGET', KEYS[1], ARGV[1]) == ARGV[2] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""

_DELETE_IF_EXPIRED: Final[str] = """
local expires = redis.call('HGET', KEYS[1], 'expires_at_ms')
if expires and tonumber(expires) <= tonumber(ARGV[1]) then
    return redis.call('DEL', KEYS[1])
end
return 0
"""

_SCAN_BATCH: Final[int] = 500


def create_redis_client(url: str, *, timeout_seconds: float) -> redis.Redis:
    """Return a client whose socket operations are bounded by ``timeout_seconds``."""
    return redis.Redis.from_url(
        url,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
        decode_responses=True,
    )


class _RedisStore:
    namespace: str = ""

    def __init__(self, client: redis.Redis, *, key_prefix: str = "dob-auth") -> None:
        self._redis = client
        self._prefix = f"{key_prefix}:{self.namespace}:"
        self._compare_and_delete = client.register_script(_COMPARE_AND_DELETE)
        self._delete_if_expired = client.register_script(_DELETE_IF_EXPIRED)

    def _key(self, wallet_address: str) -> str:
        return f"{self._prefix}{wallet_address}"

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except redis.RedisError as err:
            logger.error("%s redis error: %s", type(self).__name__, err)
            raise StoreUnavailable(f"{type(self).__name__} failed: {err}") from err

    def _replace(self, wallet_address: str, mapping: dict[str, Any], expires_at_ms: int) -> None:
        key = self._key(wallet_address)
        with self._guard():
            pipe = self._redis.pipeline(transaction=True)
            pipe.delete(key)
            pipe.hset(key, mapping=mapping)
            pipe.pexpireat(key, expires_at_ms)
            pipe.execute()

    def _load(self, wallet_address: str) -> dict[str, str]:
        with self._guard():
            return self._redis.hgetall(self._key(wallet_address))

    def _delete_expired(self, now: datetime) -> int:
        now_ms = to_epoch_ms(now)
        removed = 0
        with self._guard():
            for key in self._redis.scan_iter(match=f"{self._prefix}*", count=_SCAN_BATCH):
                removed += int(self._delete_if_expired(keys=[key], args=[now_ms]))
        return removed


class RedisChallengeStore(_RedisStore):
    """Challenge store shared by every instance through redis."""

    namespace = "challenge"

    def put(self, challenge: Challenge) -> None:
        expires_at_ms = to_epoch_ms(challenge.expires_at)
        self._replace(
            challenge.wallet_address,
            {
                "value": challenge.value,
                "issued_at_ms": to_epoch_ms(challenge.issued_at),
                "expires_at_ms": expires_at_ms,
            },
            expires_at_ms,
        )

    def get(self, wallet_address: str) -> Challenge | None:
        data = self._load(wallet_address)
        if not data:
            return None
        return Challenge(
            wallet_address=wallet_address,
            value=data["value"],
            issued_at=from_epoch_ms(int(data["issued_at_ms"])),
            expires_at=from_epoch_ms(int(data["expires_at_ms"])),
        )

    def consume(self, wallet_address: str, value: str) -> bool:
        with self._guard():
            deleted = self._compare_and_delete(
                keys=[self._key(wallet_address)], args=["value", value]
            )
        return int(deleted) == 1

    def delete_expired(self, now: datetime) -> int:
        return self._delete_expired(now)


class RedisSessionStore(_RedisStore):
    """Session store shared by every instance through redis."""

    namespace = "session"

    def put(self, session: WalletSession) -> None:
        expires_at_ms = to_epoch_ms(session.expires_at)
        self._replace(
            session.wallet_address,
            {
                "token": session.token,
                "issued_at_ms": to_epoch_ms(session.issued_at),
                "expires_at_ms": expires_at_ms,
            },
            expires_at_ms,
        )

    def get(self, wallet_address: str) -> WalletSession | None:
        data = self._load(wallet_address)
        if not data:
            return None
        return WalletSession(
            wallet_address=wallet_address,
            token=data["token"],
            issued_at=from_epoch_ms(int(data["issued_at_ms"])),
            expires_at=from_epoch_ms(int(data["expires_at_ms"])),
        )

    def delete(self, wallet_address: str) -> bool:
        with self._guard():
            return int(self._redis.delete(self._key(wallet_address))) == 1

    def delete_expired(self, now: datetime) -> int:
        return self._delete_expired(now)


__all__ = ["RedisChallengeStore", "RedisSessionStore", "create_redis_client"]
