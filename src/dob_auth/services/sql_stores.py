"""Database-backed challenge and session stores.

Every instance serving the API sees the same rows, which makes these stores
suitable for multi-instance deployments. Each operation runs in its own short
transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from dob_auth.db.time import from_epoch_ms, to_epoch_ms
from dob_auth.models import ChallengeRecord, SessionRecord
from dob_auth.services.errors import StoreUnavailable
from dob_auth.services.stores import Challenge, WalletSession

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE.
_UPSERT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class _SqlStore:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        try:
            with self._session_factory.begin() as db:
                yield db
        except SQLAlchemyError as err:
            logger.error("%s database error: %s", type(self).__name__, err)
            raise StoreUnavailable(f"{type(self).__name__} failed: {err}") from err

    def _replace(self, db: Session, model: type[Any], values: dict[str, Any]) -> None:
        """Insert or overwrite the wallet's row, as a single upsert where the dialect has one."""
        insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if insert is None:
            db.execute(delete(model).where(model.wallet_address == values["wallet_address"]))
            db.add(model(**values))
            return
        stmt = insert(model).values(**values)
        db.execute(
            stmt.on_conflict_do_update(
                index_elements=[model.wallet_address],
                set_={name: stmt.excluded[name] for name in values if name != "wallet_address"},
            )
        )


class SqlChallengeStore(_SqlStore):
    """Challenge store persisted in the ``auth_challenge`` table."""

    def put(self, challenge: Challenge) -> None:
        with self._transaction() as db:
            self._replace(
                db,
                ChallengeRecord,
                {
                    "wallet_address": challenge.wallet_address,
                    "value": challenge.value,
                    "issued_at_ms": to_epoch_ms(challenge.issued_at),
                    "expires_at_ms": to_epoch_ms(challenge.expires_at),
                },
            )

    def get(self, wallet_address: str) -> Challenge | None:
        with self._transaction() as db:
            record = db.scalars(
                select(ChallengeRecord).where(ChallengeRecord.wallet_address == wallet_address)
            ).first()
            if record is None:
                return None
            return Challenge(
                wallet_address=record.wallet_address,
                value=record.value,
                issued_at=from_epoch_ms(record.issued_at_ms),
                expires_at=from_epoch_ms(record.expires_at_ms),
            )

    def consume(self, wallet_address: str, value: str) -> bool:
        # A single conditional DELETE: only one concurrent caller sees rowcount == 1.
        with self._transaction() as db:
            result = db.execute(
                delete(ChallengeRecord).where(
                    ChallengeRecord.wallet_address == wallet_address,
                    ChallengeRecord.value == value,
                )
            )
            return result.rowcount == 1

    def delete_expired(self, now: datetime) -> int:
        with self._transaction() as db:
            result = db.execute(
                delete(ChallengeRecord).where(ChallengeRecord.expires_at_ms <= to_epoch_ms(now))
            )
            return result.rowcount or 0


class SqlSessionStore(_SqlStore):
    """Session store persisted in the ``auth_session`` table."""

    def put(self, session: WalletSession) -> None:
        with self._transaction() as db:
            self._replace(
                db,
                SessionRecord,
                {
                    "wallet_address": session.wallet_address,
                    "token": session.token,
                    "issued_at_ms": to_epoch_ms(session.issued_at),
                    "expires_at_ms": to_epoch_ms(session.expires_at),
                },
            )

    def get(self, wallet_address: str) -> WalletSession | None:
        with self._transaction() as db:
            record = db.scalars(
                select(SessionRecord).where(SessionRecord.wallet_address == wallet_address)
            ).first()
            if record is None:
                return None
            return WalletSession(
                wallet_address=record.wallet_address,
                token=record.token,
                issued_at=from_epoch_ms(record.issued_at_ms),
                expires_at=from_epoch_ms(record.expires_at_ms),
            )

    def delete(self, wallet_address: str) -> bool:
        with self._transaction() as db:
            result = db.execute(
                delete(SessionRecord).where(SessionRecord.wallet_address == wallet_address)
            )
            return result.rowcount == 1

    def delete_expired(self, now: datetime) -> int:
        with self._transaction() as db:
            result = db.execute(
                delete(SessionRecord).where(SessionRecord.expires_at_ms <= to_epoch_ms(now))
            )
            return result.rowcount or 0


__all__ = ["SqlChallengeStore", "SqlSessionStore"]
