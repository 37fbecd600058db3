"""User directory: resolve or lazily create the identity behind a wallet."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from dob_auth.db.time import Clock, utcnow
from dob_auth.models import User
from dob_auth.services.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    def find_or_create(self, wallet_address: str) -> User: ...


class SqlUserDirectory:
    """User directory persisted in the ``users`` table."""

    def __init__(self, session_factory: sessionmaker[Session], *, clock: Clock = utcnow) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def get(self, wallet_address: str) -> User | None:
        try:
            with self._session_factory() as db:
                return db.scalars(select(User).where(User.wallet_address == wallet_address)).first()
        except SQLAlchemyError as err:
            raise StoreUnavailable(f"User lookup failed: {err}") from err

    def find_or_create(self, wallet_address: str) -> User:
        """Return the user for ``wallet_address``, creating it on first login.

        Existing users have ``updated_at`` refreshed to mark the login.
        """
        try:
            return self._upsert(wallet_address)
        except IntegrityError:
            # Another request created the same wallet between our SELECT and INSERT.
            logger.info("Concurrent user creation for %s; retrying lookup", wallet_address)
            try:
                return self._upsert(wallet_address)
            except SQLAlchemyError as err:
                raise StoreUnavailable(f"User upsert failed: {err}") from err
        except SQLAlchemyError as err:
            raise StoreUnavailable(f"User upsert failed: {err}") from err

    def _upsert(self, wallet_address: str) -> User:
        now = self._clock()
        with self._session_factory.begin() as db:
            user = db.scalars(select(User).where(User.wallet_address == wallet_address)).first()
            if user is None:
                user = User(wallet_address=wallet_address, created_at=now, updated_at=now)
                db.add(user)
                logger.info("Created user for wallet %s", wallet_address)
            else:
                user.updated_at = now
            db.flush()
        return user


__all__ = ["SqlUserDirectory", "UserDirectory"]
