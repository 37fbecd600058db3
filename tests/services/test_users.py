"""Tests for the SQL user directory."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from dob_auth.models import User
from dob_auth.services.errors import StoreUnavailable
from dob_auth.services.users import SqlUserDirectory


def test_find_or_create_creates_user_once(user_directory, session_factory, wallet) -> None:
    first = user_directory.find_or_create(wallet.address)
    second = user_directory.find_or_create(wallet.address)

    assert first.id == second.id
    assert first.wallet_address == wallet.address
    with session_factory() as db:
        assert db.scalar(select(func.count()).select_from(User)) == 1


def test_find_or_create_refreshes_updated_at(user_directory, session_factory, wallet, clock) -> None:
    user_directory.find_or_create(wallet.address)
    clock.advance(days=1)
    user_directory.find_or_create(wallet.address)

    stored = user_directory.get(wallet.address)
    assert stored is not None
    assert stored.updated_at.replace(tzinfo=None) > stored.created_at.replace(tzinfo=None)


def test_distinct_wallets_get_distinct_users(user_directory, wallet, other_wallet) -> None:
    assert user_directory.find_or_create(wallet.address).id != user_directory.find_or_create(
        other_wallet.address
    ).id


def test_concurrent_insert_is_retried(user_directory, mocker, wallet) -> None:
    real_upsert = user_directory._upsert
    upsert = mocker.patch.object(
        user_directory,
        "_upsert",
        side_effect=[IntegrityError("INSERT", {}, Exception("duplicate")), real_upsert(wallet.address)],
    )

    user = user_directory.find_or_create(wallet.address)

    assert user.wallet_address == wallet.address
    assert upsert.call_count == 2


def test_database_errors_become_store_unavailable(session_factory, mocker, wallet) -> None:
    directory = SqlUserDirectory(session_factory)
    mocker.patch.object(
        session_factory,
        "begin",
        side_effect=OperationalError("SELECT 1", {}, Exception("unable to open database")),
    )

    with pytest.raises(StoreUnavailable):
        directory.find_or_create(wallet.address)
