# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

os.environ["JWT_SECRET"] = "test-secret-key-for-pytest"
os.environ["AUTH_STORE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CLEANUP_ENABLED"] = "false"

from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dob_auth.api.dependencies import get_auth_service
from dob_auth.core.security import encode_account_id
from dob_auth.db.session import Base
from dob_auth.main import app as fastapi_app
from dob_auth.scripts.sign_challenge import sign_challenge
from dob_auth.services.auth_service import AuthService
from dob_auth.services.signature import Ed25519SignatureVerifier
from dob_auth.services.stores import InMemoryChallengeStore, InMemorySessionStore
from dob_auth.services.tokens import TokenIssuer
from dob_auth.services.users import SqlUserDirectory

TEST_DB_URL = "sqlite://"
TEST_SECRET = "test-secret-key-for-pytest"
TOKEN_LIFETIME_SECONDS = 7 * 86_400
CHALLENGE_TTL_SECONDS = 300
START_TIME = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Adjustable clock injected wherever expiry is decided."""

    def __init__(self, start: datetime = START_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@dataclass
class Wallet:
    """A Stellar keypair able to sign challenges like a browser wallet."""

    signing_key: SigningKey
    address: str

    def sign(self, challenge: str, *, signed_message: bool = False, encoding: str = "base64") -> str:
        return sign_challenge(
            self.signing_key,
            challenge,
            signed_message=signed_message,
            encoding=encoding,
        )


def _generate_wallet() -> Wallet:
    signing_key = SigningKey.generate()
    return Wallet(signing_key=signing_key, address=encode_account_id(bytes(signing_key.verify_key)))


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def test_secret() -> str:
    return TEST_SECRET


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def wallet() -> Wallet:
    """Return the primary test wallet."""
    return _generate_wallet()


@pytest.fixture()
def other_wallet() -> Wallet:
    """Return a second, unrelated wallet."""
    return _generate_wallet()


@pytest.fixture()
def challenge_store() -> InMemoryChallengeStore:
    return InMemoryChallengeStore(timeout_seconds=1.0)


@pytest.fixture()
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore(timeout_seconds=1.0)


@pytest.fixture()
def token_issuer(clock: FakeClock) -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, lifetime_seconds=TOKEN_LIFETIME_SECONDS, clock=clock)


@pytest.fixture()
def user_directory(session_factory: sessionmaker[Session], clock: FakeClock) -> SqlUserDirectory:
    return SqlUserDirectory(session_factory, clock=clock)


@pytest.fixture()
def auth_service(
    challenge_store: InMemoryChallengeStore,
    session_store: InMemorySessionStore,
    user_directory: SqlUserDirectory,
    token_issuer: TokenIssuer,
    clock: FakeClock,
) -> AuthService:
    return AuthService(
        challenges=challenge_store,
        sessions=session_store,
        users=user_directory,
        tokens=token_issuer,
        verifier=Ed25519SignatureVerifier(),
        challenge_ttl_seconds=CHALLENGE_TTL_SECONDS,
        clock=clock,
    )


@pytest.fixture()
def app(auth_service: AuthService) -> Iterator[FastAPI]:
    fastapi_app.dependency_overrides[get_auth_service] = lambda: auth_service
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.pop(get_auth_service, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
