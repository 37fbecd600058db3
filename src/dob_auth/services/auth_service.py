"""Wallet challenge/response authentication and session lifecycle.

Flow:
1. ``issue_challenge`` stores a fresh single-use challenge for a wallet,
   replacing any earlier one.
2. The wallet signs the challenge out of band.
3. ``verify_and_issue_session`` checks the challenge, verifies the signature,
   consumes the challenge, resolves the user, issues a JWT and records the
   session.
4. ``authenticate`` validates bearer tokens in two layers: the JWT itself,
   then membership in the session store.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import redis
from sqlalchemy.orm import Session, sessionmaker

from dob_auth.core.security import is_valid_account_id
from dob_auth.core.settings import Settings
from dob_auth.db.session import SessionLocal
from dob_auth.db.time import Clock, to_epoch_ms, utcnow
from dob_auth.models import User
from dob_auth.services.errors import (
    ChallengeExpired,
    ChallengeNotFound,
    InvalidInput,
    InvalidSignature,
    SessionRevoked,
)
from dob_auth.services.redis_stores import (
    RedisChallengeStore,
    RedisSessionStore,
    create_redis_client,
)
from dob_auth.services.signature import Ed25519SignatureVerifier, SignatureVerifier
from dob_auth.services.sql_stores import SqlChallengeStore, SqlSessionStore
from dob_auth.services.stores import (
    Challenge,
    ChallengeStore,
    InMemoryChallengeStore,
    InMemorySessionStore,
    SessionStore,
    WalletSession,
)
from dob_auth.services.tokens import TokenClaims, TokenIssuer
from dob_auth.services.users import SqlUserDirectory, UserDirectory

logger = logging.getLogger(__name__)

DEFAULT_CHALLENGE_PREFIX = "DOB_VALIDATOR_AUTH"
CHALLENGE_RANDOM_BYTES = 16


@dataclass(frozen=True)
class IssuedSession:
    """Result of a successful verification."""

    token: str
    expires_in: int
    user: User
    session: WalletSession


@dataclass(frozen=True)
class AuthenticatedWallet:
    """Identity attached to a request that passed both token checks."""

    claims: TokenClaims
    session: WalletSession

    @property
    def wallet_address(self) -> str:
        return self.claims.wallet_address

    @property
    def user_id(self) -> str:
        return self.claims.user_id


def _require(value: str | None, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidInput(f"{field} is required")
    return cleaned


class AuthService:
    """Orchestrates challenges, signature checks, tokens and sessions."""

    def __init__(
        self,
        *,
        challenges: ChallengeStore,
        sessions: SessionStore,
        users: UserDirectory,
        tokens: TokenIssuer,
        verifier: SignatureVerifier,
        challenge_ttl_seconds: int = 300,
        challenge_prefix: str = DEFAULT_CHALLENGE_PREFIX,
        clock: Clock = utcnow,
    ) -> None:
        self.challenges = challenges
        self.sessions = sessions
        self.users = users
        self.tokens = tokens
        self.verifier = verifier
        self.challenge_ttl = timedelta(seconds=challenge_ttl_seconds)
        self.challenge_prefix = challenge_prefix
        self._clock = clock

    def _new_challenge_value(self, now: datetime) -> str:
        return f"{self.challenge_prefix}_{to_epoch_ms(now)}_{secrets.token_hex(CHALLENGE_RANDOM_BYTES)}"

    def issue_challenge(self, wallet_address: str) -> Challenge:
        """Create a challenge for ``wallet_address``, superseding any earlier one.

        Raises:
            InvalidInput: If the address is empty or not a Stellar account address.
            StoreUnavailable: If the challenge store fails.
        """
        address = _require(wallet_address, "walletAddress")
        if not is_valid_account_id(address):
            raise InvalidInput("walletAddress is not a valid Stellar account address")

        now = self._clock()
        challenge = Challenge(
            wallet_address=address,
            value=self._new_challenge_value(now),
            issued_at=now,
            expires_at=now + self.challenge_ttl,
        )
        self.challenges.put(challenge)
        logger.info("Issued challenge for %s (expires %s)", address, challenge.expires_at.isoformat())
        return challenge

    def verify_and_issue_session(
        self, wallet_address: str, signature: str, challenge_value: str
    ) -> IssuedSession:
        """Exchange a signed challenge for a bearer token and session.

        The challenge is consumed as soon as the signature checks out, so a
        failure in a later step still forces the client to request a new one.

        Raises:
            InvalidInput: If any argument is empty.
            ChallengeNotFound: If no live challenge for the wallet has this value.
            ChallengeExpired: If the wallet's challenge is past its expiry.
            InvalidSignature: If the signature does not verify.
            StoreUnavailable: If a store fails.
        """
        address = _require(wallet_address, "walletAddress")
        signature = _require(signature, "signature")
        value = _require(challenge_value, "challenge")

        stored = self.challenges.get(address)
        if stored is None or not hmac.compare_digest(stored.value, value):
            logger.info("No matching challenge for %s", address)
            raise ChallengeNotFound(f"No live challenge for {address} with the supplied value")
        if stored.is_expired(self._clock()):
            self.challenges.consume(address, stored.value)
            logger.info("Challenge for %s expired at %s", address, stored.expires_at.isoformat())
            raise ChallengeExpired(f"Challenge for {address} expired")

        if not self.verifier.verify(address, signature, value):
            logger.info("Signature verification failed for %s", address)
            raise InvalidSignature(f"Signature for {address} did not verify")

        if not self.challenges.consume(address, value):
            # Superseded, swept or consumed by a concurrent verify since our read.
            logger.warning("Challenge for %s changed during verification", address)
            raise ChallengeNotFound(f"Challenge for {address} no longer live")

        user = self.users.find_or_create(address)
        issued = self.tokens.issue(address, user.id)
        session = WalletSession(
            wallet_address=address,
            token=issued.token,
            issued_at=issued.claims.issued_at,
            expires_at=issued.claims.expires_at,
        )
        self.sessions.put(session)
        logger.info("Session issued for %s (user %s)", address, user.id)
        return IssuedSession(
            token=issued.token,
            expires_in=self.tokens.lifetime_seconds,
            user=user,
            session=session,
        )

    def authenticate(self, token: str) -> AuthenticatedWallet:
        """Validate a bearer token against its signature, expiry and live session.

        Raises:
            TokenInvalid: If the token is malformed or forged.
            TokenExpired: If the token's ``exp`` has passed.
            SessionRevoked: If the wallet has no live session holding this token.
        """
        claims = self.tokens.decode(token)
        session = self.sessions.get(claims.wallet_address)
        if session is None:
            raise SessionRevoked(f"No session for {claims.wallet_address}")
        if session.is_expired(self._clock()):
            raise SessionRevoked(f"Session for {claims.wallet_address} expired")
        if not hmac.compare_digest(session.token, token):
            raise SessionRevoked(f"Token for {claims.wallet_address} was superseded")
        return AuthenticatedWallet(claims=claims, session=session)

    def logout(self, wallet_address: str) -> bool:
        """Revoke the wallet's session and drop any outstanding challenge.

        Returns True if a session existed.
        """
        address = _require(wallet_address, "walletAddress")
        challenge = self.challenges.get(address)
        if challenge is not None:
            self.challenges.consume(address, challenge.value)
        removed = self.sessions.delete(address)
        logger.info("Logout for %s (session removed: %s)", address, removed)
        return removed


def build_auth_service(
    config: Settings,
    *,
    session_factory: sessionmaker[Session] = SessionLocal,
    redis_client: redis.Redis | None = None,
    clock: Clock = utcnow,
) -> AuthService:
    """Wire an :class:`AuthService` for the store backend named in ``config``."""
    challenges: ChallengeStore
    sessions: SessionStore
    if config.store_backend == "database":
        challenges = SqlChallengeStore(session_factory)
        sessions = SqlSessionStore(session_factory)
    elif config.store_backend == "redis":
        client = redis_client or create_redis_client(
            config.redis_url, timeout_seconds=config.store_timeout_seconds
        )
        challenges = RedisChallengeStore(client, key_prefix=config.redis_key_prefix)
        sessions = RedisSessionStore(client, key_prefix=config.redis_key_prefix)
    else:
        challenges = InMemoryChallengeStore(config.store_timeout_seconds)
        sessions = InMemorySessionStore(config.store_timeout_seconds)
    logger.info("Using %s challenge/session stores", config.store_backend)

    return AuthService(
        challenges=challenges,
        sessions=sessions,
        users=SqlUserDirectory(session_factory, clock=clock),
        tokens=TokenIssuer(
            config.jwt_secret,
            algorithm=config.jwt_algorithm,
            lifetime_seconds=config.token_lifetime_seconds,
            clock=clock,
        ),
        verifier=Ed25519SignatureVerifier(),
        challenge_ttl_seconds=config.challenge_ttl_seconds,
        challenge_prefix=config.challenge_prefix,
        clock=clock,
    )


__all__ = ["AuthService", "AuthenticatedWallet", "IssuedSession", "build_auth_service"]
