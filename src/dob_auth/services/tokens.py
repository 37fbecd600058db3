"""Bearer token issuing and verification.

Tokens are HS256 JWTs carrying exactly the claims in :class:`TokenClaims`.
Expiry lives inside the signed payload (``exp``), so a token can be checked
without any store lookup; the session check layered on top is done by
:class:`dob_auth.services.auth_service.AuthService`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from dob_auth.db.time import Clock, utcnow
from dob_auth.services.errors import TokenExpired, TokenInvalid


@dataclass(frozen=True)
class TokenClaims:
    """Claims embedded in every issued bearer token."""

    wallet_address: str
    user_id: str
    issued_at: datetime
    expires_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "walletAddress": self.wallet_address,
            "userId": self.user_id,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TokenClaims:
        """Build claims from a decoded payload.

        Raises:
            TokenInvalid: If a claim is missing or has the wrong type.
        """
        wallet_address = payload.get("walletAddress")
        user_id = payload.get("userId")
        iat = payload.get("iat")
        exp = payload.get("exp")
        if not isinstance(wallet_address, str) or not wallet_address:
            raise TokenInvalid("Token payload lacks walletAddress")
        if not isinstance(user_id, str) or not user_id:
            raise TokenInvalid("Token payload lacks userId")
        if not isinstance(iat, int) or not isinstance(exp, int):
            raise TokenInvalid("Token payload lacks numeric iat/exp")
        return cls(
            wallet_address=wallet_address,
            user_id=user_id,
            issued_at=datetime.fromtimestamp(iat, tz=UTC),
            expires_at=datetime.fromtimestamp(exp, tz=UTC),
        )


@dataclass(frozen=True)
class IssuedToken:
    token: str
    claims: TokenClaims


class TokenIssuer:
    """Create and verify signed bearer tokens."""

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        lifetime_seconds: int,
        clock: Clock = utcnow,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    def issue(self, wallet_address: str, user_id: str) -> IssuedToken:
        """Return a signed token for an authenticated wallet."""
        # JWT timestamps are whole seconds; keep the claims exactly what gets signed.
        issued_at = self._clock().replace(microsecond=0)
        claims = TokenClaims(
            wallet_address=wallet_address,
            user_id=user_id,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(seconds=self.lifetime_seconds),
        )
        token: str = jwt.encode(claims.to_payload(), self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, claims=claims)

    def decode(self, token: str) -> TokenClaims:
        """Verify signature, structure and expiry of ``token``.

        Raises:
            TokenInvalid: If the token is malformed, forged or missing claims.
            TokenExpired: If the ``exp`` claim is not in the future.
        """
        if not token:
            raise TokenInvalid("Missing token")
        try:
            # Expiry is compared against the injected clock below, not wall time.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as err:
            raise TokenInvalid(f"Token rejected: {err}") from err

        claims = TokenClaims.from_payload(payload)
        if self._clock() >= claims.expires_at:
            raise TokenExpired(f"Token for {claims.wallet_address} expired")
        return claims


__all__ = ["IssuedToken", "TokenClaims", "TokenIssuer"]
