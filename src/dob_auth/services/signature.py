"""Proof that a caller controls the private key of a Stellar wallet."""

from __future__ import annotations

import logging
from typing import Protocol

from dob_auth.core.security import (
    decode_account_id,
    decode_signature,
    signed_message_digest,
    verify_signature,
)

logger = logging.getLogger(__name__)


class SignatureVerifier(Protocol):
    def verify(self, wallet_address: str, signature: str, challenge: str) -> bool:
        """Return True if ``signature`` over ``challenge`` was made by the wallet's key."""
        ...


class Ed25519SignatureVerifier:
    """Verify Ed25519 signatures against the key encoded in a ``G...`` address.

    Two message forms are accepted: the raw UTF-8 challenge, and the SEP-53
    digest produced by wallet ``signMessage`` implementations.
    """

    def __init__(self, *, allow_signed_message: bool = True) -> None:
        self.allow_signed_message = allow_signed_message

    def verify(self, wallet_address: str, signature: str, challenge: str) -> bool:
        try:
            public_key = decode_account_id(wallet_address)
            signature_bytes = decode_signature(signature)
        except ValueError as err:
            logger.info("Rejected signature for %s: %s", wallet_address, err)
            return False

        message = challenge.encode("utf-8")
        if verify_signature(public_key, message, signature_bytes):
            return True
        if self.allow_signed_message:
            return verify_signature(public_key, signed_message_digest(message), signature_bytes)
        return False


__all__ = ["Ed25519SignatureVerifier", "SignatureVerifier"]
