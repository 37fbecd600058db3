"""Stellar key encoding and Ed25519 signature utilities."""
from __future__ import annotations

import base64
import binascii
import hashlib
from typing import Final

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey
from stellar_sdk import StrKey

ED25519_SIGNATURE_BYTES: Final[int] = 64

# SEP-53 "Sign and verify messages" prefix used by wallet signMessage APIs.
SIGNED_MESSAGE_PREFIX: Final[bytes] = b"Stellar Signed Message:\n"


def decode_account_id(address: str) -> bytes:
    """Return the Ed25519 public key embedded in a ``G...`` account address.

    Raises:
        ValueError: If the length, alphabet, version byte or checksum is wrong.
    """
    try:
        return StrKey.decode_ed25519_public_key(address)
    except ValueError as err:
        raise ValueError(f"Invalid Stellar account address: {err}") from err


def encode_account_id(public_key: bytes) -> str:
    """Return the ``G...`` account address for a raw Ed25519 public key."""
    return StrKey.encode_ed25519_public_key(public_key)


def is_valid_account_id(address: str) -> bool:
    """Return True if ``address`` is a well-formed Stellar account address."""
    try:
        decode_account_id(address)
    except ValueError:
        return False
    return True


def decode_secret_seed(seed: str) -> bytes:
    """Return the 32-byte Ed25519 seed behind an ``S...`` secret seed."""
    try:
        return StrKey.decode_ed25519_secret_seed(seed)
    except ValueError as err:
        raise ValueError(f"Invalid Stellar secret seed: {err}") from err


def encode_secret_seed(seed: bytes) -> str:
    """Return the ``S...`` secret seed for a raw 32-byte Ed25519 seed."""
    return StrKey.encode_ed25519_secret_seed(seed)


def decode_signature(signature: str) -> bytes:
    """Decode a 64-byte signature supplied as hex or (URL-safe) base64.

    Raises:
        ValueError: If no supported encoding yields 64 bytes.
    """
    cleaned = signature.strip()
    candidates: list[bytes] = []
    if len(cleaned) == ED25519_SIGNATURE_BYTES * 2:
        try:
            candidates.append(bytes.fromhex(cleaned))
        except ValueError:
            pass
    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        candidates.append(base64.b64decode(padded, validate=True))
    except (binascii.Error, ValueError):
        try:
            candidates.append(base64.urlsafe_b64decode(padded))
        except (binascii.Error, ValueError):
            pass
    for candidate in candidates:
        if len(candidate) == ED25519_SIGNATURE_BYTES:
            return candidate
    raise ValueError("Signature must be a 64-byte value encoded as hex or base64")


def signed_message_digest(message: bytes) -> bytes:
    """Return the SEP-53 digest a wallet signs for ``message``."""
    return hashlib.sha256(SIGNED_MESSAGE_PREFIX + message).digest()


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature.

    Args:
        public_key: Raw 32-byte public key.
        message: Exact bytes that were signed on the client.
        signature: Raw 64-byte signature.

    Returns:
        True if the signature is valid for `message` under `public_key`; False otherwise.
    """
    try:
        VerifyKey(public_key).verify(message, signature)
    except (BadSignatureError, ValueError, TypeError):
        return False
    return True
