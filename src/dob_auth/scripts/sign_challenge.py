# src/dob_auth/scripts/sign_challenge.py
"""
Sign an authentication challenge with a Stellar secret seed.

Intended for manual testing of the /api/auth flow without a browser wallet:

    python -m dob_auth.scripts.sign_challenge --seed S... --challenge DOB_VALIDATOR_AUTH_...

Prints the wallet address and the base64 (or hex) signature to submit to
/api/auth/verify.
"""

from __future__ import annotations

import argparse
import base64
import sys

from nacl.signing import SigningKey

from dob_auth.core.security import (
    decode_secret_seed,
    encode_account_id,
    encode_secret_seed,
    signed_message_digest,
)


def signing_key_from_seed(seed: str) -> SigningKey:
    """Return the Ed25519 signing key for a ``S...`` secret seed."""
    return SigningKey(decode_secret_seed(seed.strip()))


def sign_challenge(
    signing_key: SigningKey,
    challenge: str,
    *,
    signed_message: bool = False,
    encoding: str = "base64",
) -> str:
    """Sign ``challenge`` and return the encoded signature.

    With ``signed_message`` the SEP-53 digest is signed instead of the raw
    challenge, matching what wallet ``signMessage`` APIs produce.
    """
    message = challenge.encode("utf-8")
    if signed_message:
        message = signed_message_digest(message)
    signature = signing_key.sign(message).signature
    if encoding == "hex":
        return signature.hex()
    return base64.b64encode(signature).decode("ascii")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sign a wallet authentication challenge")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--seed", help="Stellar secret seed (S...)")
    group.add_argument(
        "--generate",
        action="store_true",
        help="Generate a throwaway keypair and print its seed",
    )
    parser.add_argument("--challenge", help="Challenge returned by /api/auth/challenge")
    parser.add_argument(
        "--signed-message",
        action="store_true",
        help="Sign the SEP-53 message digest instead of the raw challenge",
    )
    parser.add_argument("--encoding", choices=("base64", "hex"), default="base64")
    args = parser.parse_args(argv)

    if args.generate:
        signing_key = SigningKey.generate()
        print(f"Seed:    {encode_secret_seed(bytes(signing_key))}")
    else:
        try:
            signing_key = signing_key_from_seed(args.seed)
        except ValueError as err:
            print(f"Invalid seed: {err}", file=sys.stderr)
            return 2

    print(f"Address: {encode_account_id(bytes(signing_key.verify_key))}")
    if args.challenge:
        signature = sign_challenge(
            signing_key,
            args.challenge,
            signed_message=args.signed_message,
            encoding=args.encoding,
        )
        print(f"Signature: {signature}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
