"""
Signing and verifying identity JWTs.

An identity token carries who the caller is (`user_id`, `user_name`) and
the usual time claims. Tokens missing any of those are rejected outright.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from studysync.core.uuid import UUID

from .cryptography import (
    EncryptionSerializationError,
    UnsupportedEncryptionMethod,
    load_private_key,
    load_public_key,
)

JWT_ALGORITHMS = {"Ed25519": "EdDSA"}
REQUIRED_CLAIMS = ["exp", "iat", "user_id", "user_name"]


class KeyDecodeError(Exception):
    pass


class KeyExpiredError(Exception):
    pass


def jwt_algorithm(key_pair_type: str) -> str:
    try:
        return JWT_ALGORITHMS[key_pair_type]
    except KeyError:
        raise UnsupportedEncryptionMethod(f"Unsupported key pair type {key_pair_type}")


def identity_claims(
    user_id: UUID, user_name: str, validity: timedelta
) -> dict[str, Any]:
    issued_at = datetime.now(timezone.utc)

    return {
        "user_id": user_id.hex,
        "user_name": user_name,
        "iat": issued_at,
        "nbf": issued_at,
        "exp": issued_at + validity,
    }


def sign_claims(
    claims: dict[str, Any],
    private_key: bytes,
    key_password: str,
    key_pair_type: str,
) -> str:
    """
    Sign `claims` with the (encrypted, PEM) `private_key`.
    """
    key = load_private_key(
        private_key=private_key, key_password=key_password, key_pair_type=key_pair_type
    )

    return jwt.encode(claims, key=key, algorithm=jwt_algorithm(key_pair_type))


def verify_claims(
    webtoken: str | bytes, public_key: bytes, key_pair_type: str
) -> dict[str, Any]:
    """
    Check the signature and time claims of `webtoken` and return its claims.

    Raises
    ------
    KeyExpiredError
        If the token has expired.
    KeyDecodeError
        For any other reason the token cannot be trusted: bad signature,
        malformed token, missing claims, or a public key we cannot use.
    """

    try:
        return jwt.decode(
            webtoken,
            key=load_public_key(public_key=public_key, key_pair_type=key_pair_type),
            algorithms=[jwt_algorithm(key_pair_type)],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        raise KeyExpiredError("Token has expired")
    except (
        jwt.InvalidTokenError,
        EncryptionSerializationError,
        UnsupportedEncryptionMethod,
    ):
        raise KeyDecodeError("Unable to verify token")
