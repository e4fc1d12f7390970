"""
One-stop functionality for issuing and decoding identity tokens.
"""

from datetime import timedelta

from cachetools import TTLCache, cached
from pydantic import ValidationError

from studysync.core.tokens import (
    KeyDecodeError,
    identity_claims,
    sign_claims,
    verify_claims,
)
from studysync.core.user import IdentityData
from studysync.core.uuid import UUID


@cached(cache=TTLCache(maxsize=256, ttl=600))
def decode_access_token(
    encrypted_access_token: str | bytes, public_key: str | bytes, key_pair_type: str
) -> IdentityData:
    """
    Raises
    ------
    KeyDecodeError
        When there is a problem decoding the key
    KeyExpiredError
        When the key has expired
    """

    if isinstance(public_key, str):
        public_key = public_key.encode("utf-8")

    claims = verify_claims(
        webtoken=encrypted_access_token,
        public_key=public_key,
        key_pair_type=key_pair_type,
    )

    try:
        return IdentityData.model_validate(claims)
    except ValidationError:
        raise KeyDecodeError("Error reconstructing the identity")


def issue_access_token(
    user_id: UUID,
    user_name: str,
    private_key: bytes,
    key_password: str,
    key_pair_type: str,
    validity: timedelta = timedelta(hours=8),
) -> str:
    """
    Sign an identity token. In production the identity service does this;
    here it is used for development and tests.
    """
    return sign_claims(
        claims=identity_claims(user_id=user_id, user_name=user_name, validity=validity),
        private_key=private_key,
        key_password=key_password,
        key_pair_type=key_pair_type,
    )
