"""
Key pair handling for identity tokens. The identity service signs tokens
with its private key; this service only ever needs the public half, except
when minting development tokens.
"""

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
    load_pem_public_key,
)

PRIVATE_KEY_CLASSES = {"Ed25519": Ed25519PrivateKey}
PUBLIC_KEY_CLASSES = {"Ed25519": Ed25519PublicKey}


class UnsupportedEncryptionMethod(Exception):
    pass


class EncryptionSerializationError(Exception):
    pass


def _key_class(classes: dict, key_pair_type: str):
    try:
        return classes[key_pair_type]
    except KeyError:
        raise UnsupportedEncryptionMethod(f"Unsupported key pair type {key_pair_type}")


def generate_key_pair(key_pair_type: str, key_password: str) -> tuple[bytes, bytes]:
    """
    Generate a key pair, PEM encoded, the private half encrypted with
    `key_password`. Returns `(public_key, private_key)`.
    """

    private = _key_class(PRIVATE_KEY_CLASSES, key_pair_type).generate()

    public_pem = private.public_key().public_bytes(
        encoding=Encoding.PEM, format=PublicFormat.SubjectPublicKeyInfo
    )
    private_pem = private.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.PKCS8,
        encryption_algorithm=BestAvailableEncryption(key_password.encode("utf-8")),
    )

    return public_pem, private_pem


def load_private_key(private_key: bytes, key_password: str, key_pair_type: str):
    """
    Raises
    ------
    EncryptionSerializationError
        If the key cannot be decrypted, or is not of type `key_pair_type`.
    """
    expected = _key_class(PRIVATE_KEY_CLASSES, key_pair_type)

    try:
        key = load_pem_private_key(private_key, password=key_password.encode("utf-8"))
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise EncryptionSerializationError("Unable to load private key")

    if not isinstance(key, expected):
        raise EncryptionSerializationError(f"Private key is not a {key_pair_type} key")

    return key


def load_public_key(public_key: bytes, key_pair_type: str):
    """
    Raises
    ------
    EncryptionSerializationError
        If the key cannot be parsed, or is not of type `key_pair_type`.
    """
    expected = _key_class(PUBLIC_KEY_CLASSES, key_pair_type)

    try:
        key = load_pem_public_key(public_key)
    except (ValueError, UnsupportedAlgorithm):
        raise EncryptionSerializationError("Unable to load public key")

    if not isinstance(key, expected):
        raise EncryptionSerializationError(f"Public key is not a {key_pair_type} key")

    return key
