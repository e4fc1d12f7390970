"""
Generate random tokens
"""

import secrets
import string

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def invite_code(length: int = 10) -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def meet_link(base_url: str) -> str:
    """
    An opaque, externally redeemable join link of the form
    `{base_url}/abc-defg-hij`.
    """
    segments = (
        "".join(secrets.choice(string.ascii_lowercase) for _ in range(length))
        for length in (3, 4, 3)
    )
    return f"{base_url.rstrip('/')}/{'-'.join(segments)}"
