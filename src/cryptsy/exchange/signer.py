"""
Request signing for the Cryptsy private API.

Private requests carry two headers: ``Key`` with the public account key, and
``Sign`` with the HMAC-SHA512 of the exact form body, hex encoded in lowercase.
"""

import hashlib
import hmac
from typing import Dict, Union

HEADER_SIGN = "Sign"
HEADER_KEY = "Key"


def sign(body: bytes, secret_key: bytes) -> str:
    """
    Compute the signature for a finalized request body.

    Args:
        body: The bytes that will be transmitted, unchanged.
        secret_key: The account's private key.

    Returns:
        Lowercase hex HMAC-SHA512 digest.
    """
    return hmac.new(secret_key, body, hashlib.sha512).hexdigest()


class Signer:
    """Holds one credential and produces authentication headers for it."""

    def __init__(self, public_key: str, secret_key: Union[str, bytes]):
        if isinstance(secret_key, str):
            secret_key = secret_key.encode('ascii')
        self._public_key = public_key
        self._secret_key = secret_key

    @property
    def public_key(self) -> str:
        return self._public_key

    def headers(self, body: bytes) -> Dict[str, str]:
        """Return the ``Sign`` and ``Key`` headers for ``body``."""
        return {
            HEADER_SIGN: sign(body, self._secret_key),
            HEADER_KEY: self._public_key,
        }

    def __repr__(self) -> str:
        return f"Signer(public_key={self._public_key!r}, secret_key=<redacted>)"
