"""
Errors raised by the credential codec.
"""

from .base import ConnectorError


class CredentialError(ConnectorError):
    """Base class for encode/decode failures."""

    default_error_code = "INVALID_STATE"


class PlaintextTooLarge(CredentialError):
    """The secret does not fit in a single ciphertext block."""

    default_error_code = "PLAINTEXT_TOO_LARGE"

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Plaintext of {size} bytes exceeds the {limit} byte limit",
            context={"size": size, "limit": limit},
        )
        self.size = size
        self.limit = limit


class DecodeError(CredentialError):
    """An encoded token could not be turned back into a secret."""


class MalformedToken(DecodeError):
    """The token is not valid hex or has the wrong length."""


class CryptoFailure(DecodeError):
    """The token is well-formed but did not decrypt under our key."""
