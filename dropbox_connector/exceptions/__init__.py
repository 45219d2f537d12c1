"""
Exception hierarchy for the Dropbox connector.
"""

from .base import (
    ConnectorError,
    ConfigurationError,
    UnexpectedError,
    handle_unexpected_error,
)
from .remote import RemoteError, TransportFailure, RemoteRejection
from .credentials import (
    CredentialError,
    PlaintextTooLarge,
    DecodeError,
    MalformedToken,
    CryptoFailure,
)
from .oauth import OAuthError, AuthorizationRejected, IncompleteGrant

__all__ = [
    # Base
    "ConnectorError",
    "ConfigurationError",
    "UnexpectedError",
    "handle_unexpected_error",
    # Remote calls
    "RemoteError",
    "TransportFailure",
    "RemoteRejection",
    # Credentials
    "CredentialError",
    "PlaintextTooLarge",
    "DecodeError",
    "MalformedToken",
    "CryptoFailure",
    # OAuth
    "OAuthError",
    "AuthorizationRejected",
    "IncompleteGrant",
]
