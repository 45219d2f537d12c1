"""
Credential handling: the in-memory credential type and the codec that turns
secrets into opaque tokens safe to hand to the downstream platform.
"""

from .models import Credential
from .codec import CredentialCodec, configure_codec, get_codec
from .keys import derive_private_key

__all__ = [
    "Credential",
    "CredentialCodec",
    "configure_codec",
    "get_codec",
    "derive_private_key",
]
