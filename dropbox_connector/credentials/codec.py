"""
Reversible encoding of OAuth secrets into opaque hex tokens.

The encoded tokens leave this service (they are stored by the downstream
platform and sent back to us later), so they must be decodable by any
instance of the service, at any time after they were issued.
"""

import asyncio
import logging
import threading
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..config.constants import DEFAULT_CREDENTIAL_KEY_BITS, DEFAULT_CREDENTIAL_SEED
from ..config.settings import CredentialConfig
from ..exceptions import CryptoFailure, MalformedToken, PlaintextTooLarge
from .keys import derive_private_key

logger = logging.getLogger(__name__)

_HASH_BYTES = 32  # SHA-256


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


class CredentialCodec:
    """
    Encodes short secrets with RSA-OAEP under a key derived from a fixed seed.

    The key pair is derived from a constant seed rather than fresh randomness.
    The service keeps no state: a token encoded by one process is decoded by
    whichever process receives it back, possibly after a restart or a
    redeploy. A randomly generated key would make every token issued before
    the restart permanently undecodable. Only the key derivation is
    deterministic; OAEP padding is randomized, so encoding the same secret
    twice gives two unrelated tokens.

    The key is derived lazily on first use and then shared read-only.
    """

    def __init__(
        self,
        seed: bytes = DEFAULT_CREDENTIAL_SEED,
        key_bits: int = DEFAULT_CREDENTIAL_KEY_BITS,
    ):
        self.seed = seed
        self.key_bits = key_bits
        self._private_key: Optional[rsa.RSAPrivateKey] = None
        self._public_key: Optional[rsa.RSAPublicKey] = None
        self._key_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CredentialConfig) -> "CredentialCodec":
        return cls(seed=config.seed, key_bits=config.key_bits)

    @property
    def ciphertext_bytes(self) -> int:
        return self.key_bits // 8

    @property
    def max_plaintext_bytes(self) -> int:
        """Largest UTF-8 secret that fits in one OAEP block."""
        return self.ciphertext_bytes - 2 * _HASH_BYTES - 2

    @property
    def is_loaded(self) -> bool:
        return self._private_key is not None

    def load_key(self) -> None:
        """Derive the key pair now instead of on first encode/decode."""
        if self._private_key is not None:
            return
        with self._key_lock:
            if self._private_key is None:
                private_key = derive_private_key(self.seed, self.key_bits)
                self._public_key = private_key.public_key()
                self._private_key = private_key

    def encode(self, plaintext: str) -> str:
        """
        Encode a secret into an opaque token.

        Args:
            plaintext: The secret, e.g. an OAuth access token

        Returns:
            Lowercase hex ciphertext

        Raises:
            PlaintextTooLarge: If the secret does not fit in one block
        """
        data = plaintext.encode("utf-8")
        if len(data) > self.max_plaintext_bytes:
            raise PlaintextTooLarge(len(data), self.max_plaintext_bytes)

        self.load_key()
        return self._public_key.encrypt(data, _oaep()).hex()

    def decode(self, token: Union[str, bytes]) -> str:
        """
        Recover the secret from a token produced by `encode`.

        Raises:
            MalformedToken: If the token is not hex of the expected length
            CryptoFailure: If the token does not decrypt under this key
        """
        if isinstance(token, bytes):
            try:
                token = token.decode("ascii")
            except UnicodeDecodeError:
                raise MalformedToken("Token is not ASCII hex")

        try:
            ciphertext = bytes.fromhex(token.strip())
        except ValueError:
            raise MalformedToken("Token is not valid hex")

        if len(ciphertext) != self.ciphertext_bytes:
            raise MalformedToken(
                f"Token is {len(ciphertext)} bytes, expected {self.ciphertext_bytes}"
            )

        self.load_key()
        try:
            data = self._private_key.decrypt(ciphertext, _oaep())
        except ValueError:
            raise CryptoFailure("Token did not decrypt under the service key")

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise CryptoFailure("Decrypted token is not UTF-8")

    async def encode_async(self, plaintext: str) -> str:
        """`encode` on a worker thread, so a pending key derivation never blocks the loop."""
        return await asyncio.to_thread(self.encode, plaintext)

    async def decode_async(self, token: Union[str, bytes]) -> str:
        """`decode` on a worker thread."""
        return await asyncio.to_thread(self.decode, token)


# Singleton instance
_codec: Optional[CredentialCodec] = None
_codec_lock = threading.Lock()


def configure_codec(config: CredentialConfig) -> CredentialCodec:
    """Replace the process-wide codec with one built from configuration."""
    global _codec
    with _codec_lock:
        _codec = CredentialCodec.from_config(config)
    return _codec


def get_codec() -> CredentialCodec:
    """Get or create the process-wide codec."""
    global _codec
    if _codec is None:
        with _codec_lock:
            if _codec is None:
                _codec = CredentialCodec()
    return _codec
