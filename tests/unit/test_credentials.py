"""
Tests for the credential codec and key derivation.
"""

import asyncio
import time

import pytest

from dropbox_connector.config import CredentialConfig
from dropbox_connector.credentials import codec as codec_module
from dropbox_connector.credentials import Credential, CredentialCodec
from dropbox_connector.credentials.keys import SeededByteStream, is_probable_prime
from dropbox_connector.exceptions import (
    CryptoFailure,
    DecodeError,
    MalformedToken,
    PlaintextTooLarge,
)

TEST_SEED = b"0123456789abcdef0123456789abcdef"


class TestCredentialCodec:
    """Tests for CredentialCodec."""

    def test_round_trip(self, codec):
        secret = "sl.BAbCdEfGh-access-token_0123456789"
        assert codec.decode(codec.encode(secret)) == secret

    def test_round_trip_unicode(self, codec):
        assert codec.decode(codec.encode("clé-secrète ✓")) == "clé-secrète ✓"

    def test_round_trip_empty(self, codec):
        assert codec.decode(codec.encode("")) == ""

    def test_output_is_lowercase_hex_of_modulus_size(self, codec):
        token = codec.encode("abc")
        assert token == token.lower()
        assert len(token) == codec.ciphertext_bytes * 2
        bytes.fromhex(token)

    def test_encoding_is_randomized(self, codec):
        assert codec.encode("same-secret") != codec.encode("same-secret")

    def test_decode_accepts_bytes(self, codec):
        token = codec.encode("secret")
        assert codec.decode(token.encode("ascii")) == "secret"

    def test_tampered_token_rejected(self, codec):
        token = codec.encode("secret")
        flipped = "0" if token[-1] != "0" else "1"
        with pytest.raises(DecodeError):
            codec.decode(token[:-1] + flipped)

    def test_arbitrary_token_rejected(self, codec):
        with pytest.raises(CryptoFailure):
            codec.decode("ab" * codec.ciphertext_bytes)

    def test_non_hex_rejected(self, codec):
        with pytest.raises(MalformedToken):
            codec.decode("not-a-token")

    def test_wrong_length_rejected(self, codec):
        with pytest.raises(MalformedToken):
            codec.decode("abcd")

    def test_non_ascii_bytes_rejected(self, codec):
        with pytest.raises(MalformedToken):
            codec.decode(b"\xff\xfe")

    def test_plaintext_at_limit_accepted(self, codec):
        secret = "x" * codec.max_plaintext_bytes
        assert codec.decode(codec.encode(secret)) == secret

    def test_oversized_plaintext_rejected(self, codec):
        with pytest.raises(PlaintextTooLarge) as exc_info:
            codec.encode("x" * (codec.max_plaintext_bytes + 1))
        assert exc_info.value.limit == codec.max_plaintext_bytes

    def test_default_key_fits_512_byte_secrets(self):
        # No key derivation needed to check the size arithmetic
        assert CredentialCodec().max_plaintext_bytes >= 512

    def test_same_seed_decodes_across_instances(self, codec):
        other = CredentialCodec(seed=TEST_SEED, key_bits=2048)
        assert not other.is_loaded
        assert other.decode(codec.encode("shared")) == "shared"

    def test_different_seed_cannot_decode(self, codec):
        other = CredentialCodec(seed=b"f" * 32, key_bits=2048)
        with pytest.raises(CryptoFailure):
            other.decode(codec.encode("secret"))

    def test_from_config(self):
        codec = CredentialCodec.from_config(CredentialConfig(seed=TEST_SEED, key_bits=3072))
        assert codec.seed == TEST_SEED
        assert codec.ciphertext_bytes == 384


class TestCodecOffLoop:
    """The event loop keeps running while a codec call waits for the key."""

    @staticmethod
    async def _max_gap_during(coro):
        gaps = []
        stop = asyncio.Event()

        async def ticker():
            last = time.monotonic()
            while not stop.is_set():
                await asyncio.sleep(0.01)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        task = asyncio.create_task(ticker())
        try:
            result = await coro
        finally:
            stop.set()
            await task
        return result, max(gaps)

    @pytest.mark.asyncio
    async def test_encode_during_warmup_does_not_block_loop(self, codec, monkeypatch):
        def slow_derive(seed, key_bits):
            time.sleep(0.5)
            return codec._private_key

        monkeypatch.setattr(codec_module, "derive_private_key", slow_derive)
        fresh = CredentialCodec(seed=TEST_SEED, key_bits=2048)
        warmup = asyncio.create_task(asyncio.to_thread(fresh.load_key))

        token, max_gap = await self._max_gap_during(fresh.encode_async("tok"))
        await warmup

        assert max_gap < 0.25
        assert await fresh.decode_async(token) == "tok"

    @pytest.mark.asyncio
    async def test_decode_async_raises_decode_errors(self, codec):
        with pytest.raises(MalformedToken):
            await codec.decode_async("not-a-token")


class TestKeyDerivation:
    """Tests for the seeded prime search helpers."""

    def test_stream_is_deterministic(self):
        a = SeededByteStream(TEST_SEED)
        b = SeededByteStream(TEST_SEED)
        assert a.read(100) == b.read(100)

    def test_stream_depends_on_label(self):
        a = SeededByteStream(TEST_SEED, label=b"one")
        b = SeededByteStream(TEST_SEED, label=b"two")
        assert a.read(32) != b.read(32)

    def test_randint_below_stays_in_range(self):
        stream = SeededByteStream(TEST_SEED)
        values = [stream.randint_below(10) for _ in range(200)]
        assert min(values) >= 0
        assert max(values) < 10

    def test_primality(self):
        stream = SeededByteStream(TEST_SEED)
        assert is_probable_prime(2, stream)
        assert is_probable_prime(7919, stream)
        assert is_probable_prime(2 ** 127 - 1, stream)
        assert not is_probable_prime(1, stream)
        assert not is_probable_prime(7917, stream)
        # Carmichael number
        assert not is_probable_prime(561, stream)


class TestCredential:
    """Tests for the in-memory credential."""

    def test_repr_masks_secrets(self):
        credential = Credential(access_secret="AT-123", refresh_secret="RT-456", account_id="dbid:1")
        text = repr(credential)
        assert "AT-123" not in text
        assert "RT-456" not in text
        assert "dbid:1" in text
