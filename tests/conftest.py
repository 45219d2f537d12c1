"""
Shared test fixtures.
"""

import pytest

from dropbox_connector.credentials import CredentialCodec

TEST_SEED = b"0123456789abcdef0123456789abcdef"


@pytest.fixture(scope="session")
def codec():
    """Small-key codec; deriving the production-size key is slow."""
    codec = CredentialCodec(seed=TEST_SEED, key_bits=2048)
    codec.load_key()
    return codec
