"""
Constants shared by the configuration layer.
"""

DEFAULT_SERVICE_API_PREFIX = "https://dropbox-connector.fly.dev"
DEFAULT_PLATFORM_API_PREFIX = "https://wasmhaiku.com"
DEFAULT_DATABASE_PATH = "data/connector.db"

# Must never change between deployments: every token handed out so far was
# encrypted under the key derived from this seed.
DEFAULT_CREDENTIAL_SEED = b"Kq7#vRz2pL9!mWx4TbN8@cY1sHf6dGe3"

# OAEP/SHA-256 leaves key_bits // 8 - 66 bytes of room: 574 bytes at 5120.
DEFAULT_CREDENTIAL_KEY_BITS = 5120
MIN_CREDENTIAL_KEY_BITS = 2048
CREDENTIAL_SEED_BYTES = 32

DROPBOX_AUTHORIZE_URL = "https://www.dropbox.com/oauth2/authorize"
DROPBOX_TOKEN_URL = "https://api.dropbox.com/oauth2/token"
DROPBOX_API_URL = "https://api.dropboxapi.com/2"
DROPBOX_CONTENT_URL = "https://content.dropboxapi.com/2"
