"""
Configuration settings for the Dropbox connector.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .constants import (
    DEFAULT_CREDENTIAL_KEY_BITS,
    DEFAULT_CREDENTIAL_SEED,
    DEFAULT_DATABASE_PATH,
    DEFAULT_PLATFORM_API_PREFIX,
    DEFAULT_SERVICE_API_PREFIX,
)


class LogLevel(Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DeliveryPolicy(str, Enum):
    """Ordering between cursor persistence and downstream emission.

    CURSOR_FIRST persists the advanced cursor before any event is posted, so a
    failed post loses that event (at-most-once). EVENTS_FIRST posts every
    event before persisting the cursor, so a failed post re-delivers the whole
    page set on the next pass (at-least-once).
    """
    CURSOR_FIRST = "cursor_first"
    EVENTS_FIRST = "events_first"


@dataclass
class DropboxConfig:
    """Dropbox app identity and the public address of this service."""
    app_key: str = ""
    app_secret: str = ""
    service_api_prefix: str = DEFAULT_SERVICE_API_PREFIX
    verify_webhook_signature: bool = False

    @property
    def redirect_uri(self) -> str:
        """OAuth callback URL, fixed for the whole process."""
        return f"{self.service_api_prefix.rstrip('/')}/auth"


@dataclass
class PlatformConfig:
    """Downstream automation platform endpoint and credentials."""
    api_prefix: str = DEFAULT_PLATFORM_API_PREFIX
    auth_token: str = ""


@dataclass
class WebhookConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8000
    enabled: bool = True
    max_upload_bytes: int = 150 * 1024 * 1024


@dataclass
class DatabaseConfig:
    """Cursor store configuration."""
    path: str = DEFAULT_DATABASE_PATH
    pool_size: int = 5


@dataclass
class CredentialConfig:
    """Credential codec key material."""
    seed: bytes = DEFAULT_CREDENTIAL_SEED
    key_bits: int = DEFAULT_CREDENTIAL_KEY_BITS


@dataclass
class SyncConfig:
    """Sync engine behaviour."""
    delivery_policy: Union[DeliveryPolicy, str] = DeliveryPolicy.CURSOR_FIRST
    max_concurrent_accounts: int = 4


@dataclass
class ConnectorConfig:
    """Top-level configuration for the connector service."""
    dropbox: DropboxConfig = field(default_factory=DropboxConfig)
    platform: PlatformConfig = field(default_factory=PlatformConfig)
    webhook_config: WebhookConfig = field(default_factory=WebhookConfig)
    database_config: DatabaseConfig = field(default_factory=DatabaseConfig)
    credential_config: CredentialConfig = field(default_factory=CredentialConfig)
    sync_config: SyncConfig = field(default_factory=SyncConfig)
    http_timeout: float = 30.0
    log_level: LogLevel = LogLevel.INFO
    log_file: Optional[str] = "data/connector.log"
