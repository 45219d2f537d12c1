"""
Environment variable handling for the Dropbox connector configuration.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_CREDENTIAL_KEY_BITS,
    DEFAULT_CREDENTIAL_SEED,
    DEFAULT_DATABASE_PATH,
    DEFAULT_PLATFORM_API_PREFIX,
    DEFAULT_SERVICE_API_PREFIX,
)
from .settings import (
    ConnectorConfig, DropboxConfig, PlatformConfig, WebhookConfig,
    DatabaseConfig, CredentialConfig, SyncConfig, DeliveryPolicy, LogLevel
)


class EnvironmentLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load_config(dotenv: bool = True) -> ConnectorConfig:
        """Load configuration from environment variables."""
        if dotenv:
            load_dotenv()

        dropbox = DropboxConfig(
            app_key=os.getenv('DROPBOX_APP_KEY', ''),
            app_secret=os.getenv('DROPBOX_APP_SECRET', ''),
            service_api_prefix=os.getenv('SERVICE_API_PREFIX', DEFAULT_SERVICE_API_PREFIX),
            verify_webhook_signature=EnvironmentLoader._parse_bool(
                os.getenv('DROPBOX_VERIFY_WEBHOOK_SIGNATURE', 'false')
            ),
        )

        platform = PlatformConfig(
            api_prefix=os.getenv('PLATFORM_API_PREFIX', DEFAULT_PLATFORM_API_PREFIX),
            auth_token=os.getenv('PLATFORM_AUTH_TOKEN', ''),
        )

        webhook_config = WebhookConfig(
            host=os.getenv('WEBHOOK_HOST', '0.0.0.0'),
            port=int(os.getenv('WEBHOOK_PORT', '8000')),
            enabled=EnvironmentLoader._parse_bool(os.getenv('WEBHOOK_ENABLED', 'true')),
            max_upload_bytes=int(os.getenv('MAX_UPLOAD_BYTES', str(150 * 1024 * 1024))),
        )

        database_config = DatabaseConfig(
            path=os.getenv('DATABASE_PATH', DEFAULT_DATABASE_PATH),
            pool_size=int(os.getenv('DB_POOL_SIZE', '5')),
        )

        seed = os.getenv('CREDENTIAL_SEED')
        credential_config = CredentialConfig(
            seed=seed.encode() if seed else DEFAULT_CREDENTIAL_SEED,
            key_bits=int(os.getenv('CREDENTIAL_KEY_BITS', str(DEFAULT_CREDENTIAL_KEY_BITS))),
        )

        policy_str = os.getenv('SYNC_DELIVERY_POLICY', DeliveryPolicy.CURSOR_FIRST.value).lower()
        try:
            delivery_policy = DeliveryPolicy(policy_str)
        except ValueError:
            # Kept as given; ConfigValidator reports it
            delivery_policy = policy_str

        sync_config = SyncConfig(
            delivery_policy=delivery_policy,
            max_concurrent_accounts=int(os.getenv('SYNC_MAX_CONCURRENT_ACCOUNTS', '4')),
        )

        log_level = LogLevel.INFO
        try:
            log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        except ValueError:
            pass  # Use default

        return ConnectorConfig(
            dropbox=dropbox,
            platform=platform,
            webhook_config=webhook_config,
            database_config=database_config,
            credential_config=credential_config,
            sync_config=sync_config,
            http_timeout=float(os.getenv('HTTP_TIMEOUT', '30')),
            log_level=log_level,
            log_file=os.getenv('LOG_FILE', 'data/connector.log') or None,
        )

    @staticmethod
    def _parse_bool(value: Optional[str]) -> bool:
        return (value or '').strip().lower() in ('1', 'true', 'yes', 'on')
