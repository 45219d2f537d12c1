"""
Configuration validation for the Dropbox connector.
"""

from typing import List
import re

from .settings import ConnectorConfig, DeliveryPolicy
from .constants import CREDENTIAL_SEED_BYTES, MIN_CREDENTIAL_KEY_BITS


class ConfigValidator:
    """Validates configuration settings."""

    @staticmethod
    def validate_config(config: ConnectorConfig) -> List[str]:
        """Validate the entire connector configuration."""
        errors = []

        errors.extend(ConfigValidator._validate_dropbox_config(config))
        errors.extend(ConfigValidator._validate_platform_config(config))
        errors.extend(ConfigValidator._validate_webhook_config(config))
        errors.extend(ConfigValidator._validate_credential_config(config))
        errors.extend(ConfigValidator._validate_sync_config(config))
        errors.extend(ConfigValidator._validate_numeric_ranges(config))

        return errors

    @staticmethod
    def _validate_dropbox_config(config: ConnectorConfig) -> List[str]:
        """Validate the Dropbox app identity."""
        errors = []
        dropbox = config.dropbox

        if not dropbox.app_key:
            errors.append("DROPBOX_APP_KEY is not set")
        if not dropbox.app_secret:
            errors.append("DROPBOX_APP_SECRET is not set")

        if not ConfigValidator._is_valid_url(dropbox.service_api_prefix):
            errors.append(f"Invalid service API prefix: {dropbox.service_api_prefix}")

        return errors

    @staticmethod
    def _validate_platform_config(config: ConnectorConfig) -> List[str]:
        """Validate the downstream platform settings."""
        errors = []

        if not config.platform.auth_token:
            errors.append("PLATFORM_AUTH_TOKEN is not set")

        if not ConfigValidator._is_valid_url(config.platform.api_prefix):
            errors.append(f"Invalid platform API prefix: {config.platform.api_prefix}")

        return errors

    @staticmethod
    def _validate_webhook_config(config: ConnectorConfig) -> List[str]:
        """Validate webhook configuration."""
        errors = []

        webhook_config = config.webhook_config

        # Validate port range
        if not (1 <= webhook_config.port <= 65535):
            errors.append(f"Webhook port {webhook_config.port} is not in valid range (1-65535)")

        if webhook_config.max_upload_bytes <= 0:
            errors.append("Maximum upload size must be positive")

        return errors

    @staticmethod
    def _validate_credential_config(config: ConnectorConfig) -> List[str]:
        """Validate codec key material settings."""
        errors = []
        credential_config = config.credential_config

        if len(credential_config.seed) != CREDENTIAL_SEED_BYTES:
            errors.append(
                f"Credential seed must be exactly {CREDENTIAL_SEED_BYTES} bytes, "
                f"got {len(credential_config.seed)}"
            )

        if credential_config.key_bits < MIN_CREDENTIAL_KEY_BITS:
            errors.append(f"Credential key size must be at least {MIN_CREDENTIAL_KEY_BITS} bits")
        if credential_config.key_bits % 256 != 0:
            errors.append("Credential key size must be a multiple of 256 bits")

        return errors

    @staticmethod
    def _validate_sync_config(config: ConnectorConfig) -> List[str]:
        """Validate the delivery policy."""
        errors = []
        policy = config.sync_config.delivery_policy
        allowed = [p.value for p in DeliveryPolicy]

        if policy not in allowed:
            errors.append(
                f"Unknown SYNC_DELIVERY_POLICY '{policy}' (expected one of: {', '.join(allowed)})"
            )

        return errors

    @staticmethod
    def _validate_numeric_ranges(config: ConnectorConfig) -> List[str]:
        """Validate numeric configuration values."""
        errors = []

        if config.database_config.pool_size < 1:
            errors.append("Database pool size must be at least 1")

        if config.sync_config.max_concurrent_accounts < 1:
            errors.append("Sync concurrency must be at least 1")

        if config.http_timeout <= 0:
            errors.append("HTTP timeout must be positive")

        return errors

    @staticmethod
    def _is_valid_url(url: str) -> bool:
        """Basic http(s) URL validation."""
        url_pattern = r'^https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$'
        return bool(re.match(url_pattern, url))
