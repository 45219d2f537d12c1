"""
Configuration management for the Dropbox connector.
"""

from .settings import (
    ConnectorConfig,
    DropboxConfig,
    PlatformConfig,
    WebhookConfig,
    DatabaseConfig,
    CredentialConfig,
    SyncConfig,
    DeliveryPolicy,
    LogLevel,
)
from .environment import EnvironmentLoader
from .validation import ConfigValidator

__all__ = [
    "ConnectorConfig",
    "DropboxConfig",
    "PlatformConfig",
    "WebhookConfig",
    "DatabaseConfig",
    "CredentialConfig",
    "SyncConfig",
    "DeliveryPolicy",
    "LogLevel",
    "EnvironmentLoader",
    "ConfigValidator",
]
