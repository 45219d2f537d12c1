"""
HTTP surface of the connector.
"""

from .server import WebhookServer
from .routes import create_connector_router, signature_is_valid

__all__ = ["WebhookServer", "create_connector_router", "signature_is_valid"]
