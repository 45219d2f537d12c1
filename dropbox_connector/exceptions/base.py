"""
Base exception types for the Dropbox connector.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """Base class for all connector errors.

    Carries a machine-readable error code and an optional message that is
    safe to show to an external caller.
    """

    default_error_code = "CONNECTOR_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.user_message = user_message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.user_message or self.message,
        }

    def to_log_string(self) -> str:
        """Render the error for log output, including context."""
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({details})")
        if self.__cause__ is not None:
            parts.append(f"caused by {type(self.__cause__).__name__}: {self.__cause__}")
        return " ".join(parts)


class ConfigurationError(ConnectorError):
    """Raised when the service configuration is invalid."""

    default_error_code = "CONFIGURATION_ERROR"


class UnexpectedError(ConnectorError):
    """Wraps an exception that is not part of the connector hierarchy."""

    default_error_code = "UNEXPECTED_ERROR"


def handle_unexpected_error(error: Exception) -> ConnectorError:
    """
    Normalize any exception into a ConnectorError.

    Args:
        error: The exception that was raised

    Returns:
        The error itself if it is already a ConnectorError, otherwise a wrapper
    """
    if isinstance(error, ConnectorError):
        return error

    wrapped = UnexpectedError(
        f"{type(error).__name__}: {error}",
        user_message="An unexpected error occurred",
    )
    wrapped.__cause__ = error
    return wrapped
