"""
Errors raised by outbound calls to Dropbox and the downstream platform.
"""

from typing import Optional

from .base import ConnectorError


class RemoteError(ConnectorError):
    """A remote call failed. No retry is attempted."""

    default_error_code = "REMOTE_ERROR"

    def __init__(self, message: str, service: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.service = service


class TransportFailure(RemoteError):
    """The request never produced an HTTP response (network, timeout, TLS)."""

    default_error_code = "TRANSPORT_FAILURE"


class RemoteRejection(RemoteError):
    """The remote service answered with a non-2xx status."""

    default_error_code = "REMOTE_REJECTION"

    def __init__(
        self,
        message: str,
        service: str = "",
        status_code: Optional[int] = None,
        body: str = "",
        **kwargs,
    ):
        super().__init__(message, service=service, **kwargs)
        self.status_code = status_code
        self.body = body
