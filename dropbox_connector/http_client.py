"""
Shared httpx wrapper for outbound calls.

Every outbound call goes through `RemoteHttpClient.send`, which turns
transport errors and non-2xx answers into the connector's RemoteError types.
Nothing is retried.
"""

import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .exceptions import RemoteRejection, TransportFailure

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_BODY_PREVIEW = 500


class RemoteHttpClient:
    """Base class for clients of one remote service."""

    service_name = "remote"

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            http_client: Client to reuse; one is created (and owned) if omitted
            timeout: Request timeout for an owned client
        """
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send one request.

        Raises:
            TransportFailure: If no response was received
            RemoteRejection: If the response status is not 2xx
        """
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{self.service_name} request to {url} failed: {e}")
            raise TransportFailure(
                f"{self.service_name} request failed: {e}",
                service=self.service_name,
                context={"url": url},
            ) from e

        if not response.is_success:
            body = response.text[:_BODY_PREVIEW]
            logger.warning(
                f"{self.service_name} rejected {method} {url}: {response.status_code} {body}"
            )
            raise RemoteRejection(
                f"{self.service_name} returned {response.status_code}: {body}",
                service=self.service_name,
                status_code=response.status_code,
                body=body,
                context={"url": url},
            )

        return response

    def parse(self, response: httpx.Response, model: Type[ModelT]) -> ModelT:
        """Validate a JSON response body against a pydantic model."""
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteRejection(
                f"{self.service_name} sent an unexpected {model.__name__}: {e}",
                service=self.service_name,
                status_code=response.status_code,
                body=response.text[:_BODY_PREVIEW],
            ) from e
