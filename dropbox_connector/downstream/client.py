"""
Client for the downstream automation platform.

The platform stores the encoded credentials handed over at the end of the
OAuth flow and receives one event per new Dropbox file.
"""

import logging
from typing import Dict, Optional

import httpx

from ..config.settings import PlatformConfig
from ..credentials import Credential, CredentialCodec, get_codec
from ..http_client import RemoteHttpClient

logger = logging.getLogger(__name__)


class DownstreamClient(RemoteHttpClient):
    """Credential lookup and event posting against the platform API."""

    service_name = "platform"

    def __init__(
        self,
        config: PlatformConfig,
        codec: Optional[CredentialCodec] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        super().__init__(http_client=http_client, timeout=timeout)
        self.config = config
        self.codec = codec or get_codec()

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self.config.auth_token}

    def _url(self, path: str) -> str:
        return f"{self.config.api_prefix.rstrip('/')}{path}"

    async def lookup_credential(self, account_id: str) -> Credential:
        """
        Fetch and decode the stored access token for an account.

        Args:
            account_id: Dropbox account identifier

        Returns:
            Credential carrying the access secret

        Raises:
            RemoteError: If the platform call fails
            DecodeError: If the stored state is not a token we issued
        """
        response = await self.send(
            "POST",
            self._url("/api/_funcs/_author_state"),
            headers=self._headers,
            json={"author": account_id},
        )
        access_secret = await self.codec.decode_async(response.text)
        return Credential(access_secret=access_secret, account_id=account_id)

    async def post_event(self, user: str, text: str, triggers: Dict[str, str]) -> None:
        """
        Post one event to the platform.

        Args:
            user: Account the event belongs to
            text: Event body (the shared link of the new file)
            triggers: Trigger map, e.g. {"event": "file"}
        """
        await self.send(
            "POST",
            self._url("/api/_funcs/_post"),
            headers=self._headers,
            json={"user": user, "text": text, "triggers": triggers},
        )
        logger.debug(f"Posted {triggers} event for {user}")
