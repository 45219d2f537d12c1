"""
Dropbox OAuth handoff.

The connector never keeps Dropbox secrets. At the end of the authorization
flow both secrets are encoded and handed to the downstream platform, which
sends them back whenever the connector needs to act for that account.
"""

import logging
from typing import Dict, Optional
from urllib.parse import urlencode

from ..config.constants import DROPBOX_AUTHORIZE_URL
from ..config.settings import DropboxConfig, PlatformConfig
from ..credentials import CredentialCodec, get_codec
from ..dropbox import DropboxClient
from ..exceptions import (
    AuthorizationRejected,
    IncompleteGrant,
    OAuthError,
    RemoteError,
)

logger = logging.getLogger(__name__)


class DropboxOAuthFlow:
    """Builds the authorize URL and completes the code exchange."""

    def __init__(
        self,
        dropbox_config: DropboxConfig,
        platform_config: PlatformConfig,
        client: DropboxClient,
        codec: Optional[CredentialCodec] = None,
    ):
        self.dropbox_config = dropbox_config
        self.platform_config = platform_config
        self.client = client
        self.codec = codec or get_codec()

    def begin(self) -> str:
        """URL the user is sent to in order to grant offline access."""
        params = {
            "client_id": self.dropbox_config.app_key,
            "redirect_uri": self.dropbox_config.redirect_uri,
            "response_type": "code",
            "token_access_type": "offline",  # Get refresh token
        }
        return f"{DROPBOX_AUTHORIZE_URL}?{urlencode(params)}"

    async def complete(self, code: str) -> str:
        """
        Exchange the authorization code and build the platform redirect.

        Args:
            code: Code Dropbox appended to the redirect URI

        Returns:
            URL of the platform's `connected` page carrying the encoded secrets

        Raises:
            AuthorizationRejected: If Dropbox refuses the code
            IncompleteGrant: If the response lacks a refresh token or account id
            OAuthError: If the account profile cannot be fetched
        """
        try:
            credential = await self.client.exchange_code(code)
        except RemoteError as e:
            raise AuthorizationRejected(
                f"Code exchange failed: {e.message}",
                user_message="Dropbox rejected the authorization",
            ) from e

        if not credential.refresh_secret:
            raise IncompleteGrant("refresh_token")
        if not credential.account_id:
            raise IncompleteGrant("account_id")

        try:
            profile = await self.client.get_account_profile(credential)
        except RemoteError as e:
            raise OAuthError(
                f"get_current_account failed: {e.message}",
                user_message="Could not read the Dropbox account",
            ) from e

        params = {
            "authorId": credential.account_id,
            "authorName": profile.label,
            "authorState": await self.codec.encode_async(credential.access_secret),
            "refreshState": await self.codec.encode_async(credential.refresh_secret),
        }
        logger.info(f"Authorized Dropbox account {credential.account_id}")
        return f"{self.platform_config.api_prefix.rstrip('/')}/api/connected?{urlencode(params)}"

    async def refresh_state(self, refresh_state: str) -> Dict[str, str]:
        """
        Mint a fresh access state from a refresh state.

        Args:
            refresh_state: Encoded refresh secret issued by `complete`

        Returns:
            Dict with `access_state` and `refresh_state`

        Raises:
            DecodeError: If the refresh state was not issued by this service
            OAuthError: If Dropbox refuses the refresh
        """
        refresh_secret = await self.codec.decode_async(refresh_state)
        try:
            credential = await self.client.refresh(refresh_secret)
        except RemoteError as e:
            raise OAuthError(
                f"Token refresh failed: {e.message}",
                user_message="Could not refresh the Dropbox token",
            ) from e

        if credential.refresh_secret and credential.refresh_secret != refresh_secret:
            refresh_state = await self.codec.encode_async(credential.refresh_secret)

        return {
            "access_state": await self.codec.encode_async(credential.access_secret),
            "refresh_state": refresh_state,
        }
