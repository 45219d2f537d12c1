"""
Dropbox HTTP API client.

Thin request/response wrappers around the OAuth, account, list_folder,
sharing and upload endpoints used by the connector.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config.constants import DROPBOX_API_URL, DROPBOX_CONTENT_URL, DROPBOX_TOKEN_URL
from ..config.settings import DropboxConfig
from ..credentials import Credential
from ..exceptions import RemoteRejection
from ..http_client import RemoteHttpClient
from .models import (
    AccountProfile,
    AccountResponse,
    ChangeEntry,
    ChangesPage,
    CursorResponse,
    ListFolderResponse,
    SharedLinkResponse,
    TokenResponse,
)

logger = logging.getLogger(__name__)


class DropboxClient(RemoteHttpClient):
    """
    Client for the Dropbox HTTP API.

    Each method performs exactly one request (link creation may perform a
    second one to look up an already existing link).
    """

    service_name = "dropbox"

    LATEST_CURSOR_OPTIONS = {
        "path": "",
        "recursive": True,
        "include_deleted": False,
        "include_has_explicit_shared_members": True,
        "include_mounted_folders": True,
        "include_non_downloadable_files": False,
    }
    SHARED_LINK_SETTINGS = {
        "access": "viewer",
        "allow_download": True,
        "audience": "public",
    }

    def __init__(
        self,
        config: DropboxConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        super().__init__(http_client=http_client, timeout=timeout)
        self.config = config

    # OAuth

    async def exchange_code(self, code: str) -> Credential:
        """
        Exchange an authorization code for a credential.

        Args:
            code: Code from the OAuth redirect

        Returns:
            Credential with access and refresh secrets
        """
        return await self._request_token(code=code)

    async def refresh(self, refresh_secret: str) -> Credential:
        """
        Obtain a new access secret from a refresh secret.

        The refresh secret is kept unless Dropbox returns a new one.
        """
        return await self._request_token(refresh_secret=refresh_secret)

    async def _request_token(
        self,
        code: Optional[str] = None,
        refresh_secret: Optional[str] = None,
    ) -> Credential:
        """Call the token endpoint; the grant type follows the secret supplied."""
        if code is not None:
            form = {
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.config.redirect_uri,
            }
        elif refresh_secret is not None:
            form = {
                "refresh_token": refresh_secret,
                "grant_type": "refresh_token",
            }
        else:
            raise ValueError("Either an authorization code or a refresh secret is required")

        response = await self.send(
            "POST",
            DROPBOX_TOKEN_URL,
            data=form,
            auth=(self.config.app_key, self.config.app_secret),
        )
        token = self.parse(response, TokenResponse)

        return Credential(
            access_secret=token.access_token,
            refresh_secret=token.refresh_token or refresh_secret,
            account_id=token.account_id,
        )

    # Account

    async def get_account_profile(self, credential: Credential) -> AccountProfile:
        """Fetch the email and display name of the credential's account."""
        response = await self._rpc("users/get_current_account", credential)
        account = self.parse(response, AccountResponse)
        return AccountProfile(
            account_id=account.account_id,
            email=account.email,
            display_name=account.name.display_name,
        )

    # Listing

    async def list_changes_page(self, credential: Credential, cursor: str) -> ChangesPage:
        """
        Fetch one page of changes after `cursor`.

        Callers must keep calling with the returned cursor while `has_more`
        is true and must keep the last cursor as the new position.
        """
        response = await self._rpc(
            "files/list_folder/continue", credential, {"cursor": cursor}
        )
        result = self.parse(response, ListFolderResponse)
        return ChangesPage(
            entries=[ChangeEntry(kind=e.tag, path=e.path_lower) for e in result.entries],
            cursor=result.cursor,
            has_more=result.has_more,
        )

    async def get_latest_cursor(self, credential: Credential) -> str:
        """Cursor for the current state of the whole Dropbox, without history."""
        response = await self._rpc(
            "files/list_folder/get_latest_cursor", credential, self.LATEST_CURSOR_OPTIONS
        )
        return self.parse(response, CursorResponse).cursor

    # Sharing

    async def create_public_link(self, credential: Credential, path: str) -> str:
        """
        Create a public shared link for a file.

        If the file already has a link, that link is returned instead.
        """
        try:
            response = await self._rpc(
                "sharing/create_shared_link_with_settings",
                credential,
                {"path": path, "settings": self.SHARED_LINK_SETTINGS},
            )
        except RemoteRejection as e:
            if e.status_code != 409 or "shared_link_already_exists" not in e.body:
                raise
            logger.debug(f"Shared link already exists for {path}")
            return await self._existing_link(credential, path, e.body)

        return self.parse(response, SharedLinkResponse).url

    async def _existing_link(self, credential: Credential, path: str, error_body: str) -> str:
        try:
            error = json.loads(error_body).get("error", {})
            url = error["shared_link_already_exists"]["metadata"]["url"]
            if url:
                return url
        except (ValueError, KeyError, TypeError, AttributeError):
            pass

        response = await self._rpc(
            "sharing/list_shared_links", credential, {"path": path, "direct_only": True}
        )
        links: List[Dict[str, Any]] = response.json().get("links", [])
        if not links:
            raise RemoteRejection(
                f"No shared link found for {path}",
                service=self.service_name,
                status_code=409,
                body=error_body,
            )
        return links[0]["url"]

    # Upload

    async def upload_file(self, credential: Credential, path: str, content: bytes) -> Dict[str, Any]:
        """
        Upload bytes to `path`, renaming on conflict.

        Returns:
            File metadata returned by Dropbox
        """
        response = await self.send(
            "POST",
            f"{DROPBOX_CONTENT_URL}/files/upload",
            headers={
                "Authorization": f"Bearer {credential.access_secret}",
                "Content-Type": "application/octet-stream",
                "Dropbox-API-Arg": json.dumps({"path": path, "autorename": True}),
            },
            content=content,
        )
        logger.info(f"Uploaded {len(content)} bytes to Dropbox")
        return response.json()

    async def _rpc(
        self,
        endpoint: str,
        credential: Credential,
        payload: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """POST to an RPC endpoint with bearer authentication."""
        return await self.send(
            "POST",
            f"{DROPBOX_API_URL}/{endpoint}",
            headers={"Authorization": f"Bearer {credential.access_secret}"},
            json=payload,
        )
