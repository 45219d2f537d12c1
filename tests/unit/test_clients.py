"""
Tests for the Dropbox and platform HTTP clients.
"""

import base64
import json

import httpx
import pytest

from dropbox_connector.config import DropboxConfig, PlatformConfig
from dropbox_connector.credentials import Credential
from dropbox_connector.downstream import DownstreamClient
from dropbox_connector.dropbox import DropboxClient, EntryKind
from dropbox_connector.exceptions import (
    DecodeError,
    RemoteRejection,
    TransportFailure,
)

CREDENTIAL = Credential(access_secret="AT", account_id="dbid:a")


def _dropbox(handler) -> DropboxClient:
    config = DropboxConfig(
        app_key="key", app_secret="secret", service_api_prefix="https://connector.test"
    )
    return DropboxClient(config, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _platform(handler, codec) -> DownstreamClient:
    config = PlatformConfig(api_prefix="https://platform.test/", auth_token="platform-token")
    return DownstreamClient(
        config,
        codec=codec,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestDropboxOAuth:
    """Token endpoint calls."""

    @pytest.mark.asyncio
    async def test_exchange_code(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["form"] = dict(httpx.QueryParams(request.content.decode()))
            return httpx.Response(200, json={
                "access_token": "AT", "refresh_token": "RT", "account_id": "dbid:a",
                "token_type": "bearer", "expires_in": 14400,
            })

        credential = await _dropbox(handler).exchange_code("the-code")

        assert seen["url"] == "https://api.dropbox.com/oauth2/token"
        assert seen["auth"] == "Basic " + base64.b64encode(b"key:secret").decode()
        assert seen["form"] == {
            "code": "the-code",
            "grant_type": "authorization_code",
            "redirect_uri": "https://connector.test/auth",
        }
        assert credential.access_secret == "AT"
        assert credential.refresh_secret == "RT"
        assert credential.account_id == "dbid:a"

    @pytest.mark.asyncio
    async def test_refresh_keeps_refresh_secret(self):
        def handler(request: httpx.Request) -> httpx.Response:
            form = dict(httpx.QueryParams(request.content.decode()))
            assert form == {"refresh_token": "RT", "grant_type": "refresh_token"}
            return httpx.Response(200, json={"access_token": "AT2", "expires_in": 14400})

        credential = await _dropbox(handler).refresh("RT")

        assert credential.access_secret == "AT2"
        assert credential.refresh_secret == "RT"

    @pytest.mark.asyncio
    async def test_rejected_code(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant"})

        with pytest.raises(RemoteRejection) as exc_info:
            await _dropbox(handler).exchange_code("bad")
        assert exc_info.value.status_code == 400
        assert "invalid_grant" in exc_info.value.body


class TestDropboxListing:
    """Account, list_folder and cursor calls."""

    @pytest.mark.asyncio
    async def test_account_profile(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/2/users/get_current_account"
            assert request.headers["Authorization"] == "Bearer AT"
            return httpx.Response(200, json={
                "account_id": "dbid:a",
                "email": "ada@example.com",
                "name": {"display_name": "Ada Lovelace", "given_name": "Ada"},
            })

        profile = await _dropbox(handler).get_account_profile(CREDENTIAL)

        assert profile.label == "Ada Lovelace (ada@example.com)"

    @pytest.mark.asyncio
    async def test_list_changes_page(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/2/files/list_folder/continue"
            assert json.loads(request.content) == {"cursor": "C0"}
            return httpx.Response(200, json={
                "entries": [
                    {".tag": "file", "name": "A.txt", "path_lower": "/a.txt", "id": "id:1"},
                    {".tag": "folder", "name": "Dir", "path_lower": "/dir"},
                    {".tag": "deleted", "name": "gone", "path_lower": "/gone"},
                ],
                "cursor": "C1",
                "has_more": True,
            })

        page = await _dropbox(handler).list_changes_page(CREDENTIAL, "C0")

        assert [(e.kind, e.path) for e in page.entries] == [
            (EntryKind.FILE, "/a.txt"),
            (EntryKind.FOLDER, "/dir"),
            (EntryKind.DELETED, "/gone"),
        ]
        assert page.entries[0].is_file
        assert page.cursor == "C1"
        assert page.has_more is True

    @pytest.mark.asyncio
    async def test_latest_cursor_covers_whole_namespace(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert request.url.path == "/2/files/list_folder/get_latest_cursor"
            assert body["path"] == ""
            assert body["recursive"] is True
            assert body["include_deleted"] is False
            return httpx.Response(200, json={"cursor": "LATEST"})

        assert await _dropbox(handler).get_latest_cursor(CREDENTIAL) == "LATEST"

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        with pytest.raises(RemoteRejection):
            await _dropbox(handler).get_latest_cursor(CREDENTIAL)

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportFailure):
            await _dropbox(handler).list_changes_page(CREDENTIAL, "C0")


class TestDropboxSharing:
    """Shared link creation."""

    @pytest.mark.asyncio
    async def test_create_public_link(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert request.url.path == "/2/sharing/create_shared_link_with_settings"
            assert body["path"] == "/a.txt"
            assert body["settings"]["audience"] == "public"
            return httpx.Response(200, json={".tag": "file", "url": "https://db.test/s/new"})

        assert await _dropbox(handler).create_public_link(CREDENTIAL, "/a.txt") == "https://db.test/s/new"

    @pytest.mark.asyncio
    async def test_existing_link_from_error_metadata(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={
                "error_summary": "shared_link_already_exists/metadata/..",
                "error": {
                    ".tag": "shared_link_already_exists",
                    "shared_link_already_exists": {
                        ".tag": "metadata",
                        "metadata": {"url": "https://db.test/s/existing"},
                    },
                },
            })

        assert await _dropbox(handler).create_public_link(CREDENTIAL, "/a.txt") == "https://db.test/s/existing"

    @pytest.mark.asyncio
    async def test_existing_link_listed_when_metadata_missing(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            if request.url.path.endswith("create_shared_link_with_settings"):
                return httpx.Response(409, json={
                    "error_summary": "shared_link_already_exists/..",
                    "error": {".tag": "shared_link_already_exists"},
                })
            assert json.loads(request.content) == {"path": "/a.txt", "direct_only": True}
            return httpx.Response(200, json={"links": [{"url": "https://db.test/s/listed"}]})

        url = await _dropbox(handler).create_public_link(CREDENTIAL, "/a.txt")

        assert url == "https://db.test/s/listed"
        assert calls[-1] == "/2/sharing/list_shared_links"

    @pytest.mark.asyncio
    async def test_other_conflict_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"error_summary": "path/not_found/"})

        with pytest.raises(RemoteRejection):
            await _dropbox(handler).create_public_link(CREDENTIAL, "/missing")


class TestDropboxUpload:
    """Content upload."""

    @pytest.mark.asyncio
    async def test_upload_file(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "https://content.dropboxapi.com/2/files/upload"
            assert json.loads(request.headers["Dropbox-API-Arg"]) == {
                "path": "/out.txt", "autorename": True,
            }
            assert request.headers["Content-Type"] == "application/octet-stream"
            assert request.content == b"hello"
            return httpx.Response(200, json={"path_display": "/out (1).txt"})

        metadata = await _dropbox(handler).upload_file(CREDENTIAL, "/out.txt", b"hello")

        assert metadata["path_display"] == "/out (1).txt"


class TestDownstreamClient:
    """Platform calls."""

    @pytest.mark.asyncio
    async def test_lookup_credential_decodes_state(self, codec):
        token = codec.encode("AT-from-platform")

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "https://platform.test/api/_funcs/_author_state"
            assert request.headers["Authorization"] == "platform-token"
            assert json.loads(request.content) == {"author": "dbid:a"}
            return httpx.Response(200, text=token)

        credential = await _platform(handler, codec).lookup_credential("dbid:a")

        assert credential.access_secret == "AT-from-platform"
        assert credential.account_id == "dbid:a"

    @pytest.mark.asyncio
    async def test_lookup_credential_with_foreign_state(self, codec):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="deadbeef")

        with pytest.raises(DecodeError):
            await _platform(handler, codec).lookup_credential("dbid:a")

    @pytest.mark.asyncio
    async def test_post_event(self, codec):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200)

        await _platform(handler, codec).post_event("dbid:a", "https://db.test/s/x", {"event": "file"})

        assert seen["url"] == "https://platform.test/api/_funcs/_post"
        assert seen["body"] == {
            "user": "dbid:a",
            "text": "https://db.test/s/x",
            "triggers": {"event": "file"},
        }

    @pytest.mark.asyncio
    async def test_post_event_rejected(self, codec):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance")

        with pytest.raises(RemoteRejection) as exc_info:
            await _platform(handler, codec).post_event("dbid:a", "x", {"event": "file"})
        assert exc_info.value.service == "platform"
