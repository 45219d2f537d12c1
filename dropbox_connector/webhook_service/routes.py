"""
HTTP routes of the connector.

OAuth handoff, capability discovery, uploads and the Dropbox webhook.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import ValidationError

from ..config.settings import ConnectorConfig
from ..credentials import Credential, CredentialCodec
from ..dropbox import DropboxClient
from ..oauth import DropboxOAuthFlow
from ..sync import SyncEngine
from .models import (
    ACTIONS,
    EVENTS,
    CapabilityList,
    EventsRequest,
    RefreshRequest,
    RefreshResponse,
    WebhookNotification,
)

logger = logging.getLogger(__name__)


def signature_is_valid(app_secret: str, body: bytes, signature: Optional[str]) -> bool:
    """Check an X-Dropbox-Signature header against the raw request body."""
    if not signature:
        return False
    expected = hmac.new(app_secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


def _upload_path(name: str) -> str:
    return name if name.startswith("/") else f"/{name}"


def create_connector_router(
    config: ConnectorConfig,
    oauth_flow: DropboxOAuthFlow,
    sync_engine: SyncEngine,
    dropbox_client: DropboxClient,
    codec: CredentialCodec,
) -> APIRouter:
    """
    Create the connector's router.

    Args:
        config: Connector configuration
        oauth_flow: OAuth handoff
        sync_engine: Engine handling webhook deliveries and registrations
        dropbox_client: Client used for uploads
        codec: Codec for `state` fields sent by the platform

    Returns:
        Configured APIRouter
    """
    router = APIRouter()

    # OAuth

    @router.get("/connect", tags=["OAuth"])
    async def connect():
        """Send the user to Dropbox to authorize the app."""
        return RedirectResponse(oauth_flow.begin(), status_code=302)

    @router.get("/auth", tags=["OAuth"])
    async def auth(code: str = Query(..., description="Authorization code")):
        """Complete the authorization and hand the secrets to the platform."""
        location = await oauth_flow.complete(code)
        return RedirectResponse(location, status_code=302)

    @router.post("/refresh", response_model=RefreshResponse, tags=["OAuth"])
    async def refresh(request: RefreshRequest):
        """Exchange a refresh state for a new access state."""
        return await oauth_flow.refresh_state(request.refresh_state)

    # Platform capabilities

    @router.post("/actions", response_model=CapabilityList, tags=["Capabilities"])
    async def actions():
        return ACTIONS

    @router.post("/events", response_model=CapabilityList, tags=["Capabilities"])
    async def events(request: EventsRequest):
        """Subscribe an account to file events and list the events offered."""
        await sync_engine.register_account(request.user, request.state)
        return EVENTS

    # Upload

    @router.put("/post", tags=["Actions"])
    async def upload(
        request: Request,
        file: Optional[UploadFile] = File(None),
        text: Optional[str] = Form(None),
        state: Optional[str] = Form(None),
    ):
        """Upload the flow's output to the connected Dropbox."""
        limit = config.webhook_config.max_upload_bytes
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise HTTPException(status_code=413, detail="Upload too large")

        content = await file.read() if file is not None else b""
        if not content:
            raise HTTPException(status_code=400, detail="Invalid file")
        if len(content) > limit:
            raise HTTPException(status_code=413, detail="Upload too large")
        if not text:
            raise HTTPException(status_code=400, detail="Missing file name")
        if not state:
            raise HTTPException(status_code=400, detail="Missing access_token")

        credential = Credential(access_secret=await codec.decode_async(state))
        metadata = await dropbox_client.upload_file(credential, _upload_path(text), content)
        return {"path": metadata.get("path_display", _upload_path(text))}

    # Dropbox webhook

    @router.get("/webhook", tags=["Webhook"])
    async def webhook_challenge(challenge: str = Query(...)):
        """Answer Dropbox's endpoint verification."""
        return PlainTextResponse(
            challenge,
            headers={"X-Content-Type-Options": "nosniff"},
        )

    @router.post("/webhook", tags=["Webhook"])
    async def webhook_notification(
        request: Request,
        x_dropbox_signature: Optional[str] = Header(None, alias="X-Dropbox-Signature"),
    ):
        """Run a sync pass for every account in the delivery."""
        body = await request.body()

        if config.dropbox.verify_webhook_signature and not signature_is_valid(
            config.dropbox.app_secret, body, x_dropbox_signature
        ):
            logger.warning("Rejected webhook delivery with a bad signature")
            raise HTTPException(status_code=403, detail="Invalid signature")

        try:
            notification = WebhookNotification.model_validate_json(body)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail="Malformed notification") from e

        report = await sync_engine.process_notification(notification.list_folder.accounts)
        return JSONResponse(
            status_code=200 if report.ok else 500,
            content=report.to_dict(),
        )

    return router
