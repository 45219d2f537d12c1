"""
FastAPI server for the Dropbox connector.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from ..config.settings import ConnectorConfig
from ..credentials import CredentialCodec
from ..data.base import CursorRepository
from ..dropbox import DropboxClient
from ..exceptions import (
    AuthorizationRejected,
    ConnectorError,
    CredentialError,
    OAuthError,
    RemoteError,
)
from ..oauth import DropboxOAuthFlow
from ..sync import SyncEngine
from .routes import create_connector_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


class WebhookServer:
    """FastAPI server for the connector endpoints."""

    def __init__(self,
                 config: ConnectorConfig,
                 oauth_flow: DropboxOAuthFlow,
                 sync_engine: SyncEngine,
                 dropbox_client: DropboxClient,
                 codec: CredentialCodec,
                 store: CursorRepository):
        """Initialize webhook server.

        Args:
            config: Connector configuration
            oauth_flow: OAuth handoff
            sync_engine: Sync engine for webhook deliveries
            dropbox_client: Dropbox client used by the upload route
            codec: Credential codec
            store: Cursor store, reported on by the health check
        """
        self.config = config
        self.oauth_flow = oauth_flow
        self.sync_engine = sync_engine
        self.dropbox_client = dropbox_client
        self.codec = codec
        self.store = store
        self.server: Optional[uvicorn.Server] = None
        self._server_task: Optional[asyncio.Task] = None

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            logger.info("Webhook server starting up")
            yield
            logger.info("Webhook server shutting down")

        self.app = FastAPI(
            title="Dropbox Connector API",
            description="OAuth handoff and change notifications between Dropbox and the automation platform",
            version=VERSION,
            docs_url="/docs",
            openapi_url="/openapi.json",
            lifespan=lifespan
        )

        self._setup_routes()
        self._setup_error_handlers()

    def _setup_routes(self) -> None:
        """Configure API routes."""

        @self.app.get("/health", tags=["Health"])
        async def health_check():
            """Check API health status."""
            try:
                accounts = await self.store.count()
                return {
                    "status": "healthy",
                    "version": VERSION,
                    "server_time": datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ"),
                    "accounts": accounts,
                    "credential_key_loaded": self.codec.is_loaded,
                }
            except Exception as e:
                logger.error(f"Health check failed: {e}")
                # Still 200 so load balancers can tell degraded from down
                return JSONResponse(
                    status_code=200,
                    content={
                        "status": "degraded",
                        "version": VERSION,
                        "server_time": datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ"),
                        "error": str(e),
                    }
                )

        router = create_connector_router(
            config=self.config,
            oauth_flow=self.oauth_flow,
            sync_engine=self.sync_engine,
            dropbox_client=self.dropbox_client,
            codec=self.codec,
        )
        self.app.include_router(router)

    def _setup_error_handlers(self) -> None:
        """Configure global error handlers."""

        @self.app.exception_handler(CredentialError)
        async def credential_error_handler(request: Request, exc: CredentialError):
            """Every encode/decode failure looks the same to the caller."""
            logger.warning(f"Rejected state on {request.url.path}: {type(exc).__name__}")
            return JSONResponse(
                status_code=400,
                content={"error": "INVALID_STATE", "message": "Invalid state"},
            )

        @self.app.exception_handler(AuthorizationRejected)
        async def authorization_rejected_handler(request: Request, exc: AuthorizationRejected):
            logger.warning(exc.to_log_string())
            return JSONResponse(status_code=401, content=exc.to_dict())

        @self.app.exception_handler(OAuthError)
        async def oauth_error_handler(request: Request, exc: OAuthError):
            logger.error(exc.to_log_string())
            return JSONResponse(status_code=500, content=exc.to_dict())

        @self.app.exception_handler(RemoteError)
        async def remote_error_handler(request: Request, exc: RemoteError):
            logger.error(f"Remote call failed on {request.url.path}: {exc.to_log_string()}")
            return JSONResponse(status_code=502, content=exc.to_dict())

        @self.app.exception_handler(ConnectorError)
        async def connector_error_handler(request: Request, exc: ConnectorError):
            logger.error(exc.to_log_string())
            return JSONResponse(status_code=500, content=exc.to_dict())

        @self.app.exception_handler(Exception)
        async def general_error_handler(request: Request, exc: Exception):
            """Handle unexpected errors."""
            logger.error(f"Unhandled error in webhook endpoint: {exc}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred",
                }
            )

    async def start_server(self) -> None:
        """Start the webhook server.

        Starts the server in the background without blocking.
        """
        if self._server_task is not None:
            logger.warning("Webhook server already running")
            return

        host = self.config.webhook_config.host
        port = self.config.webhook_config.port

        logger.info(f"Starting webhook server on {host}:{port}")

        server_config = uvicorn.Config(
            app=self.app,
            host=host,
            port=port,
            log_level="info",
            access_log=True,
            loop="asyncio"
        )

        self.server = uvicorn.Server(server_config)
        self._server_task = asyncio.create_task(self.server.serve())

        logger.info(f"Webhook server started on http://{host}:{port}")

    async def wait_closed(self) -> None:
        """Block until the server task finishes."""
        if self._server_task is not None:
            await self._server_task

    async def stop_server(self) -> None:
        """Stop the webhook server gracefully."""
        if self.server is None:
            logger.warning("Webhook server not running")
            return

        logger.info("Stopping webhook server...")
        self.server.should_exit = True

        if self._server_task:
            try:
                await asyncio.wait_for(self._server_task, timeout=10.0)
            except asyncio.TimeoutError:
                logger.warning("Server shutdown timed out, cancelling task")
                self._server_task.cancel()
                try:
                    await self._server_task
                except asyncio.CancelledError:
                    pass

        self.server = None
        self._server_task = None

        logger.info("Webhook server stopped")

    def get_app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self.app
