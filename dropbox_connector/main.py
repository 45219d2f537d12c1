"""
Main application entry point for the Dropbox connector.

This module wires the components together:
- Configuration loading and validation
- Credential codec (key derived in the background at startup)
- Cursor store
- Dropbox and platform clients
- Sync engine and OAuth handoff
- Webhook API server
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import httpx

from .config import ConfigValidator, ConnectorConfig, EnvironmentLoader
from .credentials import CredentialCodec, configure_codec
from .data import RepositoryFactory, initialize_repositories
from .data.base import CursorRepository
from .downstream import DownstreamClient
from .dropbox import DropboxClient
from .exceptions import ConfigurationError, handle_unexpected_error
from .oauth import DropboxOAuthFlow
from .sync import SyncEngine
from .webhook_service import WebhookServer


def setup_logging(log_file: Optional[str]) -> None:
    """Log to stdout and, when writable, to `log_file`."""
    log_handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            log_handlers.append(logging.FileHandler(str(log_path)))
        except (OSError, PermissionError):
            # File logging not available, use stdout only
            pass

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=log_handlers
    )


class ConnectorApp:
    """Main application class for the Dropbox connector."""

    def __init__(self, config: Optional[ConnectorConfig] = None):
        self.config = config
        self.codec: Optional[CredentialCodec] = None
        self.repositories: Optional[RepositoryFactory] = None
        self.store: Optional[CursorRepository] = None
        self.http: Optional[httpx.AsyncClient] = None
        self.dropbox_client: Optional[DropboxClient] = None
        self.downstream_client: Optional[DownstreamClient] = None
        self.sync_engine: Optional[SyncEngine] = None
        self.oauth_flow: Optional[DropboxOAuthFlow] = None
        self.webhook_server: Optional[WebhookServer] = None
        self._key_task: Optional[asyncio.Task] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    async def initialize(self) -> None:
        """Initialize all application components."""
        try:
            self.logger.info("Initializing Dropbox connector...")

            if self.config is None:
                self.config = EnvironmentLoader.load_config()

            errors = ConfigValidator.validate_config(self.config)
            if errors:
                raise ConfigurationError(
                    "Invalid configuration: " + "; ".join(errors),
                    context={"errors": len(errors)},
                )

            logging.getLogger().setLevel(self.config.log_level.value)
            self.logger.info("Configuration loaded successfully")

            self.codec = configure_codec(self.config.credential_config)
            # Key derivation is CPU-bound; keep the event loop free while it runs
            self._key_task = asyncio.create_task(asyncio.to_thread(self.codec.load_key))

            self.repositories = initialize_repositories(
                backend="sqlite",
                db_path=self.config.database_config.path,
                pool_size=self.config.database_config.pool_size,
            )
            self.store = await self.repositories.get_cursor_repository()

            self.http = httpx.AsyncClient(timeout=self.config.http_timeout)
            self.dropbox_client = DropboxClient(self.config.dropbox, http_client=self.http)
            self.downstream_client = DownstreamClient(
                self.config.platform, codec=self.codec, http_client=self.http
            )

            self.sync_engine = SyncEngine(
                store=self.store,
                dropbox=self.dropbox_client,
                downstream=self.downstream_client,
                config=self.config.sync_config,
                codec=self.codec,
            )
            self.oauth_flow = DropboxOAuthFlow(
                self.config.dropbox,
                self.config.platform,
                self.dropbox_client,
                codec=self.codec,
            )

            self.webhook_server = WebhookServer(
                config=self.config,
                oauth_flow=self.oauth_flow,
                sync_engine=self.sync_engine,
                dropbox_client=self.dropbox_client,
                codec=self.codec,
                store=self.store,
            )

            self.logger.info("All components initialized successfully")

        except Exception as e:
            error = handle_unexpected_error(e)
            self.logger.error(f"Failed to initialize application: {error.to_log_string()}")
            raise

    async def start(self) -> None:
        """Start the webhook server and block until it exits."""
        if not self.webhook_server:
            raise RuntimeError("Application not initialized. Call initialize() first.")

        self.running = True
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(self.stop()))

        if not self.config.webhook_config.enabled:
            self.logger.warning("Webhook server disabled (WEBHOOK_ENABLED=false); nothing to serve")
            return

        if self._key_task is not None:
            self.logger.info("Waiting for the credential key before accepting requests")
            await self._key_task

        await self.webhook_server.start_server()
        self.logger.info(
            f"Dropbox connector online at http://{self.config.webhook_config.host}:"
            f"{self.config.webhook_config.port}"
        )
        await self.webhook_server.wait_closed()

    async def stop(self) -> None:
        """Stop the application gracefully."""
        self.running = False
        self.logger.info("Initiating graceful shutdown...")

        if self.webhook_server and self.webhook_server.server is not None:
            await self.webhook_server.stop_server()

        if self._key_task and not self._key_task.done():
            await self._key_task

        if self.http:
            await self.http.aclose()
            self.http = None

        if self.repositories:
            await self.repositories.close()
            self.repositories = None

        self.logger.info("Dropbox connector stopped cleanly")


async def main():
    """Main entry point for the Dropbox connector."""
    config = EnvironmentLoader.load_config()
    setup_logging(config.log_file)

    app = ConnectorApp(config)
    try:
        await app.initialize()
        await app.start()
    except ConfigurationError as e:
        logging.error(e.to_log_string())
        sys.exit(2)
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await app.stop()
