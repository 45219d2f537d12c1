"""
Change-notification processing.

A webhook delivery names the accounts with new changes. For each of them the
engine drains the change stream from the stored cursor, advances the cursor
and posts one downstream event per new file.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

from ..config.settings import DeliveryPolicy, SyncConfig
from ..credentials import Credential, CredentialCodec, get_codec
from ..data.base import CursorRepository
from ..downstream import DownstreamClient
from ..dropbox import ChangeEntry, DropboxClient
from ..exceptions import ConnectorError, CredentialError, RemoteError, handle_unexpected_error
from .locking import KeyedLock
from .models import AccountSyncResult, AccountSyncStatus, DeliveryReport, SyncEvent

logger = logging.getLogger(__name__)


def _short(cursor: str) -> str:
    return cursor if len(cursor) <= 12 else f"{cursor[:12]}..."


def _failure_code(error: Exception) -> str:
    """Coarse error code for delivery reports; details stay in the logs."""
    if isinstance(error, CredentialError):
        return "INVALID_STATE"
    if isinstance(error, RemoteError):
        return "REMOTE_ERROR"
    return "INTERNAL_ERROR"


class SyncEngine:
    """Runs sync passes for the accounts named in webhook deliveries."""

    def __init__(
        self,
        store: CursorRepository,
        dropbox: DropboxClient,
        downstream: DownstreamClient,
        config: Optional[SyncConfig] = None,
        codec: Optional[CredentialCodec] = None,
    ):
        self.store = store
        self.dropbox = dropbox
        self.downstream = downstream
        self.config = config or SyncConfig()
        self.codec = codec or get_codec()
        self.locks = KeyedLock()

    async def process_notification(self, account_ids: Iterable[str]) -> DeliveryReport:
        """
        Process one webhook delivery.

        Accounts are deduplicated and processed concurrently. A failure in
        one account does not stop the others.

        Args:
            account_ids: Account ids from the delivery's list_folder.accounts

        Returns:
            Report with one result per distinct account
        """
        unique = list(dict.fromkeys(account_ids))
        semaphore = asyncio.Semaphore(self.config.max_concurrent_accounts)

        async def run(account_id: str) -> AccountSyncResult:
            async with semaphore:
                return await self._sync_isolated(account_id)

        results = await asyncio.gather(*(run(a) for a in unique))
        report = DeliveryReport(results=list(results))

        logger.info(
            f"Processed delivery for {len(unique)} account(s): "
            f"{report.events_sent} event(s) sent, {len(report.failed)} failed"
        )
        return report

    async def _sync_isolated(self, account_id: str) -> AccountSyncResult:
        try:
            return await self.sync_account(account_id)
        except ConnectorError as e:
            logger.error(f"Sync failed for {account_id}: {e.to_log_string()}")
            return AccountSyncResult(account_id, AccountSyncStatus.FAILED, error=_failure_code(e))
        except Exception as e:
            error = handle_unexpected_error(e)
            logger.exception(f"Unexpected error syncing {account_id}: {error.to_log_string()}")
            return AccountSyncResult(account_id, AccountSyncStatus.FAILED, error=_failure_code(e))

    async def sync_account(self, account_id: str) -> AccountSyncResult:
        """
        Run one pass for a single account under its lock.

        Raises:
            RemoteError: If Dropbox or the platform call fails
            DecodeError: If the stored credential cannot be decoded
        """
        async with self.locks.hold(account_id):
            record = await self.store.find(account_id)
            if record is None:
                logger.info(f"Ignoring change notification for unregistered account {account_id}")
                return AccountSyncResult(account_id, AccountSyncStatus.SKIPPED)

            credential = await self.downstream.lookup_credential(account_id)
            entries, cursor = await self.drain_changes(credential, record.cursor)
            files = [entry for entry in entries if entry.is_file]

            if self.config.delivery_policy == DeliveryPolicy.EVENTS_FIRST:
                sent = await self._emit(account_id, credential, files)
                if not await self._commit(account_id, record.cursor, cursor):
                    return AccountSyncResult(
                        account_id, AccountSyncStatus.CONFLICT, sent, len(entries)
                    )
            else:
                if not await self._commit(account_id, record.cursor, cursor):
                    return AccountSyncResult(
                        account_id, AccountSyncStatus.CONFLICT, 0, len(entries)
                    )
                sent = await self._emit(account_id, credential, files)

            return AccountSyncResult(account_id, AccountSyncStatus.SYNCED, sent, len(entries))

    async def drain_changes(
        self, credential: Credential, cursor: str
    ) -> Tuple[List[ChangeEntry], str]:
        """
        Fetch pages from `cursor` until Dropbox reports no more.

        Returns:
            All entries in page order and the cursor of the last page
        """
        entries: List[ChangeEntry] = []
        pages = 0
        while True:
            page = await self.dropbox.list_changes_page(credential, cursor)
            entries.extend(page.entries)
            cursor = page.cursor
            pages += 1
            if not page.has_more:
                break

        logger.debug(f"Drained {len(entries)} entries over {pages} page(s), now at {_short(cursor)}")
        return entries, cursor

    async def _commit(self, account_id: str, expected: str, cursor: str) -> bool:
        if await self.store.compare_and_set(account_id, expected, cursor):
            return True
        logger.warning(
            f"Cursor for {account_id} moved past {_short(expected)} during the pass; "
            "leaving it to the other writer"
        )
        return False

    async def _emit(self, account_id: str, credential: Credential, files: List[ChangeEntry]) -> int:
        sent = 0
        for entry in files:
            link = await self.dropbox.create_public_link(credential, entry.path)
            event = SyncEvent(account_id=account_id, shared_link=link)
            await self.downstream.post_event(event.account_id, event.shared_link, event.triggers)
            sent += 1
        return sent

    async def register_account(self, account_id: str, state: str) -> bool:
        """
        Start tracking an account from its current position.

        Args:
            account_id: Dropbox account identifier
            state: Encoded access token issued at the end of the OAuth flow

        Returns:
            True if a new record was created, False if an existing one was reset

        Raises:
            DecodeError: If the state was not issued by this service
            RemoteError: If the latest cursor cannot be fetched
        """
        access_secret = await self.codec.decode_async(state)
        credential = Credential(access_secret=access_secret, account_id=account_id)
        cursor = await self.dropbox.get_latest_cursor(credential)

        async with self.locks.hold(account_id):
            created = await self.store.insert_new(account_id, cursor)
            if not created:
                await self.store.upsert(account_id, cursor)

        logger.info(
            f"{'Registered' if created else 'Re-registered'} account {account_id} "
            f"at {_short(cursor)}"
        )
        return created
