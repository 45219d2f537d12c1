"""
Sync engine for Dropbox change notifications.
"""

from .engine import SyncEngine
from .locking import KeyedLock
from .models import AccountSyncResult, AccountSyncStatus, DeliveryReport, SyncEvent

__all__ = [
    "SyncEngine",
    "KeyedLock",
    "AccountSyncResult",
    "AccountSyncStatus",
    "DeliveryReport",
    "SyncEvent",
]
