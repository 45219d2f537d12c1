"""
Data models for sync passes and webhook deliveries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AccountSyncStatus(str, Enum):
    """Outcome of one account's pass."""
    SYNCED = "synced"
    SKIPPED = "skipped"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncEvent:
    """A new file, as announced to the downstream platform."""
    account_id: str
    shared_link: str
    kind: str = "file"

    @property
    def triggers(self) -> Dict[str, str]:
        return {"event": self.kind}


@dataclass
class AccountSyncResult:
    """Result of processing one account within a delivery."""
    account_id: str
    status: AccountSyncStatus
    events_sent: int = 0
    entries_seen: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "account_id": self.account_id,
            "status": self.status.value,
            "events_sent": self.events_sent,
            "entries_seen": self.entries_seen,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class DeliveryReport:
    """Per-account results of one webhook delivery."""
    results: List[AccountSyncResult] = field(default_factory=list)

    @property
    def failed(self) -> List[AccountSyncResult]:
        return [r for r in self.results if r.status == AccountSyncStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def events_sent(self) -> int:
        return sum(r.events_sent for r in self.results)

    def get(self, account_id: str) -> Optional[AccountSyncResult]:
        for result in self.results:
            if result.account_id == account_id:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accounts": [r.to_dict() for r in self.results],
            "events_sent": self.events_sent,
            "failed": len(self.failed),
        }
