"""
In-memory credential value.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Credential:
    """OAuth credential pair for one Dropbox account.

    Lives only for the duration of a request. Nothing in the data layer
    accepts this type; it is encoded before it leaves the process.
    """
    access_secret: str = field(repr=False)
    refresh_secret: Optional[str] = field(default=None, repr=False)
    account_id: Optional[str] = None

    def __repr__(self) -> str:
        refresh = "***" if self.refresh_secret else None
        return f"Credential(access_secret=***, refresh_secret={refresh}, account_id={self.account_id!r})"
