"""
Abstract repository interfaces for the data access layer.

The only persisted state of the connector is the per-account change cursor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class AccountRecord:
    """Position of one Dropbox account in its change stream.

    Deliberately has no credential fields: secrets are never stored here.
    """
    account_id: str
    cursor: str
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "cursor": self.cursor,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountRecord":
        return cls(
            account_id=data["account_id"],
            cursor=data["cursor"],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


class DatabaseConnection(ABC):
    """Abstract database connection interface."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    async def execute(self, query: str, params: Optional[tuple] = None) -> Any:
        """
        Execute a database query.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            Query result
        """
        pass

    @abstractmethod
    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        """
        Fetch a single row from the database.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            Single row as dictionary, or None if not found
        """
        pass

    @abstractmethod
    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """
        Fetch all rows from the database.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            List of rows as dictionaries
        """
        pass


class CursorRepository(ABC):
    """Abstract repository for per-account change cursors."""

    @abstractmethod
    async def find(self, account_id: str) -> Optional[AccountRecord]:
        """
        Look up an account.

        Args:
            account_id: Dropbox account identifier

        Returns:
            The record if the account is registered, None otherwise
        """
        pass

    @abstractmethod
    async def upsert(self, account_id: str, cursor: str) -> None:
        """
        Store a cursor, creating the record if needed.

        Args:
            account_id: Dropbox account identifier
            cursor: New cursor value
        """
        pass

    @abstractmethod
    async def insert_new(self, account_id: str, cursor: str) -> bool:
        """
        Create a record for a newly registered account.

        Args:
            account_id: Dropbox account identifier
            cursor: Starting cursor

        Returns:
            True if created, False if the account already existed
        """
        pass

    @abstractmethod
    async def compare_and_set(self, account_id: str, expected: str, cursor: str) -> bool:
        """
        Replace the cursor only if it still equals `expected`.

        Args:
            account_id: Dropbox account identifier
            expected: Cursor the caller read
            cursor: New cursor value

        Returns:
            True if replaced, False if the record changed or does not exist
        """
        pass

    @abstractmethod
    async def delete(self, account_id: str) -> bool:
        """
        Remove an account.

        Returns:
            True if a record was deleted
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of registered accounts."""
        pass
