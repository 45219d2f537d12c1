"""
SQLite implementation of data repositories using aiosqlite.

This module provides a small connection pool and the cursor repository.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from .base import AccountRecord, CursorRepository, DatabaseConnection
from .migrations import run_migrations

logger = logging.getLogger(__name__)


class SQLiteConnection(DatabaseConnection):
    """SQLite database connection with connection pooling."""

    def __init__(self, db_path: str, pool_size: int = 5):
        self.db_path = db_path
        self.pool_size = pool_size
        self._connections: List[aiosqlite.Connection] = []
        self._available: asyncio.Queue = asyncio.Queue(maxsize=pool_size)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def connect(self) -> None:
        """Establish database connection pool."""
        async with self._lock:
            if self._initialized:
                return

            # Ensure database directory exists
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await aiosqlite.connect(self.db_path)
                conn.row_factory = aiosqlite.Row
                # Enable WAL mode for better concurrency
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA busy_timeout=5000")
                self._connections.append(conn)
                await self._available.put(conn)

            await run_migrations(self._connections[0])
            self._initialized = True
            logger.info(f"Opened cursor store at {self.db_path} (pool={self.pool_size})")

    async def disconnect(self) -> None:
        """Close all database connections."""
        async with self._lock:
            if not self._initialized:
                return

            for conn in self._connections:
                await conn.close()

            self._connections.clear()
            self._available = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False

    @asynccontextmanager
    async def _get_connection(self):
        """Get a connection from the pool."""
        if not self._initialized:
            await self.connect()

        conn = await self._available.get()
        try:
            yield conn
        finally:
            await self._available.put(conn)

    async def execute(self, query: str, params: Optional[tuple] = None) -> int:
        """Execute a write query and return the number of affected rows."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            await conn.commit()
            return cursor.rowcount

    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        """Fetch a single row from the database."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            row = await cursor.fetchone()
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Fetch all rows from the database."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]


class SQLiteCursorRepository(CursorRepository):
    """SQLite implementation of the cursor repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def find(self, account_id: str) -> Optional[AccountRecord]:
        row = await self.connection.fetch_one(
            "SELECT account_id, cursor, created_at, updated_at FROM accounts WHERE account_id = ?",
            (account_id,),
        )
        return AccountRecord.from_dict(row) if row else None

    async def upsert(self, account_id: str, cursor: str) -> None:
        now = datetime.utcnow().isoformat()
        await self.connection.execute(
            """
            INSERT INTO accounts (account_id, cursor, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(account_id) DO UPDATE SET
                cursor = excluded.cursor,
                updated_at = excluded.updated_at
            """,
            (account_id, cursor, now, now),
        )

    async def insert_new(self, account_id: str, cursor: str) -> bool:
        now = datetime.utcnow().isoformat()
        inserted = await self.connection.execute(
            """
            INSERT OR IGNORE INTO accounts (account_id, cursor, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (account_id, cursor, now, now),
        )
        return inserted == 1

    async def compare_and_set(self, account_id: str, expected: str, cursor: str) -> bool:
        updated = await self.connection.execute(
            "UPDATE accounts SET cursor = ?, updated_at = ? WHERE account_id = ? AND cursor = ?",
            (cursor, datetime.utcnow().isoformat(), account_id, expected),
        )
        return updated == 1

    async def delete(self, account_id: str) -> bool:
        deleted = await self.connection.execute(
            "DELETE FROM accounts WHERE account_id = ?", (account_id,)
        )
        return deleted == 1

    async def count(self) -> int:
        row = await self.connection.fetch_one("SELECT COUNT(*) AS total FROM accounts")
        return row["total"] if row else 0
