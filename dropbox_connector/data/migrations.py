"""
Schema migrations for the cursor store.

Migrations are applied in order and recorded in `schema_migrations`.
"""

import logging
from datetime import datetime
from typing import List, Tuple

import aiosqlite

logger = logging.getLogger(__name__)

MIGRATIONS: List[Tuple[int, str, str]] = [
    (
        1,
        "create accounts",
        """
        CREATE TABLE IF NOT EXISTS accounts (
            account_id TEXT PRIMARY KEY,
            cursor TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
    ),
]


class MigrationRunner:
    """Applies pending migrations on a single connection."""

    def __init__(self, connection: aiosqlite.Connection):
        self.connection = connection

    async def _ensure_table(self) -> None:
        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
            """
        )

    async def applied_versions(self) -> List[int]:
        await self._ensure_table()
        cursor = await self.connection.execute("SELECT version FROM schema_migrations")
        rows = await cursor.fetchall()
        return sorted(row[0] for row in rows)

    async def run(self) -> int:
        """
        Apply all pending migrations.

        Returns:
            Number of migrations applied
        """
        applied = set(await self.applied_versions())
        count = 0

        for version, name, sql in MIGRATIONS:
            if version in applied:
                continue
            await self.connection.execute(sql)
            await self.connection.execute(
                "INSERT INTO schema_migrations (version, name, applied_at) VALUES (?, ?, ?)",
                (version, name, datetime.utcnow().isoformat()),
            )
            logger.info(f"Applied migration {version}: {name}")
            count += 1

        await self.connection.commit()
        return count


async def run_migrations(connection: aiosqlite.Connection) -> int:
    """Apply pending migrations using an open connection."""
    return await MigrationRunner(connection).run()
