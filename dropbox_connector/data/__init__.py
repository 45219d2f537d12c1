"""
Data access layer for the Dropbox connector.

Persists one change cursor per registered Dropbox account.

Example Usage:
    ```python
    from dropbox_connector.data import initialize_repositories, get_cursor_repository

    initialize_repositories(backend="sqlite", db_path="data/connector.db")

    store = await get_cursor_repository()
    await store.insert_new(account_id, cursor)
    ```
"""

from .base import AccountRecord, CursorRepository, DatabaseConnection
from .sqlite import SQLiteConnection, SQLiteCursorRepository
from .repositories import (
    RepositoryFactory,
    initialize_repositories,
    get_repository_factory,
    get_cursor_repository,
)
from .migrations import MigrationRunner, run_migrations

__all__ = [
    "AccountRecord",
    "CursorRepository",
    "DatabaseConnection",
    "SQLiteConnection",
    "SQLiteCursorRepository",
    "RepositoryFactory",
    "initialize_repositories",
    "get_repository_factory",
    "get_cursor_repository",
    "MigrationRunner",
    "run_migrations",
]
