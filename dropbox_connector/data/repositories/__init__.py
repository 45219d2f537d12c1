"""
Concrete repository implementations.

This module provides the repository factory used by the application.
"""

from typing import Optional
from ..base import CursorRepository
from ..sqlite import SQLiteConnection, SQLiteCursorRepository


class RepositoryFactory:
    """Factory for creating repository instances."""

    def __init__(self, backend: str = "sqlite", **config):
        """
        Initialize repository factory.

        Args:
            backend: Database backend to use (only 'sqlite' is supported)
            **config: Backend-specific configuration options
        """
        self.backend = backend
        self.config = config
        self._connection: Optional[SQLiteConnection] = None

    async def get_connection(self) -> SQLiteConnection:
        """Get or create database connection."""
        if self._connection is None:
            if self.backend == "sqlite":
                db_path = self.config.get("db_path", "data/connector.db")
                pool_size = self.config.get("pool_size", 5)
                self._connection = SQLiteConnection(db_path, pool_size)
                await self._connection.connect()
            else:
                raise ValueError(f"Unsupported backend: {self.backend}")

        return self._connection

    async def get_cursor_repository(self) -> CursorRepository:
        """Create and return a cursor repository instance."""
        connection = await self.get_connection()

        if self.backend == "sqlite":
            return SQLiteCursorRepository(connection)
        else:
            raise ValueError(f"Unsupported backend: {self.backend}")

    async def close(self) -> None:
        """Close database connections."""
        if self._connection:
            await self._connection.disconnect()
            self._connection = None


# Singleton instance for easy access
_default_factory: Optional[RepositoryFactory] = None


def initialize_repositories(backend: str = "sqlite", **config) -> RepositoryFactory:
    """
    Initialize the default repository factory.

    Args:
        backend: Database backend to use
        **config: Backend-specific configuration

    Returns:
        Initialized repository factory
    """
    global _default_factory
    _default_factory = RepositoryFactory(backend, **config)
    return _default_factory


def get_repository_factory() -> RepositoryFactory:
    """
    Get the default repository factory instance.

    Raises:
        RuntimeError: If repositories have not been initialized
    """
    if _default_factory is None:
        raise RuntimeError(
            "Repositories not initialized. Call initialize_repositories() first."
        )
    return _default_factory


async def get_cursor_repository() -> CursorRepository:
    """Get the default cursor repository instance."""
    factory = get_repository_factory()
    return await factory.get_cursor_repository()
