"""
Tests for the SQLite cursor store.
"""

import dataclasses
import tempfile
from pathlib import Path

import pytest

from dropbox_connector.data import (
    AccountRecord,
    RepositoryFactory,
    SQLiteConnection,
    SQLiteCursorRepository,
    initialize_repositories,
    get_cursor_repository,
)


async def _open_store(tmpdir: str) -> SQLiteCursorRepository:
    connection = SQLiteConnection(str(Path(tmpdir) / "cursors.db"), pool_size=2)
    await connection.connect()
    return SQLiteCursorRepository(connection)


class TestSQLiteCursorRepository:
    """Tests for SQLiteCursorRepository."""

    @pytest.mark.asyncio
    async def test_find_missing_account(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = await _open_store(tmpdir)
            try:
                assert await store.find("dbid:missing") is None
            finally:
                await store.connection.disconnect()

    @pytest.mark.asyncio
    async def test_insert_new_only_once(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = await _open_store(tmpdir)
            try:
                assert await store.insert_new("dbid:a", "C0") is True
                assert await store.insert_new("dbid:a", "C9") is False

                record = await store.find("dbid:a")
                assert record.cursor == "C0"
                assert await store.count() == 1
            finally:
                await store.connection.disconnect()

    @pytest.mark.asyncio
    async def test_upsert_creates_and_replaces(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = await _open_store(tmpdir)
            try:
                await store.upsert("dbid:a", "C0")
                await store.upsert("dbid:a", "C1")

                record = await store.find("dbid:a")
                assert record.cursor == "C1"
                assert record.updated_at >= record.created_at
                assert await store.count() == 1
            finally:
                await store.connection.disconnect()

    @pytest.mark.asyncio
    async def test_compare_and_set(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = await _open_store(tmpdir)
            try:
                await store.insert_new("dbid:a", "C0")

                assert await store.compare_and_set("dbid:a", "C0", "C1") is True
                # Stale expectation loses
                assert await store.compare_and_set("dbid:a", "C0", "C2") is False
                assert (await store.find("dbid:a")).cursor == "C1"
            finally:
                await store.connection.disconnect()

    @pytest.mark.asyncio
    async def test_compare_and_set_unknown_account(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = await _open_store(tmpdir)
            try:
                assert await store.compare_and_set("dbid:nobody", "C0", "C1") is False
                assert await store.find("dbid:nobody") is None
            finally:
                await store.connection.disconnect()

    @pytest.mark.asyncio
    async def test_delete(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = await _open_store(tmpdir)
            try:
                await store.insert_new("dbid:a", "C0")
                assert await store.delete("dbid:a") is True
                assert await store.delete("dbid:a") is False
                assert await store.count() == 0
            finally:
                await store.connection.disconnect()

    @pytest.mark.asyncio
    async def test_cursor_survives_reopen(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = await _open_store(tmpdir)
            await store.insert_new("dbid:a", "C3")
            await store.connection.disconnect()

            reopened = await _open_store(tmpdir)
            try:
                assert (await reopened.find("dbid:a")).cursor == "C3"
            finally:
                await reopened.connection.disconnect()


class TestAccountRecord:
    """Tests for the AccountRecord model."""

    def test_has_no_secret_fields(self):
        names = {f.name for f in dataclasses.fields(AccountRecord)}
        assert names == {"account_id", "cursor", "created_at", "updated_at"}

    def test_dict_round_trip(self):
        record = AccountRecord(account_id="dbid:a", cursor="C0")
        assert AccountRecord.from_dict(record.to_dict()) == record


class TestRepositoryFactory:
    """Tests for the repository factory."""

    @pytest.mark.asyncio
    async def test_default_factory_provides_cursor_repository(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            factory = initialize_repositories(
                backend="sqlite", db_path=str(Path(tmpdir) / "f.db"), pool_size=1
            )
            try:
                store = await get_cursor_repository()
                assert isinstance(store, SQLiteCursorRepository)
                await store.insert_new("dbid:a", "C0")
                assert await store.count() == 1
            finally:
                await factory.close()

    @pytest.mark.asyncio
    async def test_unsupported_backend(self):
        factory = RepositoryFactory(backend="postgresql")
        with pytest.raises(ValueError):
            await factory.get_cursor_repository()
