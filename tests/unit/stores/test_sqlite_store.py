"""
Durable Cache — SQLite Store Backend Tests

Tests the blocking and async SQLite stores, including sharing one database
file between them.
"""

from importlib.metadata import PackageNotFoundError, requires
from pathlib import Path

import pytest

from durable_cache.errors import StorageReadError, StorageWriteError
from durable_cache.stores import AsyncSqliteStore, SqliteStore


class TestSqliteStore:
    """Test suite for SqliteStore."""

    @pytest.fixture
    def store(self, tmp_path: Path):  # type: ignore[no-untyped-def]
        """Create a SQLite store in a per-test database, closed afterwards."""
        store = SqliteStore(db_path=tmp_path / "db" / "records.db", namespace="test")
        yield store
        store.close()

    def test_schema_created_lazily(self, store: SqliteStore) -> None:
        assert not store.db_path.exists()

        store.write("key", b"data")

        assert store.db_path.exists()

    def test_write_and_read(self, store: SqliteStore) -> None:
        store.write("key", b"\x00binary\xff")

        assert store.read("key") == b"\x00binary\xff"
        assert store.get_stats()["hits"] == 1

    def test_read_absent(self, store: SqliteStore) -> None:
        assert store.read("missing") is None
        assert store.get_stats()["misses"] == 1

    def test_empty_record_is_not_absent(self, store: SqliteStore) -> None:
        store.write("empty", b"")

        assert store.read("empty") == b""
        assert store.exists("empty") is True

    def test_overwrite(self, store: SqliteStore) -> None:
        store.write("key", b"one")
        store.write("key", b"two")

        assert store.read("key") == b"two"

    def test_delete(self, store: SqliteStore) -> None:
        store.write("key", b"data")

        assert store.delete("key") is True
        assert store.delete("key") is False
        assert store.read("key") is None
        assert store.get_stats()["deletes"] == 1

    def test_namespaces_share_table(self, tmp_path: Path) -> None:
        """Test namespaces in one database file are isolated."""
        db_path = tmp_path / "shared.db"
        first = SqliteStore(db_path=db_path, namespace="one")
        second = SqliteStore(db_path=db_path, namespace="two")
        try:
            first.write("key", b"1")
            second.write("key", b"2")

            assert first.read("key") == b"1"
            assert second.read("key") == b"2"
        finally:
            first.close()
            second.close()

    def test_survives_reopen(self, tmp_path: Path) -> None:
        db_path = tmp_path / "durable.db"
        with SqliteStore(db_path=db_path) as store:
            store.write("key", b"data")

        with SqliteStore(db_path=db_path) as reopened:
            assert reopened.read("key") == b"data"

    def test_unusable_path(self, tmp_path: Path) -> None:
        """Test a database path under a regular file raises storage errors."""
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        store = SqliteStore(db_path=blocker / "records.db")

        with pytest.raises(StorageReadError) as exc_info:
            store.read("key")
        assert exc_info.value.backend == "sqlite"

        with pytest.raises(StorageWriteError):
            store.write("key", b"data")


class TestAsyncSqliteStore:
    """Test suite for AsyncSqliteStore."""

    @pytest.fixture
    async def store(self, tmp_path: Path):  # type: ignore[no-untyped-def]
        """Create an async SQLite store, closed afterwards."""
        store = AsyncSqliteStore(db_path=tmp_path / "async.db", namespace="test")
        yield store
        await store.close()

    def test_async_driver_requirements_declared(self) -> None:
        """Test the package pulls in SQLAlchemy's asyncio extra (greenlet)."""
        try:
            declared = requires("durable-cache") or []
        except PackageNotFoundError:
            pytest.skip("durable-cache is not installed")

        assert any(req.replace(" ", "").lower().startswith("sqlalchemy[asyncio]") for req in declared)

    async def test_write_read_delete(self, store: AsyncSqliteStore) -> None:
        assert await store.read("key") is None

        await store.write("key", b"data")
        assert await store.read("key") == b"data"
        assert await store.exists("key") is True

        assert await store.delete("key") is True
        assert await store.delete("key") is False

        stats = await store.get_stats()
        assert stats["writes"] == 1
        assert stats["deletes"] == 1
        assert stats["misses"] == 1

    async def test_shares_file_with_blocking_store(self, tmp_path: Path) -> None:
        """Test async and blocking stores see each other's records."""
        db_path = tmp_path / "shared.db"
        blocking = SqliteStore(db_path=db_path, namespace="test")
        concurrent = AsyncSqliteStore(db_path=db_path, namespace="test")
        try:
            blocking.write("key", b"from-sync")
            assert await concurrent.read("key") == b"from-sync"

            await concurrent.write("key", b"from-async")
            assert blocking.read("key") == b"from-async"
        finally:
            blocking.close()
            await concurrent.close()

    async def test_unusable_path(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        store = AsyncSqliteStore(db_path=blocker / "records.db")
        try:
            with pytest.raises(StorageWriteError):
                await store.write("key", b"data")
        finally:
            await store.close()
