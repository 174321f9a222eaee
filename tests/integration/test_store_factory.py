"""
Durable Cache — Store Factory Integration Tests

Tests configuration-driven store construction, the named registry and
lifecycle management.
"""

from pathlib import Path

import pytest

from durable_cache.config import StoreBackend, StoreConfig
from durable_cache.errors import ConfigurationError
from durable_cache.stores import (
    AsyncPersistentStore,
    AsyncSqliteStore,
    FileStore,
    MemoryStore,
    PersistentStore,
    SqliteStore,
    SyncStoreAdapter,
    close_all_stores,
    create_async_store,
    create_store,
    get_async_store,
    get_store,
    list_store_instances,
    reset_store_factory,
)


class TestStoreFactory:
    """Test suite for store factory functionality."""

    def test_create_default_store(self, isolated_environment: Path) -> None:
        """Test the default configuration builds a file store in DURABLE_CACHE_DIR."""
        store = create_store()

        assert isinstance(store, FileStore)
        assert store.directory == isolated_environment.resolve()

        store.write("key", b"data")
        assert store.read("key") == b"data"

    def test_create_memory_store_from_env(self, mock_env_memory: None) -> None:
        store = create_store()

        assert isinstance(store, MemoryStore)
        assert store.namespace == "test"

    def test_create_sqlite_store_from_env(self, mock_env_sqlite: Path) -> None:
        store = create_store()

        assert isinstance(store, SqliteStore)
        assert store.db_path == mock_env_sqlite.resolve()

    def test_explicit_config(self, tmp_path: Path) -> None:
        config = StoreConfig(backend=StoreBackend.SQLITE, directory=str(tmp_path), namespace="explicit")

        store = create_store(config, name="explicit")

        assert isinstance(store, SqliteStore)
        assert store.db_path == (tmp_path / "durable_cache.db").resolve()
        assert store.namespace == "explicit"

    def test_registry_returns_same_instance(self, mock_env_memory: None) -> None:
        store = create_store()

        assert create_store() is store
        assert get_store() is store
        assert get_store("other") is not store

    def test_list_store_instances(self, mock_env_memory: None) -> None:
        create_store(name="one")
        create_async_store(name="two")

        assert list_store_instances() == ["one", "async:two"]

    def test_reset_clears_registry(self, mock_env_memory: None) -> None:
        store = create_store()
        reset_store_factory()

        assert list_store_instances() == []
        assert create_store() is not store

    def test_redis_without_url(self) -> None:
        config = StoreConfig.model_construct(backend=StoreBackend.REDIS, namespace="x", redis_url=None)

        with pytest.raises(ConfigurationError):
            create_store(config, name="redis")

    def test_unexpected_error_wrapped(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        def broken_store(**kwargs: object) -> SqliteStore:
            raise RuntimeError("driver missing")

        monkeypatch.setattr("durable_cache.stores.factory.SqliteStore", broken_store)
        config = StoreConfig(backend=StoreBackend.SQLITE, directory=str(tmp_path))

        with pytest.raises(ConfigurationError) as exc_info:
            create_store(config, name="broken")

        assert exc_info.value.details["store_name"] == "broken"
        assert "broken" not in list_store_instances()

    def test_async_store_adapts_blocking_backends(self, mock_env_memory: None) -> None:
        store = create_async_store()

        assert isinstance(store, AsyncPersistentStore)
        assert isinstance(store, SyncStoreAdapter)
        assert isinstance(store.store, MemoryStore)
        assert get_async_store() is store

    def test_async_sqlite_store(self, mock_env_sqlite: Path) -> None:
        store = create_async_store()

        assert isinstance(store, AsyncSqliteStore)

    async def test_adapter_round_trip(self, mock_env_memory: None) -> None:
        store = get_async_store()

        await store.write("key", b"data")
        assert await store.read("key") == b"data"
        assert await store.delete("key") is True

        stats = await store.get_stats()
        assert stats["adapter"] == "thread"
        assert stats["backend"] == "memory"

    async def test_close_all_stores(self, mock_env_sqlite: Path) -> None:
        store: PersistentStore = create_store()
        store.write("key", b"data")
        async_store = create_async_store()
        assert await async_store.read("key") == b"data"

        await close_all_stores()

        assert list_store_instances() == []
        # Records survive closing; a new store sees them
        assert create_store().read("key") == b"data"
