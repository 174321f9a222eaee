"""
Durable Cache — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from durable_cache.config import reset_config
from durable_cache.errors import StorageDeleteError, StorageReadError, StorageWriteError
from durable_cache.stores import FileStore, MemoryStore, reset_store_factory

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


class FlakyStore(MemoryStore):
    """Memory store whose operations can be switched to fail like a broken medium."""

    def __init__(self) -> None:
        super().__init__(namespace="test")
        self.fail_reads = False
        self.fail_writes = False
        self.fail_deletes = False

    def read(self, key: str) -> bytes | None:
        if self.fail_reads:
            raise StorageReadError("medium unavailable", key=key, backend=self.backend)
        return super().read(key)

    def write(self, key: str, data: bytes) -> None:
        if self.fail_writes:
            raise StorageWriteError("disk full", key=key, backend=self.backend)
        super().write(key, data)

    def delete(self, key: str) -> bool:
        if self.fail_deletes:
            raise StorageDeleteError("medium unavailable", key=key, backend=self.backend)
        return super().delete(key)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[Path, None, None]:
    """
    Point the default store at a temporary directory and reset global state.

    Prevents tests from touching the user's cache directory, a developer's
    REDIS_URL, or configuration/store instances left behind by other tests.
    """
    records_dir = tmp_path / "records"
    monkeypatch.setenv("DURABLE_CACHE_DIR", str(records_dir))
    for name in (
        "REDIS_URL",
        "DURABLE_CACHE_BACKEND",
        "DURABLE_CACHE_NAMESPACE",
        "DURABLE_CACHE_SQLITE_PATH",
        "DURABLE_CACHE_FLOAT_STRATEGY",
    ):
        monkeypatch.delenv(name, raising=False)

    reset_config()
    reset_store_factory()
    yield records_dir
    reset_store_factory()
    reset_config()


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
def memory_store() -> MemoryStore:
    """Fresh in-memory store."""
    return MemoryStore(namespace="test")


@pytest.fixture
def file_store(tmp_path: Path) -> FileStore:
    """File store rooted in a per-test directory."""
    return FileStore(directory=tmp_path / "file_store", namespace="test")


@pytest.fixture
def flaky_store() -> FlakyStore:
    """Store that can be told to fail reads, writes or deletes."""
    return FlakyStore()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory store backend."""
    monkeypatch.setenv("DURABLE_CACHE_BACKEND", "memory")
    monkeypatch.setenv("DURABLE_CACHE_NAMESPACE", "test")


@pytest.fixture
def mock_env_sqlite(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Set environment variables for the SQLite store backend."""
    db_path = tmp_path / "env.db"
    monkeypatch.setenv("DURABLE_CACHE_BACKEND", "sqlite")
    monkeypatch.setenv("DURABLE_CACHE_SQLITE_PATH", str(db_path))
    monkeypatch.setenv("DURABLE_CACHE_NAMESPACE", "test")
    return db_path
