"""
Durable Cache — Persistent Store Interface

Defines the abstract interfaces that all persistent store backends must implement.

Contract shared by every backend:
- read() returns None when the key has no record; that is not an error
- a zero-length record reads back as b"" and is distinct from absence
- delete() of an absent key succeeds and returns False
- medium failures raise StorageReadError / StorageWriteError / StorageDeleteError
"""

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any


def validate_key(key: str) -> str:
    """
    Ensure a record key is a non-empty string.

    Raises:
        ValueError: If key is empty or not a string
    """
    if not isinstance(key, str) or not key:
        raise ValueError(f"Record key must be a non-empty string, got {key!r}")
    return key


class PersistentStore(ABC):
    """
    Abstract base class for blocking persistent stores.

    All store implementations must implement this interface to ensure
    consistent behavior across different backends (memory, file, SQLite, Redis).
    """

    backend: str = "abstract"

    @abstractmethod
    def read(self, key: str) -> bytes | None:
        """
        Read the record stored under a key.

        Args:
            key: Record key

        Returns:
            Stored bytes, or None if no record exists

        Raises:
            StorageReadError: If the underlying medium fails
        """

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """
        Create or overwrite the record stored under a key.

        Args:
            key: Record key
            data: Bytes to store

        Raises:
            StorageWriteError: If the underlying medium fails
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete the record stored under a key.

        Args:
            key: Record key

        Returns:
            True if a record was removed, False if none existed

        Raises:
            StorageDeleteError: If the underlying medium fails
        """

    @abstractmethod
    def get_stats(self) -> dict[str, Any]:
        """
        Get store statistics.

        Returns:
            Dictionary with store statistics (reads, hits, misses, writes, deletes)
        """

    def exists(self, key: str) -> bool:
        """
        Check if a record exists.

        Default implementation reads the record.
        Backends can override for better performance.
        """
        return self.read(key) is not None

    def close(self) -> None:
        """Release resources held by the store."""

    def __enter__(self) -> "PersistentStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncPersistentStore(ABC):
    """
    Abstract base class for asynchronous persistent stores.

    Same contract as PersistentStore, exposed as coroutines for
    network-backed media that should not block the event loop.
    """

    backend: str = "abstract"

    @abstractmethod
    async def read(self, key: str) -> bytes | None:
        """Read the record stored under a key (None if absent)."""

    @abstractmethod
    async def write(self, key: str, data: bytes) -> None:
        """Create or overwrite the record stored under a key."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete the record stored under a key (False if absent)."""

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""

    async def exists(self, key: str) -> bool:
        """Check if a record exists."""
        return await self.read(key) is not None

    async def close(self) -> None:
        """Release resources held by the store."""

    async def __aenter__(self) -> "AsyncPersistentStore":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
