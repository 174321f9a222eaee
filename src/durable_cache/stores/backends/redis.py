"""
Durable Cache — Redis Store Backend

Redis store implementations with:
- Raw bytes values (the cache's encoder owns the wire format)
- Namespace prefixing for safe multi-tenant usage
- No expiry: records live until deleted

Provides:
- RedisStore: blocking client (redis.Redis)
- AsyncRedisStore: asyncio client (redis.asyncio.Redis)

Requires: redis>=5.0

Example:
    store = RedisStore(redis_url="redis://localhost:6379", namespace="settings")
    store.write("theme", b'{"mode":"dark"}')
    data = store.read("theme")
"""

from __future__ import annotations

import logging
from typing import Any

from ...errors import StorageDeleteError, StorageError, StorageReadError, StorageWriteError
from ..interface import AsyncPersistentStore, PersistentStore, validate_key

logger = logging.getLogger(__name__)

try:
    from redis import Redis
    from redis.asyncio import Redis as AsyncRedis
    from redis.exceptions import RedisError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis client is required but not installed. "
        "Install with: pip install 'redis>=5.0.1' or add 'redis' to your dependencies."
    ) from e


def _storage_error(
    error_cls: type[StorageError],
    action: str,
    key: str,
    namespace: str,
    error: Exception,
) -> StorageError:
    """Log a failed Redis command and build the matching storage error."""
    logger.error(
        f"Failed to {action} key '{key}' in Redis: {error}",
        extra={"key": key, "namespace": namespace, "error": str(error)},
        exc_info=True,
    )
    return error_cls(
        f"Failed to {action} record '{key}': {error}",
        key=key,
        backend="redis",
        details={"namespace": namespace},
    )


class _RedisStoreBase:
    """Shared settings, key layout and stats for both Redis stores."""

    backend = "redis"

    def __init__(self, redis_url: str, namespace: str) -> None:
        if not redis_url:
            raise ValueError("redis_url is required")

        self.redis_url = redis_url
        self.namespace = namespace.strip() or "durable_cache"
        self._reads = 0
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._deletes = 0

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{validate_key(key)}"

    def _record_read(self, data: bytes | None) -> None:
        self._reads += 1
        if data is None:
            self._misses += 1
        else:
            self._hits += 1

    def _stats(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "namespace": self.namespace,
            "reads": self._reads,
            "hits": self._hits,
            "misses": self._misses,
            "writes": self._writes,
            "deletes": self._deletes,
            "connected": False,
        }


class RedisStore(_RedisStoreBase, PersistentStore):
    """
    Blocking Redis store backend.

    Notes:
    - Keys are prefixed with the configured namespace to avoid collisions.
    - Values are stored as-is; responses are not decoded.
    - Socket timeouts bound every command; a timeout surfaces as a storage error.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "durable_cache",
        max_connections: int = 10,
        socket_timeout: int = 5,
    ) -> None:
        """
        Initialize Redis store backend.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
        """
        super().__init__(redis_url, namespace)

        # Create Redis client (lazy connection; connects on first command)
        self._client = Redis.from_url(
            url=redis_url,
            decode_responses=False,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    def read(self, key: str) -> bytes | None:
        """Read a record by key."""
        ns_key = self._make_key(key)
        try:
            data = self._client.get(ns_key)
        except RedisError as e:
            raise _storage_error(StorageReadError, "read", key, self.namespace, e) from e

        self._record_read(data)
        return data

    def write(self, key: str, data: bytes) -> None:
        """Store a record without expiry."""
        ns_key = self._make_key(key)
        try:
            self._client.set(name=ns_key, value=data)
        except RedisError as e:
            raise _storage_error(StorageWriteError, "write", key, self.namespace, e) from e

        self._writes += 1

    def delete(self, key: str) -> bool:
        """Delete a single record."""
        ns_key = self._make_key(key)
        try:
            deleted = self._client.delete(ns_key)
        except RedisError as e:
            raise _storage_error(StorageDeleteError, "delete", key, self.namespace, e) from e

        if deleted:
            self._deletes += 1
        return bool(deleted)

    def exists(self, key: str) -> bool:
        """Check if a record exists."""
        ns_key = self._make_key(key)
        try:
            return bool(self._client.exists(ns_key))
        except RedisError as e:
            raise _storage_error(StorageReadError, "check", key, self.namespace, e) from e

    def get_stats(self) -> dict[str, Any]:
        """Return store statistics and connectivity."""
        stats = self._stats()
        try:
            stats["connected"] = bool(self._client.ping())
        except RedisError as e:
            logger.warning(f"Failed to ping Redis: {e}", extra={"error": str(e)})
        return stats

    def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            self._client.close()
            logger.info(f"Closed Redis store backend for namespace '{self.namespace}'")
        except RedisError as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )
        finally:
            # Ensure pool disconnect
            self._client.connection_pool.disconnect()


class AsyncRedisStore(_RedisStoreBase, AsyncPersistentStore):
    """
    Async Redis store backend.

    Same key layout as RedisStore, so both can share records.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "durable_cache",
        max_connections: int = 10,
        socket_timeout: int = 5,
    ) -> None:
        """
        Initialize async Redis store backend.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
        """
        super().__init__(redis_url, namespace)

        self._client = AsyncRedis.from_url(
            url=redis_url,
            decode_responses=False,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    async def read(self, key: str) -> bytes | None:
        """Read a record by key."""
        ns_key = self._make_key(key)
        try:
            data = await self._client.get(ns_key)
        except RedisError as e:
            raise _storage_error(StorageReadError, "read", key, self.namespace, e) from e

        self._record_read(data)
        return data

    async def write(self, key: str, data: bytes) -> None:
        """Store a record without expiry."""
        ns_key = self._make_key(key)
        try:
            await self._client.set(name=ns_key, value=data)
        except RedisError as e:
            raise _storage_error(StorageWriteError, "write", key, self.namespace, e) from e

        self._writes += 1

    async def delete(self, key: str) -> bool:
        """Delete a single record."""
        ns_key = self._make_key(key)
        try:
            deleted = await self._client.delete(ns_key)
        except RedisError as e:
            raise _storage_error(StorageDeleteError, "delete", key, self.namespace, e) from e

        if deleted:
            self._deletes += 1
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        """Check if a record exists."""
        ns_key = self._make_key(key)
        try:
            return bool(await self._client.exists(ns_key))
        except RedisError as e:
            raise _storage_error(StorageReadError, "check", key, self.namespace, e) from e

    async def get_stats(self) -> dict[str, Any]:
        """Return store statistics and connectivity."""
        stats = self._stats()
        try:
            stats["connected"] = bool(await self._client.ping())
        except RedisError as e:
            logger.warning(f"Failed to ping Redis: {e}", extra={"error": str(e)})
        return stats

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            await self._client.aclose()
            logger.info(f"Closed async Redis store backend for namespace '{self.namespace}'")
        except RedisError as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )
        finally:
            await self._client.connection_pool.disconnect()
