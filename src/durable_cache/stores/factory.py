"""
Durable Cache — Store Factory

Canonical factory for creating persistent stores based on configuration.
Caches built without an explicit store obtain theirs here.

Key points:
- Select backend with DURABLE_CACHE_BACKEND=memory|file|sqlite|redis
  - Defaults to redis when REDIS_URL is set, file otherwise
- Stores are registered by name, so caches built with the same name share one
  store object (and one connection pool)
- All configuration is typed and validated via Pydantic models

Examples:
    from durable_cache.stores.factory import create_store, get_store

    # Uses env-configured backend (file by default)
    store = create_store()

    # Or explicitly supply a StoreConfig (e.g., for tests)
    from durable_cache.config import StoreBackend, StoreConfig
    cfg = StoreConfig(backend=StoreBackend.SQLITE, sqlite_path="/tmp/settings.db")
    sqlite_store = create_store(cfg, name="settings")
"""

from __future__ import annotations

import inspect
import logging

from ..config import StoreBackend, StoreConfig, get_config
from ..errors import ConfigurationError
from .adapters import SyncStoreAdapter
from .backends.file import FileStore
from .backends.memory import MemoryStore
from .backends.sqlite import AsyncSqliteStore, SqliteStore
from .interface import AsyncPersistentStore, PersistentStore

logger = logging.getLogger(__name__)

# Global store instances registries
_store_instances: dict[str, PersistentStore] = {}
_async_store_instances: dict[str, AsyncPersistentStore] = {}


def _load_redis_backend():  # type: ignore[no-untyped-def]
    """Lazy import of the Redis backend module."""
    try:
        from .backends import redis as redis_backend
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.1", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. "
            "Install with: pip install 'redis>=5.0.1' or add to dependencies.",
            details={"package": "redis>=5.0.1", "error": str(e), "backend": "redis"},
        ) from e
    return redis_backend


def _require_redis_url(config: StoreConfig) -> str:
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when DURABLE_CACHE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )
    return config.redis_url


def _build_store(config: StoreConfig) -> PersistentStore:
    """Construct a blocking store for the configured backend."""
    if config.backend == StoreBackend.MEMORY:
        return MemoryStore(namespace=config.namespace)
    if config.backend == StoreBackend.FILE:
        return FileStore(directory=config.directory, namespace=config.namespace)
    if config.backend == StoreBackend.SQLITE:
        return SqliteStore(db_path=config.resolved_sqlite_path(), namespace=config.namespace)
    if config.backend == StoreBackend.REDIS:
        redis_url = _require_redis_url(config)
        return _load_redis_backend().RedisStore(
            redis_url=redis_url,
            namespace=config.namespace,
            max_connections=config.redis_max_connections,
            socket_timeout=config.redis_socket_timeout,
        )
    raise ConfigurationError(
        f"Unknown store backend: {config.backend}",
        details={
            "backend": str(config.backend),
            "supported": [backend.value for backend in StoreBackend],
        },
    )


def _build_async_store(config: StoreConfig) -> AsyncPersistentStore:
    """Construct an async store; blocking backends run in worker threads."""
    if config.backend == StoreBackend.SQLITE:
        return AsyncSqliteStore(db_path=config.resolved_sqlite_path(), namespace=config.namespace)
    if config.backend == StoreBackend.REDIS:
        redis_url = _require_redis_url(config)
        return _load_redis_backend().AsyncRedisStore(
            redis_url=redis_url,
            namespace=config.namespace,
            max_connections=config.redis_max_connections,
            socket_timeout=config.redis_socket_timeout,
        )
    return SyncStoreAdapter(_build_store(config))


def create_store(
    config: StoreConfig | None = None,
    name: str = "default",
) -> PersistentStore:
    """
    Create a blocking store instance based on configuration.

    Args:
        config: Store configuration (uses global config if not provided)
        name: Store instance name (for multiple store instances)

    Returns:
        Configured store instance

    Raises:
        ConfigurationError: If store configuration is invalid or backend unavailable
    """
    # Return existing instance if already created
    if name in _store_instances:
        logger.debug("Returning existing store instance: %s", name)
        return _store_instances[name]

    # Use global config if not provided
    if config is None:
        config = get_config().store

    logger.info(
        "Creating store instance '%s' with backend: %s",
        name,
        config.backend,
        extra={"store_name": name, "backend": str(config.backend)},
    )

    try:
        store = _build_store(config)
    except ConfigurationError:
        # Re-raise configuration errors as-is (already described)
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating store instance '%s': %s",
            name,
            e,
            extra={"store_name": name, "backend": str(config.backend), "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create store instance '{name}': {e}",
            details={"store_name": name, "backend": str(config.backend), "error": str(e)},
        ) from e

    _store_instances[name] = store
    return store


def create_async_store(
    config: StoreConfig | None = None,
    name: str = "default",
) -> AsyncPersistentStore:
    """
    Create an async store instance based on configuration.

    Args:
        config: Store configuration (uses global config if not provided)
        name: Store instance name (separate registry from blocking stores)

    Returns:
        Configured async store instance

    Raises:
        ConfigurationError: If store configuration is invalid or backend unavailable
    """
    if name in _async_store_instances:
        logger.debug("Returning existing async store instance: %s", name)
        return _async_store_instances[name]

    if config is None:
        config = get_config().store

    logger.info(
        "Creating async store instance '%s' with backend: %s",
        name,
        config.backend,
        extra={"store_name": name, "backend": str(config.backend)},
    )

    try:
        store = _build_async_store(config)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating async store instance '%s': %s",
            name,
            e,
            extra={"store_name": name, "backend": str(config.backend), "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create async store instance '{name}': {e}",
            details={"store_name": name, "backend": str(config.backend), "error": str(e)},
        ) from e

    _async_store_instances[name] = store
    return store


def get_store(name: str = "default") -> PersistentStore:
    """
    Get an existing store instance by name.

    If the instance doesn't exist, it will be created automatically
    using the global configuration.
    """
    if name not in _store_instances:
        logger.debug("Store instance '%s' not found, creating new instance", name)
        return create_store(name=name)

    return _store_instances[name]


def get_async_store(name: str = "default") -> AsyncPersistentStore:
    """
    Get an existing async store instance by name.

    If the instance doesn't exist, it will be created automatically
    using the global configuration.
    """
    if name not in _async_store_instances:
        logger.debug("Async store instance '%s' not found, creating new instance", name)
        return create_async_store(name=name)

    return _async_store_instances[name]


async def close_all_stores() -> None:
    """
    Close all store instances and release resources.

    Should be called during graceful shutdown.
    """
    stores: list[tuple[str, PersistentStore | AsyncPersistentStore]] = [
        *_store_instances.items(),
        *_async_store_instances.items(),
    ]
    if not stores:
        logger.debug("No store instances to close")
        return

    logger.info("Closing %d store instance(s)...", len(stores))

    for name, store in stores:
        try:
            result = store.close()
            if inspect.isawaitable(result):
                await result
            logger.info("Closed store instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing store instance '%s': %s",
                name,
                e,
                extra={"store_name": name, "error": str(e)},
                exc_info=True,
            )

    _store_instances.clear()
    _async_store_instances.clear()
    logger.info("All store instances closed")


def reset_store_factory() -> None:
    """
    Reset the store factory by clearing all instance references.

    Does NOT call close() on instances - use close_all_stores() for proper cleanup.

    Warning: Only use this in testing contexts.
    """
    count = len(_store_instances) + len(_async_store_instances)
    _store_instances.clear()
    _async_store_instances.clear()
    logger.debug("Reset store factory, cleared %d instance reference(s)", count)


def list_store_instances() -> list[str]:
    """
    List all registered store instance names.

    Returns:
        Names of blocking stores followed by async stores (prefixed "async:")
    """
    return [*_store_instances.keys(), *(f"async:{name}" for name in _async_store_instances)]
