"""
Durable Cache — Persistent Stores

Byte-oriented key-value media backing the cache.

- interface.py: Abstract store contracts (blocking and async)
- backends/: memory, file, SQLite and Redis implementations
- factory.py: Configuration-driven construction with a named registry

Usage:
    from durable_cache.stores import create_store

    store = create_store()
    store.write("settings", b"{}")
    data = store.read("settings")
"""

from .adapters import SyncStoreAdapter
from .backends import AsyncSqliteStore, FileStore, MemoryStore, SqliteStore
from .factory import (
    close_all_stores,
    create_async_store,
    create_store,
    get_async_store,
    get_store,
    list_store_instances,
    reset_store_factory,
)
from .interface import AsyncPersistentStore, PersistentStore, validate_key

__all__ = [
    # Factory functions
    "create_store",
    "create_async_store",
    "get_store",
    "get_async_store",
    "close_all_stores",
    "list_store_instances",
    "reset_store_factory",
    # Interfaces
    "PersistentStore",
    "AsyncPersistentStore",
    "validate_key",
    # Backends
    "MemoryStore",
    "FileStore",
    "SqliteStore",
    "AsyncSqliteStore",
    "SyncStoreAdapter",
]
