"""
Durable Cache — Keyed Single-Value Serialization Cache

Persists one typed value per key across process restarts, with an in-memory
slot in front of a pluggable persistent store and pluggable encode/decode
strategies.
"""

__version__ = "1.0.0"

from .async_cache import AsyncDurableCache
from .cache import DurableCache, Lookup, LookupStatus
from .codecs import Decoder, Encoder, JSONDecoder, JSONEncoder, default_strategy
from .config import (
    CodecConfig,
    DurableCacheConfig,
    NonConformingFloatStrategy,
    StoreBackend,
    StoreConfig,
    get_config,
    load_config,
    reload_config,
)
from .errors import (
    CodecError,
    ConfigurationError,
    DecodeError,
    DurableCacheError,
    EncodeError,
    ErrorCode,
    StorageDeleteError,
    StorageError,
    StorageReadError,
    StorageWriteError,
    is_retryable_error,
)
from .observability import configure_logging
from .slot import MemorySlot
from .stores import (
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
)

__all__ = [
    # Caches
    "DurableCache",
    "AsyncDurableCache",
    "Lookup",
    "LookupStatus",
    "MemorySlot",
    # Strategies
    "Encoder",
    "Decoder",
    "JSONEncoder",
    "JSONDecoder",
    "default_strategy",
    # Stores
    "PersistentStore",
    "AsyncPersistentStore",
    "MemoryStore",
    "FileStore",
    "SqliteStore",
    "AsyncSqliteStore",
    "SyncStoreAdapter",
    "create_store",
    "create_async_store",
    "get_store",
    "get_async_store",
    "close_all_stores",
    # Configuration
    "DurableCacheConfig",
    "StoreConfig",
    "CodecConfig",
    "StoreBackend",
    "NonConformingFloatStrategy",
    "load_config",
    "get_config",
    "reload_config",
    "configure_logging",
    # Errors
    "ErrorCode",
    "DurableCacheError",
    "ConfigurationError",
    "CodecError",
    "EncodeError",
    "DecodeError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "StorageDeleteError",
    "is_retryable_error",
]
