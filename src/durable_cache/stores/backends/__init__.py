"""
Durable Cache — Store Backends

Exports available persistent store backend implementations.

Redis backends are lazy-loaded via factory.py to avoid import overhead.
"""

from .file import FileStore
from .memory import MemoryStore
from .sqlite import AsyncSqliteStore, SqliteStore

__all__ = [
    "FileStore",
    "MemoryStore",
    "SqliteStore",
    "AsyncSqliteStore",
]
