"""
Durable Cache — SQLite Store Backend

Embedded key-value store on a single SQLite table, through SQLAlchemy.
Schema is created lazily on first use; safe to point several processes at
the same database file (SQLite serializes writers, last write wins).

Provides:
- SqliteStore: blocking store (sqlite driver)
- AsyncSqliteStore: asyncio store (aiosqlite driver)
"""

import asyncio
import logging
import threading
from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager, contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import DateTime, Engine, LargeBinary, String, create_engine, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from ...errors import StorageDeleteError, StorageError, StorageReadError, StorageWriteError
from ..interface import AsyncPersistentStore, PersistentStore, validate_key

logger = logging.getLogger(__name__)


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""

    pass


class CacheRecord(Base):
    """
    One persisted record.

    Primary key is (namespace, key) so namespaces share a table safely.
    """

    __tablename__ = "cache_records"

    namespace: Mapped[str] = mapped_column(String(255), primary_key=True)
    key: Mapped[str] = mapped_column(String(1024), primary_key=True)
    payload: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )


def _storage_error(
    error_cls: type[StorageError],
    action: str,
    key: str,
    db_path: Path,
    error: Exception,
) -> StorageError:
    """Log a failed SQLite operation and build the matching storage error."""
    logger.error(
        f"Failed to {action} key '{key}' in SQLite store: {error}",
        extra={"key": key, "db_path": str(db_path), "error": str(error)},
        exc_info=True,
    )
    return error_cls(
        f"Failed to {action} record '{key}': {error}",
        key=key,
        backend="sqlite",
        details={"db_path": str(db_path)},
    )


class SqliteStore(PersistentStore):
    """
    Blocking SQLite store backend.

    Provides:
    - Automatic schema creation
    - Session management
    - Graceful shutdown
    """

    backend = "sqlite"

    def __init__(self, db_path: str | Path = "./data/durable_cache.db", namespace: str = "durable_cache"):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file (relative or absolute)
            namespace: Key namespace stored alongside every record
        """
        self.namespace = namespace
        self.db_path = Path(db_path).expanduser().resolve()
        self.db_url = f"sqlite:///{self.db_path}"

        self.engine: Engine = create_engine(
            self.db_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
        self.session_factory: sessionmaker[Session] = sessionmaker(self.engine, expire_on_commit=False)

        self._initialized = False
        self._initialization_lock = threading.Lock()

        # Stats
        self._reads = 0
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._deletes = 0
        self._stats_lock = threading.Lock()

    def initialize(self) -> None:
        """
        Initialize database schema.

        Creates the records table if it doesn't exist.
        Safe to call multiple times (idempotent).
        """
        with self._initialization_lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            Base.metadata.create_all(self.engine)
            self._initialized = True

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get database session (context manager)."""
        if not self._initialized:
            self.initialize()

        with self.session_factory() as session:
            yield session

    def _count(self, *counters: str) -> None:
        with self._stats_lock:
            for counter in counters:
                setattr(self, counter, getattr(self, counter) + 1)

    def read(self, key: str) -> bytes | None:
        """Read record row."""
        validate_key(key)
        try:
            with self.get_session() as session:
                record = session.get(CacheRecord, (self.namespace, key))
                data = record.payload if record is not None else None
        except (SQLAlchemyError, OSError) as e:
            raise _storage_error(StorageReadError, "read", key, self.db_path, e) from e

        self._count("_reads", "_misses" if data is None else "_hits")
        return data

    def write(self, key: str, data: bytes) -> None:
        """Insert or replace record row."""
        validate_key(key)
        try:
            with self.get_session() as session:
                session.merge(
                    CacheRecord(
                        namespace=self.namespace,
                        key=key,
                        payload=bytes(data),
                        updated_at=datetime.now(UTC),
                    )
                )
                session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise _storage_error(StorageWriteError, "write", key, self.db_path, e) from e

        self._count("_writes")

    def delete(self, key: str) -> bool:
        """Delete record row (absent row is not an error)."""
        validate_key(key)
        try:
            with self.get_session() as session:
                result = session.execute(
                    delete(CacheRecord).where(
                        CacheRecord.namespace == self.namespace,
                        CacheRecord.key == key,
                    )
                )
                session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise _storage_error(StorageDeleteError, "delete", key, self.db_path, e) from e

        removed = bool(result.rowcount)
        if removed:
            self._count("_deletes")
        return removed

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        with self._stats_lock:
            return {
                "backend": self.backend,
                "namespace": self.namespace,
                "db_path": str(self.db_path),
                "reads": self._reads,
                "hits": self._hits,
                "misses": self._misses,
                "writes": self._writes,
                "deletes": self._deletes,
            }

    def close(self) -> None:
        """Close database connections gracefully."""
        self.engine.dispose()
        self._initialized = False
        logger.debug(f"SQLite store closed for '{self.db_path}'")


class AsyncSqliteStore(AsyncPersistentStore):
    """
    Async SQLite store backend (aiosqlite driver).

    Same table layout as SqliteStore, so both can share one database file.
    """

    backend = "sqlite"

    def __init__(self, db_path: str | Path = "./data/durable_cache.db", namespace: str = "durable_cache"):
        """
        Initialize async SQLite store.

        Args:
            db_path: Path to SQLite database file (relative or absolute)
            namespace: Key namespace stored alongside every record
        """
        self.namespace = namespace
        self.db_path = Path(db_path).expanduser().resolve()
        self.db_url = f"sqlite+aiosqlite:///{self.db_path}"

        # Create async engine with connection pooling
        self.engine: AsyncEngine = create_async_engine(
            self.db_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

        # Create async session factory
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        self._initialized = False
        self._initialization_lock = asyncio.Lock()

        # Stats
        self._reads = 0
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._deletes = 0

    async def initialize(self) -> None:
        """
        Initialize database schema.

        Creates the records table if it doesn't exist.
        Safe to call multiple times (idempotent).
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            self._initialized = True

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session (context manager)."""
        if not self._initialized:
            await self.initialize()

        async with self.session_factory() as session:
            yield session

    async def read(self, key: str) -> bytes | None:
        """Read record row."""
        validate_key(key)
        try:
            async with self.get_session() as session:
                record = await session.get(CacheRecord, (self.namespace, key))
                data = record.payload if record is not None else None
        except (SQLAlchemyError, OSError) as e:
            raise _storage_error(StorageReadError, "read", key, self.db_path, e) from e

        self._reads += 1
        if data is None:
            self._misses += 1
        else:
            self._hits += 1
        return data

    async def write(self, key: str, data: bytes) -> None:
        """Insert or replace record row."""
        validate_key(key)
        try:
            async with self.get_session() as session:
                await session.merge(
                    CacheRecord(
                        namespace=self.namespace,
                        key=key,
                        payload=bytes(data),
                        updated_at=datetime.now(UTC),
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise _storage_error(StorageWriteError, "write", key, self.db_path, e) from e

        self._writes += 1

    async def delete(self, key: str) -> bool:
        """Delete record row (absent row is not an error)."""
        validate_key(key)
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    delete(CacheRecord).where(
                        CacheRecord.namespace == self.namespace,
                        CacheRecord.key == key,
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise _storage_error(StorageDeleteError, "delete", key, self.db_path, e) from e

        removed = bool(result.rowcount)
        if removed:
            self._deletes += 1
        return removed

    async def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        return {
            "backend": self.backend,
            "namespace": self.namespace,
            "db_path": str(self.db_path),
            "reads": self._reads,
            "hits": self._hits,
            "misses": self._misses,
            "writes": self._writes,
            "deletes": self._deletes,
        }

    async def close(self) -> None:
        """Close database connections gracefully."""
        await self.engine.dispose()
        self._initialized = False
        logger.debug(f"Async SQLite store closed for '{self.db_path}'")
