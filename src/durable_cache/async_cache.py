"""
Durable Cache — Async Two-Tier Cache

Same protocol as DurableCache for asyncio callers: store I/O is awaited,
encode/decode run inline. Operations on one instance are serialized by an
asyncio.Lock.

Usage:
    cache = AsyncDurableCache("app.settings", Settings, store=AsyncSqliteStore("settings.db"))
    await cache.set(Settings(theme="dark"))
    settings = await cache.get()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from .cache import CacheCore, Lookup
from .codecs import Decoder, Encoder, type_name
from .config import CodecConfig
from .errors import StorageReadError
from .stores.factory import get_async_store
from .stores.interface import AsyncPersistentStore

logger = logging.getLogger(__name__)

V = TypeVar("V")


class AsyncDurableCache(CacheCore[V]):
    """Single-value, write-through cache over an AsyncPersistentStore."""

    def __init__(
        self,
        key: str,
        value_type: Any,
        encoder: Encoder[V] | Callable[[V], bytes] | None = None,
        decoder: Decoder[V] | Callable[[bytes], V] | None = None,
        store: AsyncPersistentStore | None = None,
        codec_config: CodecConfig | None = None,
    ):
        """
        Initialize async cache.

        Args:
            key: Record key, unique within the store's namespace
            value_type: Type of the cached value (drives the default JSON strategy)
            encoder: Encoder object or callable (default: JSON for value_type)
            decoder: Decoder object or callable (default: JSON for value_type)
            store: Async persistent store (default: the factory's "default" async store)
            codec_config: Options for the default strategy (default: global config)
        """
        super().__init__(key, value_type, encoder, decoder, codec_config)
        self.store = store if store is not None else get_async_store()
        self._lock = asyncio.Lock()

    async def lookup(self) -> Lookup[V]:
        """Resolve the current value and report where it came from."""
        async with self._lock:
            cached = self._memory_lookup()
            if cached is not None:
                return cached

            try:
                data = await self.store.read(self.key)
            except StorageReadError as e:
                return self._unavailable(e)

            return self._resolve_record(data)

    async def get(self) -> V | None:
        """Return the cached value, or None if there is none."""
        return (await self.lookup()).value

    async def set(self, value: V) -> None:
        """
        Persist value and make it the current value.

        Raises:
            EncodeError: If value cannot be encoded (nothing is modified)
            StorageWriteError: If the store write fails (memory slot unchanged)

        The slot is filled only if the written bytes decode.
        """
        async with self._lock:
            data = self._encode_value(value)
            await self.store.write(self.key, data)
            self._settle(data)

    async def clear(self) -> None:
        """
        Delete the persisted record and empty the memory slot.

        Raises:
            StorageDeleteError: If the store delete fails (memory slot is still emptied)
        """
        async with self._lock:
            try:
                removed = await self.store.delete(self.key)
                logger.debug(
                    "Cleared key '%s' (%s)",
                    self.key,
                    "record removed" if removed else "no record",
                    extra={"key": self.key},
                )
            finally:
                self._emptied()

    def invalidate(self) -> None:
        """Empty the memory slot only; the next get() re-reads the store."""
        self._slot.clear()

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            return self._stats(self.store.backend)

    def __repr__(self) -> str:
        return (
            f"AsyncDurableCache(key={self.key!r}, value_type={type_name(self.value_type)}, "
            f"store={self.store.backend})"
        )
