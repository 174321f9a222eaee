"""
Durable Cache — Two-Tier Cache

Keeps one current value per key in two tiers: an in-process memory slot and a
persistent store. The store is the source of truth.

Protocol:
- get(): memory slot if populated; otherwise read, decode and populate the
  slot. No record, an undecodable record and an unreadable store all come
  back as None.
- set(): encode, write to the store, and only then populate the slot with the
  value decoded back from the written bytes. A value whose bytes do not
  decode leaves the slot empty.
- clear(): delete the record and always empty the slot, even when the delete
  fails (the storage error is re-raised afterwards).

Usage:
    from pydantic import BaseModel
    from durable_cache import DurableCache

    class Settings(BaseModel):
        theme: str = "light"

    cache = DurableCache("app.settings", Settings)
    cache.set(Settings(theme="dark"))
    settings = cache.get()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from .codecs import Decoder, Encoder, default_strategy, resolve_decoder, resolve_encoder, type_name
from .config import CodecConfig, get_config
from .errors import DecodeError, DurableCacheError, EncodeError, StorageReadError
from .slot import MemorySlot
from .stores.factory import get_store
from .stores.interface import PersistentStore, validate_key

logger = logging.getLogger(__name__)

V = TypeVar("V")


class LookupStatus(str, Enum):
    """Where a lookup found its value, or why it found none."""

    MEMORY = "memory"  # Served from the memory slot
    STORE = "store"  # Read and decoded from the persistent store
    ABSENT = "absent"  # No record under the key
    CORRUPT = "corrupt"  # Record exists but could not be decoded
    UNAVAILABLE = "unavailable"  # Store could not be read


@dataclass(frozen=True)
class Lookup(Generic[V]):
    """
    Result of a cache lookup.

    Attributes:
        status: Outcome of the lookup
        value: Cached value (None unless found)
        error: The absorbed DecodeError or StorageReadError, if any
    """

    status: LookupStatus
    value: V | None = None
    error: DurableCacheError | None = None

    @property
    def found(self) -> bool:
        """True if a value was found, even when that value is None."""
        return self.status in (LookupStatus.MEMORY, LookupStatus.STORE)


class CacheCore(Generic[V]):
    """Key, strategy, memory slot and stats shared by the blocking and async caches."""

    def __init__(
        self,
        key: str,
        value_type: Any,
        encoder: Encoder[V] | Callable[[V], bytes] | None = None,
        decoder: Decoder[V] | Callable[[bytes], V] | None = None,
        codec_config: CodecConfig | None = None,
    ):
        self.key = validate_key(key)
        self.value_type = value_type

        if encoder is None or decoder is None:
            default_encoder, default_decoder = default_strategy(value_type, codec_config or get_config().codec)
            if encoder is None:
                encoder = default_encoder
            if decoder is None:
                decoder = default_decoder

        self.encoder = encoder
        self.decoder = decoder
        self._encode = resolve_encoder(encoder)
        self._decode = resolve_decoder(decoder)

        self._slot: MemorySlot[V] = MemorySlot()

        # Stats
        self._hits = 0
        self._loads = 0
        self._misses = 0
        self._decode_failures = 0
        self._read_failures = 0
        self._sets = 0
        self._clears = 0

    @property
    def is_populated(self) -> bool:
        """True if the memory slot holds a value."""
        return self._slot.is_populated

    def _encode_value(self, value: V) -> bytes:
        try:
            return self._encode(value)
        except EncodeError as e:
            self._log_refused(e)
            raise
        except Exception as e:
            error = EncodeError(
                f"Encoder failed for key '{self.key}': {e}",
                details={"key": self.key, "error": str(e)},
            )
            self._log_refused(error)
            raise error from e

    def _log_refused(self, error: EncodeError) -> None:
        logger.warning(
            f"Refusing to cache value for key '{self.key}': {error}",
            extra={"key": self.key, "value_type": type_name(self.value_type), "error": str(error)},
        )

    def _decode_value(self, data: bytes) -> V:
        try:
            return self._decode(data)
        except DecodeError:
            raise
        except Exception as e:
            # Hand-written decoders signal bad payloads with arbitrary errors
            raise DecodeError(
                f"Decoder failed for key '{self.key}': {e}",
                details={"key": self.key, "error": str(e)},
            ) from e

    def _memory_lookup(self) -> Lookup[V] | None:
        if not self._slot.is_populated:
            return None

        self._hits += 1
        logger.debug("Memory hit for key '%s'", self.key, extra={"key": self.key})
        return Lookup(LookupStatus.MEMORY, self._slot.value)

    def _resolve_record(self, data: bytes | None) -> Lookup[V]:
        """Turn raw store bytes into a lookup result, filling the slot on success."""
        if data is None:
            self._misses += 1
            logger.debug("Cache miss for key '%s': no record", self.key, extra={"key": self.key})
            return Lookup(LookupStatus.ABSENT)

        try:
            value = self._decode_value(data)
        except DecodeError as e:
            self._misses += 1
            self._decode_failures += 1
            logger.warning(
                f"Ignoring undecodable record for key '{self.key}': {e}",
                extra={
                    "key": self.key,
                    "value_type": type_name(self.value_type),
                    "size": len(data),
                    "error": str(e),
                },
            )
            return Lookup(LookupStatus.CORRUPT, error=e)

        self._slot.fill(value)
        self._loads += 1
        logger.debug("Loaded key '%s' from store", self.key, extra={"key": self.key, "size": len(data)})
        return Lookup(LookupStatus.STORE, value)

    def _unavailable(self, error: StorageReadError) -> Lookup[V]:
        self._misses += 1
        self._read_failures += 1
        logger.warning(
            f"Treating unreadable record for key '{self.key}' as a miss: {error}",
            extra={"key": self.key, "error": str(error)},
        )
        return Lookup(LookupStatus.UNAVAILABLE, error=error)

    def _settle(self, data: bytes) -> None:
        """Fill the slot from freshly written bytes, or leave it empty if they do not decode."""
        self._sets += 1
        try:
            value = self._decode_value(data)
        except DecodeError as e:
            self._slot.clear()
            self._decode_failures += 1
            logger.warning(
                f"Stored key '{self.key}' but the record does not decode: {e}",
                extra={
                    "key": self.key,
                    "value_type": type_name(self.value_type),
                    "size": len(data),
                    "error": str(e),
                },
            )
            return

        self._slot.fill(value)
        logger.debug("Stored key '%s'", self.key, extra={"key": self.key, "size": len(data)})

    def _emptied(self) -> None:
        self._slot.clear()
        self._clears += 1

    def _stats(self, backend: str) -> dict[str, Any]:
        lookups = self._hits + self._loads + self._misses
        hit_rate = ((self._hits + self._loads) / lookups * 100) if lookups > 0 else 0.0

        return {
            "key": self.key,
            "value_type": type_name(self.value_type),
            "backend": backend,
            "populated": self._slot.is_populated,
            "hits": self._hits,
            "loads": self._loads,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "decode_failures": self._decode_failures,
            "read_failures": self._read_failures,
            "sets": self._sets,
            "clears": self._clears,
        }


class DurableCache(CacheCore[V]):
    """
    Single-value, write-through cache for one key and one value type.

    Instances sharing a key and store see the same persisted value
    (last writer wins) but never share memory slots. Operations on one
    instance are serialized by a re-entrant lock.
    """

    def __init__(
        self,
        key: str,
        value_type: Any,
        encoder: Encoder[V] | Callable[[V], bytes] | None = None,
        decoder: Decoder[V] | Callable[[bytes], V] | None = None,
        store: PersistentStore | None = None,
        codec_config: CodecConfig | None = None,
    ):
        """
        Initialize cache.

        Args:
            key: Record key, unique within the store's namespace
            value_type: Type of the cached value (drives the default JSON strategy)
            encoder: Encoder object or callable (default: JSON for value_type)
            decoder: Decoder object or callable (default: JSON for value_type)
            store: Persistent store (default: the factory's "default" store)
            codec_config: Options for the default strategy (default: global config)

        Raises:
            ValueError: If key is empty
            ConfigurationError: If no default strategy or store can be built
        """
        super().__init__(key, value_type, encoder, decoder, codec_config)
        self.store = store if store is not None else get_store()
        self._lock = threading.RLock()

    def lookup(self) -> Lookup[V]:
        """
        Resolve the current value and report where it came from.

        Never raises for a missing, undecodable or unreadable record.
        """
        with self._lock:
            cached = self._memory_lookup()
            if cached is not None:
                return cached

            try:
                data = self.store.read(self.key)
            except StorageReadError as e:
                return self._unavailable(e)

            return self._resolve_record(data)

    def get(self) -> V | None:
        """Return the cached value, or None if there is none."""
        return self.lookup().value

    def set(self, value: V) -> None:
        """
        Persist value and make it the current value.

        Raises:
            EncodeError: If value cannot be encoded (nothing is modified)
            StorageWriteError: If the store write fails (memory slot unchanged)

        The slot is filled only if the written bytes decode; otherwise the
        record stays in the store and the slot is left empty.
        """
        with self._lock:
            data = self._encode_value(value)
            self.store.write(self.key, data)
            self._settle(data)

    def clear(self) -> None:
        """
        Delete the persisted record and empty the memory slot.

        Clearing an absent key is not an error.

        Raises:
            StorageDeleteError: If the store delete fails (memory slot is still emptied)
        """
        with self._lock:
            try:
                removed = self.store.delete(self.key)
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
        with self._lock:
            self._slot.clear()

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with counters (hits, loads, misses, failures, sets, clears)
        """
        with self._lock:
            return self._stats(self.store.backend)

    def __repr__(self) -> str:
        return f"DurableCache(key={self.key!r}, value_type={type_name(self.value_type)}, store={self.store.backend})"
