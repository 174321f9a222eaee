"""
Durable Cache — Async Cache Tests

Tests AsyncDurableCache over thread-adapted and native async stores.
"""

import asyncio
from pathlib import Path

import pytest
from pydantic import BaseModel

from durable_cache import AsyncDurableCache, LookupStatus
from durable_cache.errors import EncodeError, StorageDeleteError, StorageWriteError
from durable_cache.stores import AsyncSqliteStore, MemoryStore, SyncStoreAdapter


class Sample(BaseModel):
    testing: list[int]


class TestAsyncDurableCache:
    """Test suite for AsyncDurableCache."""

    @pytest.fixture
    def backing(self) -> MemoryStore:
        """Blocking store wrapped by the adapter."""
        return MemoryStore(namespace="test")

    @pytest.fixture
    def cache(self, backing: MemoryStore) -> AsyncDurableCache[Sample]:
        """Create an async cache over an adapted memory store."""
        return AsyncDurableCache("sample", Sample, store=SyncStoreAdapter(backing))

    async def test_get_absent(self, cache: AsyncDurableCache[Sample]) -> None:
        """Test get on a never-written key."""
        assert await cache.get() is None
        assert (await cache.lookup()).status == LookupStatus.ABSENT

    async def test_set_and_get(self, cache: AsyncDurableCache[Sample], backing: MemoryStore) -> None:
        """Test set writes through and get serves the slot."""
        await cache.set(Sample(testing=[1, 2, 3]))

        assert backing.read("sample") == b'{"testing":[1,2,3]}'
        lookup = await cache.lookup()
        assert lookup.status == LookupStatus.MEMORY
        assert lookup.value == Sample(testing=[1, 2, 3])

    async def test_load_from_store(self, cache: AsyncDurableCache[Sample], backing: MemoryStore) -> None:
        """Test an empty slot is filled from the store."""
        backing.write("sample", b'{"testing":[9]}')

        lookup = await cache.lookup()
        assert lookup.status == LookupStatus.STORE
        assert lookup.value == Sample(testing=[9])
        assert cache.is_populated is True

    async def test_clear(self, cache: AsyncDurableCache[Sample], backing: MemoryStore) -> None:
        """Test clear removes the record and empties the slot."""
        await cache.set(Sample(testing=[1]))
        await cache.clear()

        assert cache.is_populated is False
        assert backing.exists("sample") is False
        assert await cache.get() is None

    async def test_corrupt_record_is_a_miss(self, cache: AsyncDurableCache[Sample], backing: MemoryStore) -> None:
        """Test an undecodable record reads as no value."""
        backing.write("sample", b"[")

        lookup = await cache.lookup()
        assert lookup.status == LookupStatus.CORRUPT
        assert lookup.value is None

    async def test_unreadable_store_is_a_miss(self, flaky_store) -> None:  # type: ignore[no-untyped-def]
        """Test a failing read is absorbed."""
        flaky_store.fail_reads = True
        cache = AsyncDurableCache("sample", Sample, store=SyncStoreAdapter(flaky_store))

        assert (await cache.lookup()).status == LookupStatus.UNAVAILABLE

    async def test_write_failure_propagates(self, flaky_store) -> None:  # type: ignore[no-untyped-def]
        """Test a failing write reaches the caller and leaves the slot empty."""
        flaky_store.fail_writes = True
        cache = AsyncDurableCache("sample", Sample, store=SyncStoreAdapter(flaky_store))

        with pytest.raises(StorageWriteError):
            await cache.set(Sample(testing=[1]))
        assert cache.is_populated is False

    async def test_delete_failure_still_empties_slot(self, flaky_store) -> None:  # type: ignore[no-untyped-def]
        """Test clear empties the slot before re-raising a delete failure."""
        cache = AsyncDurableCache("sample", Sample, store=SyncStoreAdapter(flaky_store))
        await cache.set(Sample(testing=[1]))

        flaky_store.fail_deletes = True
        with pytest.raises(StorageDeleteError):
            await cache.clear()
        assert cache.is_populated is False

    async def test_encode_failure(self, cache: AsyncDurableCache[Sample], backing: MemoryStore) -> None:
        """Test an unencodable value modifies nothing."""
        with pytest.raises(EncodeError):
            await cache.set({"testing": object()})  # type: ignore[arg-type]

        assert backing.exists("sample") is False
        assert cache.is_populated is False

    async def test_set_with_rejecting_decoder_leaves_slot_empty(self, backing: MemoryStore) -> None:
        """Test set leaves the slot empty when the written bytes do not decode."""

        def decode_sample(data: bytes) -> Sample:
            sample = Sample.model_validate_json(data)
            if not sample.testing:
                raise ValueError("testing must not be empty")
            return sample

        cache = AsyncDurableCache("sample", Sample, decoder=decode_sample, store=SyncStoreAdapter(backing))
        await cache.set(Sample(testing=[1]))
        assert cache.is_populated is True

        await cache.set(Sample(testing=[]))

        assert cache.is_populated is False
        assert await cache.get() is None
        assert backing.read("sample") == b'{"testing":[]}'

    async def test_concurrent_gets(self, cache: AsyncDurableCache[Sample], backing: MemoryStore) -> None:
        """Test concurrent lookups load the record once."""
        backing.write("sample", b'{"testing":[1]}')

        results = await asyncio.gather(*(cache.lookup() for _ in range(10)))

        statuses = [result.status for result in results]
        assert statuses.count(LookupStatus.STORE) == 1
        assert statuses.count(LookupStatus.MEMORY) == 9
        assert backing.get_stats()["reads"] == 1

    async def test_stats(self, cache: AsyncDurableCache[Sample]) -> None:
        """Test stats include the adapted backend name."""
        await cache.get()
        await cache.set(Sample(testing=[1]))

        stats = await cache.get_stats()
        assert stats["backend"] == "memory"
        assert stats["misses"] == 1
        assert stats["sets"] == 1

    async def test_sqlite_store_round_trip(self, tmp_path: Path) -> None:
        """Test the async cache over a native async SQLite store."""
        store = AsyncSqliteStore(db_path=tmp_path / "async.db", namespace="test")
        try:
            cache = AsyncDurableCache("sample", Sample, store=store)
            await cache.set(Sample(testing=[1, 2]))

            fresh = AsyncDurableCache("sample", Sample, store=store)
            assert await fresh.get() == Sample(testing=[1, 2])

            await fresh.clear()
            cache.invalidate()
            assert await cache.get() is None
        finally:
            await store.close()

    async def test_default_store_from_factory(self, isolated_environment) -> None:  # type: ignore[no-untyped-def]
        """Test a cache without an explicit store uses the adapted file store."""
        cache = AsyncDurableCache("sample", Sample)
        await cache.set(Sample(testing=[3]))

        assert isinstance(cache.store, SyncStoreAdapter)
        assert cache.store.backend == "file"
        assert any(isolated_environment.rglob("*.record"))

    def test_repr(self, cache: AsyncDurableCache[Sample]) -> None:
        """Test repr names key, type and backend."""
        assert repr(cache) == "AsyncDurableCache(key='sample', value_type=Sample, store=memory)"
