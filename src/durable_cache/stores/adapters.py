"""
Durable Cache — Store Adapters

Bridges blocking stores into the async interface by running each call in a
worker thread, so file and memory stores can back an AsyncDurableCache
without blocking the event loop.
"""

import asyncio
from typing import Any

from .interface import AsyncPersistentStore, PersistentStore


class SyncStoreAdapter(AsyncPersistentStore):
    """Expose a PersistentStore through AsyncPersistentStore."""

    def __init__(self, store: PersistentStore):
        self.store = store
        self.backend = store.backend

    async def read(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self.store.read, key)

    async def write(self, key: str, data: bytes) -> None:
        await asyncio.to_thread(self.store.write, key, data)

    async def delete(self, key: str) -> bool:
        return await asyncio.to_thread(self.store.delete, key)

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.store.exists, key)

    async def get_stats(self) -> dict[str, Any]:
        stats = await asyncio.to_thread(self.store.get_stats)
        return {**stats, "adapter": "thread"}

    async def close(self) -> None:
        await asyncio.to_thread(self.store.close)

    def __repr__(self) -> str:
        return f"SyncStoreAdapter({self.store!r})"
