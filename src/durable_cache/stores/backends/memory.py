"""
Durable Cache — Memory Store Backend

Process-local store holding records in a dict.
Thread-safe and suitable for tests and single-process, non-durable use.
Records vanish with the process.
"""

import logging
import threading
from typing import Any

from ..interface import PersistentStore, validate_key

logger = logging.getLogger(__name__)


class MemoryStore(PersistentStore):
    """
    In-memory store backend.

    Features:
    - Namespaced keys, so several namespaces can share one process
    - Thread-safe operations
    - O(1) read/write/delete operations
    """

    backend = "memory"

    def __init__(self, namespace: str = "durable_cache"):
        """
        Initialize memory store backend.

        Args:
            namespace: Record key namespace/prefix
        """
        self.namespace = namespace

        # Record storage: namespaced key -> bytes
        self._records: dict[str, bytes] = {}

        # Stats
        self._reads = 0
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._deletes = 0

        # Lock for thread safety
        self._lock = threading.Lock()

    def _make_key(self, key: str) -> str:
        """Create namespaced record key."""
        return f"{self.namespace}:{validate_key(key)}"

    def read(self, key: str) -> bytes | None:
        """Read record from memory."""
        record_key = self._make_key(key)

        with self._lock:
            self._reads += 1
            data = self._records.get(record_key)
            if data is None:
                self._misses += 1
                return None

            self._hits += 1
            return data

    def write(self, key: str, data: bytes) -> None:
        """Store record in memory."""
        record_key = self._make_key(key)

        with self._lock:
            self._records[record_key] = bytes(data)
            self._writes += 1

    def delete(self, key: str) -> bool:
        """Delete record from memory."""
        record_key = self._make_key(key)

        with self._lock:
            if record_key in self._records:
                del self._records[record_key]
                self._deletes += 1
                return True

            return False

    def exists(self, key: str) -> bool:
        """Check if record exists."""
        record_key = self._make_key(key)

        with self._lock:
            return record_key in self._records

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        with self._lock:
            return {
                "backend": self.backend,
                "namespace": self.namespace,
                "size": len(self._records),
                "reads": self._reads,
                "hits": self._hits,
                "misses": self._misses,
                "writes": self._writes,
                "deletes": self._deletes,
            }

    def close(self) -> None:
        """Close store and release resources."""
        # Memory backend holds no external resources
        logger.debug(f"Memory store backend closed for namespace '{self.namespace}'")
