"""
Durable Cache — File Store Backend

Filesystem store keeping one file per record under ``<directory>/<namespace>/``.

Notes:
- File names are SHA-256 digests of the key, so any key maps to a safe name.
- Writes go to a temp file in the same directory and are renamed into place,
  so a crash mid-write leaves the previous record intact.
- Concurrent writers from several processes are last-write-wins.
"""

import hashlib
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from ...errors import StorageDeleteError, StorageReadError, StorageWriteError
from ..interface import PersistentStore, validate_key

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".record"


class FileStore(PersistentStore):
    """
    Durable filesystem store backend.

    Records survive process restarts and are visible to every process that
    points at the same directory and namespace.
    """

    backend = "file"

    def __init__(self, directory: str | Path, namespace: str = "durable_cache"):
        """
        Initialize file store backend.

        Args:
            directory: Root directory for records (created on first write)
            namespace: Subdirectory separating independent key spaces
        """
        self.namespace = namespace
        self.directory = Path(directory).expanduser().resolve()
        self.root = self.directory / namespace

        # Stats
        self._reads = 0
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._deletes = 0
        self._stats_lock = threading.Lock()

    def path_for(self, key: str) -> Path:
        """Return the file path holding the record for key."""
        digest = hashlib.sha256(validate_key(key).encode("utf-8")).hexdigest()
        return self.root / f"{digest}{RECORD_SUFFIX}"

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def read(self, key: str) -> bytes | None:
        """Read record file."""
        path = self.path_for(key)
        self._count("_reads")

        try:
            data = path.read_bytes()
        except FileNotFoundError:
            self._count("_misses")
            return None
        except OSError as e:
            logger.error(
                f"Failed to read key '{key}' from file store: {e}",
                extra={"key": key, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            raise StorageReadError(
                f"Failed to read record '{key}': {e}",
                key=key,
                backend=self.backend,
                details={"path": str(path)},
            ) from e

        self._count("_hits")
        return data

    def write(self, key: str, data: bytes) -> None:
        """Atomically write record file (temp file + rename)."""
        path = self.path_for(key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except BaseException:
                os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error(
                f"Failed to write key '{key}' to file store: {e}",
                extra={"key": key, "path": str(path), "size": len(data), "error": str(e)},
                exc_info=True,
            )
            raise StorageWriteError(
                f"Failed to write record '{key}': {e}",
                key=key,
                backend=self.backend,
                details={"path": str(path)},
            ) from e

        self._count("_writes")

    def delete(self, key: str) -> bool:
        """Delete record file (absent file is not an error)."""
        path = self.path_for(key)

        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(
                f"Failed to delete key '{key}' from file store: {e}",
                extra={"key": key, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            raise StorageDeleteError(
                f"Failed to delete record '{key}': {e}",
                key=key,
                backend=self.backend,
                details={"path": str(path)},
            ) from e

        self._count("_deletes")
        return True

    def exists(self, key: str) -> bool:
        """Check if record file exists."""
        return self.path_for(key).is_file()

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        size = len(list(self.root.glob(f"*{RECORD_SUFFIX}"))) if self.root.is_dir() else 0
        with self._stats_lock:
            return {
                "backend": self.backend,
                "namespace": self.namespace,
                "directory": str(self.directory),
                "size": size,
                "reads": self._reads,
                "hits": self._hits,
                "misses": self._misses,
                "writes": self._writes,
                "deletes": self._deletes,
            }
