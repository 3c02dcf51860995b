"""
JSON file backend for the document store.

Layout:
    <data_dir>/
    ├── books.json            {"collection": "books", "documents": [...]}
    ├── authors.json
    ├── ...
    └── .locks/<collection>.lock

Rules:
- one FileLock per collection around every read and read-modify-write
- atomic write: temp -> rename (+ fsync where the platform allows)
- OS / decode / lock failures surface as StoreError, never swallowed
"""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from filelock import FileLock, Timeout

from src.core.store import Document, DocumentStore
from src.domain.errors import ErrorCodes, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCKS_DIRNAME = ".locks"


# =============================================================================
# Atomic Write
# =============================================================================

def _fsync_dir(dir_path: Path) -> None:
    """
    Directory fsync (where supported).

    Needed for the rename entry itself to be durable. Mostly effective on
    Linux; some OS/filesystems do not support it.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_json(path: Path, data: dict) -> None:
    """
    Atomic JSON write.

    - no partial state: temp -> rename
    - file fsync + directory fsync where possible (warn and continue on failure)
    - temp file removed on failure, existing file left intact

    Args:
        path: target file
        data: JSON-serializable data
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)

        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


# =============================================================================
# Backend
# =============================================================================

class JsonFileDocumentStore(DocumentStore):
    """
    Document store persisted as one JSON file per collection.

    Blocking file I/O runs in a worker thread so the event loop keeps
    serving other requests.

    Args:
        data_dir: directory holding the collection files (created on demand)
        lock_timeout: seconds to wait for a collection lock
    """

    LOCK_TIMEOUT = 10.0

    def __init__(self, data_dir: Path, lock_timeout: float | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.lock_timeout = self.LOCK_TIMEOUT if lock_timeout is None else lock_timeout

    def collection_path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    @contextmanager
    def _locked(self, collection: str) -> Iterator[None]:
        """
        Hold the collection lock.

        Raises:
            StoreError: STORE_LOCK_TIMEOUT when the lock stays busy,
                STORE_LOCK_FAILED when the lock file cannot be created
        """
        try:
            locks_dir = self.data_dir / LOCKS_DIRNAME
            locks_dir.mkdir(parents=True, exist_ok=True)
            lock = FileLock(locks_dir / f"{collection}.lock", timeout=self.lock_timeout)
            lock.acquire()
        except Timeout as e:
            raise StoreError(
                f"Failed to acquire lock for collection '{collection}'",
                code=ErrorCodes.STORE_LOCK_TIMEOUT,
                collection=collection,
                timeout=self.lock_timeout,
            ) from e
        except OSError as e:
            raise StoreError(
                f"Failed to create lock for collection '{collection}': {e}",
                code=ErrorCodes.STORE_LOCK_FAILED,
                collection=collection,
            ) from e

        try:
            yield
        finally:
            lock.release()

    # -------------------------------------------------------------------------
    # Sync primitives (run under the collection lock)
    # -------------------------------------------------------------------------

    def _load(self, collection: str) -> list[Document]:
        path = self.collection_path(collection)
        if not path.exists():
            return []

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(
                f"Collection file is not valid JSON: {path.name}",
                code=ErrorCodes.STORE_CORRUPT,
                collection=collection,
            ) from e
        except OSError as e:
            raise StoreError(
                f"Failed to read collection: {e}",
                code=ErrorCodes.STORE_READ_FAILED,
                collection=collection,
            ) from e

        documents = data.get("documents") if isinstance(data, dict) else None
        if not isinstance(documents, list):
            raise StoreError(
                f"Collection file has no document list: {path.name}",
                code=ErrorCodes.STORE_CORRUPT,
                collection=collection,
            )
        return documents

    def _dump(self, collection: str, documents: list[Document]) -> None:
        try:
            atomic_write_json(
                self.collection_path(collection),
                {"collection": collection, "documents": documents},
            )
        except OSError as e:
            raise StoreError(
                f"Failed to write collection: {e}",
                code=ErrorCodes.STORE_WRITE_FAILED,
                collection=collection,
            ) from e

    def _read_locked(self, collection: str) -> list[Document]:
        with self._locked(collection):
            return self._load(collection)

    def _update_locked(
        self, collection: str, mutate: Callable[[list[Document]], T]
    ) -> T:
        with self._locked(collection):
            documents = self._load(collection)
            result = mutate(documents)
            self._dump(collection, documents)
            return result

    # -------------------------------------------------------------------------
    # DocumentStore primitives
    # -------------------------------------------------------------------------

    async def _read(self, collection: str) -> list[Document]:
        return await asyncio.to_thread(self._read_locked, collection)

    async def _update(
        self, collection: str, mutate: Callable[[list[Document]], T]
    ) -> T:
        return await asyncio.to_thread(self._update_locked, collection, mutate)

    def summary(self) -> dict[str, Any]:
        """Data directory and known collection files (for startup logs)."""
        files = sorted(p.stem for p in self.data_dir.glob("*.json")) if self.data_dir.exists() else []
        return {"data_dir": str(self.data_dir), "collections": files}
