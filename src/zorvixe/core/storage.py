"""
Document Storage

Local-directory content store for uploaded candidate documents. Objects are
addressed by an opaque key (a flat file name under the storage root).

Uploads are received in two phases:
1. ``receive`` streams the request body into a staging file, enforcing the
   content type and size ceiling while it reads. It is an async context
   manager and the staging file is deleted on every exit path.
2. ``promote`` moves the staged file to its permanent key. A promoted file
   is no longer owned by the staging scope; callers that promote and then
   fail to commit their database transaction must ``delete`` the key.

Blocking filesystem calls run in the threadpool so the event loop is never
blocked by disk I/O.
"""

import logging
import os
import secrets
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from zorvixe.core.config import settings

logger = logging.getLogger(__name__)

STAGING_DIRNAME = ".staging"
CHUNK_SIZE = 1024 * 1024  # 1 MiB


class StorageError(Exception):
    """The underlying filesystem failed."""


class UploadTooLargeError(Exception):
    """The upload exceeded the configured size ceiling."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(f"File exceeds the maximum size of {max_bytes // (1024 * 1024)} MB")


class UnsupportedContentTypeError(Exception):
    """The declared content type is not accepted."""

    def __init__(self, content_type: str | None, allowed: frozenset[str]):
        self.content_type = content_type
        self.allowed = allowed
        super().__init__(f"Only {', '.join(sorted(allowed))} files are allowed")


@dataclass
class StagedDocument:
    """A received upload waiting in the staging area."""

    path: Path
    original_name: str
    content_type: str
    size: int = 0
    promoted_key: str | None = None

    @property
    def promoted(self) -> bool:
        return self.promoted_key is not None


class DocumentStorage:
    """Content store rooted at a local directory."""

    def __init__(self, root: str | Path, chunk_size: int = CHUNK_SIZE):
        self.root = Path(root)
        self.staging_dir = self.root / STAGING_DIRNAME
        self.chunk_size = chunk_size

    def new_key(self, prefix: str, suffix: str = "") -> str:
        """Generate a fresh object key, e.g. ``candidate-1739991234123-482019233.pdf``."""
        timestamp = int(time.time() * 1000)
        return f"{prefix}-{timestamp}-{secrets.randbelow(10**9)}{suffix}"

    def path_for(self, key: str) -> Path:
        """Resolve a key to its path. Keys are flat file names."""
        if not key or Path(key).name != key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / key

    @asynccontextmanager
    async def receive(
        self,
        upload: UploadFile,
        *,
        max_bytes: int,
        allowed_content_types: frozenset[str],
    ) -> AsyncIterator[StagedDocument]:
        """
        Stream an upload into the staging area.

        Raises:
            UnsupportedContentTypeError: Declared content type not accepted
            UploadTooLargeError: More than ``max_bytes`` were received
            StorageError: The staging file could not be written
        """
        if upload.content_type not in allowed_content_types:
            raise UnsupportedContentTypeError(upload.content_type, allowed_content_types)

        staged = StagedDocument(
            path=self.staging_dir / f"{uuid4().hex}.part",
            original_name=Path(upload.filename or "document").name,
            content_type=upload.content_type,
        )

        try:
            await self._write_staged(upload, staged, max_bytes)
            yield staged
        finally:
            await run_in_threadpool(staged.path.unlink, missing_ok=True)

    async def _write_staged(self, upload: UploadFile, staged: StagedDocument, max_bytes: int) -> None:
        try:
            await run_in_threadpool(self.staging_dir.mkdir, parents=True, exist_ok=True)
            handle = await run_in_threadpool(staged.path.open, "wb")
        except OSError as e:
            raise StorageError(f"Could not open staging file: {e}") from e

        try:
            while chunk := await upload.read(self.chunk_size):
                staged.size += len(chunk)
                if staged.size > max_bytes:
                    raise UploadTooLargeError(max_bytes)
                await run_in_threadpool(handle.write, chunk)
        except OSError as e:
            raise StorageError(f"Could not write staging file: {e}") from e
        finally:
            await run_in_threadpool(handle.close)

    async def promote(self, staged: StagedDocument, key: str) -> None:
        """Move a staged upload to its permanent key."""
        destination = self.path_for(key)
        try:
            await run_in_threadpool(os.replace, staged.path, destination)
        except OSError as e:
            raise StorageError(f"Could not store document {key}: {e}") from e
        staged.promoted_key = key

    async def delete(self, key: str) -> None:
        """Delete a stored object. Missing objects are ignored."""
        await run_in_threadpool(self.path_for(key).unlink, missing_ok=True)

    async def exists(self, key: str) -> bool:
        return await run_in_threadpool(self.path_for(key).is_file)

    async def purge_staging(self, older_than: timedelta) -> int:
        """Delete staging files older than ``older_than``. Returns the count removed."""
        return await run_in_threadpool(self._purge_staging_sync, older_than.total_seconds())

    def _purge_staging_sync(self, max_age_seconds: float) -> int:
        if not self.staging_dir.is_dir():
            return 0

        cutoff = time.time() - max_age_seconds
        removed = 0
        for path in self.staging_dir.glob("*.part"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        return removed


@lru_cache
def get_document_storage() -> DocumentStorage:
    """Storage configured from settings. Usable as a FastAPI dependency."""
    storage = DocumentStorage(settings.upload_dir)
    storage.root.mkdir(parents=True, exist_ok=True)
    logger.info(f"Document storage rooted at {storage.root.resolve()}")
    return storage
