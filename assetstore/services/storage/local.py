"""Local filesystem storage backend."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .base import validate_expiry, validate_key
from .exceptions import BackendUnavailableError, StorageValidationError
from .schemas import (
    DEFAULT_URL_EXPIRY,
    FileMetadata,
    LocalStorageSettings,
    StoredObject,
)

logger = logging.getLogger(__name__)


class LocalStorageBackend:
    """Filesystem storage backend.

    Files live under ``root_path``; URLs are a static join of ``base_url``,
    ``url_prefix`` and the key. Nothing here is access-controlled, so URL
    expiry is ignored. Blocking file I/O runs in worker threads.
    """

    def __init__(self, settings: LocalStorageSettings) -> None:
        self._settings = settings
        self._root = Path(settings.root_path).resolve()
        logger.info(f"Initialized local file storage at {self._root}")

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        validate_key(key)
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root):
            raise StorageValidationError(f"Storage key escapes storage root: {key}")
        return path

    def url_for(self, key: str) -> str:
        base = self._settings.base_url.rstrip("/")
        prefix = self._settings.url_prefix.strip("/")
        return f"{base}/{prefix}/{key}" if prefix else f"{base}/{key}"

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        # exist_ok keeps concurrent uploads into one folder safe
        path.parent.mkdir(parents=True, exist_ok=True)
        # Readers see either the old file or the complete new one, never a torn write
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    async def put(
        self,
        key: str,
        data: bytes,
        mime_type: str,
        *,
        make_public: bool = False,
    ) -> StoredObject:
        """Write a file under the storage root."""
        path = self._path(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            logger.error(f"Local write failed for {path}: {e}")
            raise BackendUnavailableError(f"Failed to write file: {e}", cause=e) from e

        logger.info(f"Stored file locally: {key} ({len(data)} bytes, {mime_type})")
        url = self.url_for(key)
        return StoredObject(key=key, url=url, public_url=url if make_public else None)

    async def read_url(
        self,
        key: str,
        *,
        expires_in: int = DEFAULT_URL_EXPIRY,
    ) -> str:
        """Return the static URL; local paths never expire."""
        self._path(key)
        validate_expiry(expires_in)
        return self.url_for(key)

    async def delete(self, key: str) -> bool:
        """Delete a file. A missing file is logged and ignored."""
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.warning(f"Failed to delete local file, not found: {path}")
            return False
        except OSError as e:
            logger.error(f"Local delete failed for {path}: {e}")
            raise BackendUnavailableError(f"Failed to delete file: {e}", cause=e) from e

        logger.info(f"Deleted local file: {key}")
        return True

    async def exists(self, key: str) -> bool:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.is_file)
        except OSError as e:
            raise BackendUnavailableError(f"Failed to check file existence: {e}", cause=e) from e

    async def stat(self, key: str) -> FileMetadata | None:
        """Get size, modification time and guessed MIME type of a file."""
        path = self._path(key)
        try:
            stats = await asyncio.to_thread(path.stat)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Local stat failed for {path}: {e}")
            raise BackendUnavailableError(f"Failed to read file metadata: {e}", cause=e) from e

        mime_type, _ = mimetypes.guess_type(path.name)
        return FileMetadata(
            size=stats.st_size,
            last_modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
            mime_type=mime_type or "application/octet-stream",
        )

    async def health_check(self) -> bool:
        """Check that the storage root exists or can be created."""
        try:
            await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Local storage health check failed: {e}")
            return False
        return True

    async def close(self) -> None:
        """Nothing to release for the filesystem backend."""
