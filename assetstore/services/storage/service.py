"""Asset storage service - orchestrates image processing and backend storage.

This is the public entry point for storing assets. Each upload is a single
linear pipeline: resolve input, transform, store the main object, then
optionally derive and store a thumbnail from the original bytes.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import mimetypes
from typing import IO

from .base import StorageBackend
from .exceptions import PartialUploadError, StorageError, StorageValidationError
from .factory import create_backend
from .images import ImagePipeline, is_image
from .keys import derive_thumbnail_key, file_extension, generate_key
from .schemas import (
    DEFAULT_URL_EXPIRY,
    FileMetadata,
    StorageConfig,
    UploadOptions,
    UploadResult,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Raw bytes, a binary file object, or any object with an async ``read()``
# and optional ``content_type`` (framework upload wrappers).
UploadSource = bytes | bytearray | memoryview | IO[bytes]


def guess_content_type(filename: str) -> str:
    """Infer a MIME type from a filename's extension."""
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


async def _read_source(source: UploadSource) -> tuple[bytes, str | None]:
    """Read upload bytes plus any content type the source declares."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source), None

    read = getattr(source, "read", None)
    if read is None:
        raise StorageValidationError(f"Unsupported upload input: {type(source).__name__}")

    if inspect.iscoroutinefunction(read):
        data = await read()
    else:
        data = await asyncio.to_thread(read)

    declared = getattr(source, "content_type", None)
    return bytes(data), declared if isinstance(declared, str) and declared else None


class AssetStorageService:
    """Service for storing, transforming and serving assets.

    Stateless per call: the backend and config are shared read-only, so
    concurrent uploads need no coordination.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        pipeline: ImagePipeline | None = None,
        config: StorageConfig | None = None,
    ) -> None:
        """Initialize asset storage service.

        Args:
            backend: Storage backend for object I/O.
            pipeline: Image pipeline (a default one is created if omitted).
            config: Config the backend was built from, if any.
        """
        self._backend = backend
        self._pipeline = pipeline or ImagePipeline()
        self._config = config

    @classmethod
    def from_config(cls, config: StorageConfig) -> AssetStorageService:
        """Create a service with the backend selected by ``config``."""
        return cls(create_backend(config), config=config)

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def storage_config(self) -> StorageConfig | None:
        """The immutable config this service was built from.

        ``None`` when a backend was injected directly rather than built
        through ``from_config``.
        """
        return self._config

    # -------------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------------

    async def upload(
        self,
        source: UploadSource,
        filename: str,
        options: UploadOptions | None = None,
        *,
        content_type: str | None = None,
    ) -> UploadResult:
        """Store an asset, transforming images and deriving a thumbnail.

        Args:
            source: Raw bytes or a file handle.
            filename: Original filename; its extension ends up in the key.
            options: Upload options. Every feature is off when omitted.
            content_type: Explicit MIME type. Falls back to the source's
                declared type, then to the filename extension.

        Returns:
            Upload result. Thumbnail fields are set only when a thumbnail
            was requested for an image.

        Raises:
            StorageValidationError: If the input is empty or the filename
                has no extension.
            ProcessingError: If the image can't be processed. Nothing is
                written in that case.
            BackendUnavailableError: If storing the main object fails.
            PartialUploadError: If the main object was stored but the
                thumbnail was not.
        """
        options = options or UploadOptions()
        file_extension(filename)

        data, declared_type = await _read_source(source)
        if not data:
            raise StorageValidationError("File is empty")
        mime_type = content_type or declared_type or guess_content_type(filename)

        logger.info(f"Uploading file: {filename} ({len(data)} bytes, {mime_type})")

        processed = await asyncio.to_thread(self._pipeline.transform, data, mime_type, options)

        key = generate_key(filename, options.folder)
        stored = await self._backend.put(
            key,
            processed.data,
            processed.mime_type,
            make_public=options.make_public,
        )

        result = UploadResult(
            key=key,
            url=stored.url,
            public_url=stored.public_url if options.make_public else None,
            size=processed.size,
            mime_type=processed.mime_type,
            width=processed.width,
            height=processed.height,
        )

        if not (options.generate_thumbnail and is_image(mime_type)):
            return result

        thumbnail_key = derive_thumbnail_key(key)
        try:
            # Built from the original bytes, not the resized main asset
            thumbnail = await asyncio.to_thread(self._pipeline.thumbnail, data)
            thumb_stored = await self._backend.put(
                thumbnail_key,
                thumbnail.data,
                thumbnail.mime_type,
                make_public=options.make_public,
            )
        except StorageError as e:
            logger.error(f"Thumbnail upload failed for {key}: {e}")
            raise PartialUploadError(
                f"Stored {key} but its thumbnail failed: {e}",
                result=result,
                cause=e,
            ) from e

        logger.info(f"Stored thumbnail {thumbnail_key} for {key}")
        result.thumbnail_key = thumbnail_key
        result.thumbnail_url = thumb_stored.url
        return result

    # -------------------------------------------------------------------------
    # Query / maintenance
    # -------------------------------------------------------------------------

    async def read_url(self, key: str, expires_in: int = DEFAULT_URL_EXPIRY) -> str:
        """Get a fresh access URL for a stored object."""
        return await self._backend.read_url(key, expires_in=expires_in)

    async def delete(self, key: str) -> bool:
        """Delete a stored object. Deleting a missing key is not an error."""
        logger.info(f"Deleting file: {key}")
        return await self._backend.delete(key)

    async def exists(self, key: str) -> bool:
        return await self._backend.exists(key)

    async def stat(self, key: str) -> FileMetadata | None:
        """Get metadata for a stored object, or None if it doesn't exist."""
        return await self._backend.stat(key)

    async def health_check(self) -> bool:
        return await self._backend.health_check()

    async def close(self) -> None:
        await self._backend.close()
