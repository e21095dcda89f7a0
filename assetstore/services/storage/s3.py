"""S3-compatible object store backend."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .base import validate_expiry, validate_key
from .exceptions import BackendUnavailableError
from .schemas import (
    DEFAULT_URL_EXPIRY,
    FileMetadata,
    S3StorageSettings,
    StoredObject,
)

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in NOT_FOUND_CODES


def _error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Message") or str(error)
    return str(error)


class S3StorageBackend:
    """S3 storage backend.

    Objects are written with a private or public-read ACL. Access URLs are
    presigned GET URLs; public URLs point at the distribution domain when
    one is configured, else at the bucket itself.
    """

    def __init__(self, settings: S3StorageSettings) -> None:
        """Initialize S3 storage backend.

        Args:
            settings: Validated S3 configuration.
        """
        self._settings = settings
        self._session = aioboto3.Session()
        self._client_config = Config(
            signature_version="s3v4",
            retries={"max_attempts": settings.max_attempts, "mode": "adaptive"},
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )
        logger.info(
            f"Initialized S3 storage: bucket={settings.bucket} region={settings.region}"
        )

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[S3Client]:
        """Get S3 client with context management.

        Yields:
            Configured S3 client.
        """
        async with self._session.client(  # type: ignore[reportGeneralTypeIssues]
            "s3",
            region_name=self._settings.region,
            endpoint_url=self._settings.endpoint_url,
            aws_access_key_id=self._settings.access_key_id,
            aws_secret_access_key=self._settings.secret_access_key,
            config=self._client_config,
        ) as client:
            yield client

    def public_url(self, key: str) -> str:
        """Stable, non-expiring URL for a public-read object."""
        if self._settings.public_domain:
            domain = self._settings.public_domain.removeprefix("https://").rstrip("/")
            return f"https://{domain}/{key}"
        if self._settings.endpoint_url:
            return f"{self._settings.endpoint_url.rstrip('/')}/{self._settings.bucket}/{key}"
        return f"https://{self._settings.bucket}.s3.{self._settings.region}.amazonaws.com/{key}"

    async def _presign(self, client: S3Client, key: str, expires_in: int) -> str:
        return await client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._settings.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    async def put(
        self,
        key: str,
        data: bytes,
        mime_type: str,
        *,
        make_public: bool = False,
    ) -> StoredObject:
        """Upload an object to S3."""
        validate_key(key)
        try:
            async with self._get_client() as client:
                await client.put_object(
                    Bucket=self._settings.bucket,
                    Key=key,
                    Body=data,
                    ContentType=mime_type,
                    ACL="public-read" if make_public else "private",
                )
                url = await self._presign(client, key, DEFAULT_URL_EXPIRY)

        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 upload failed for {key}: {e}")
            raise BackendUnavailableError(
                f"Failed to upload file: {_error_message(e)}",
                cause=e,
            ) from e

        logger.info(f"Uploaded file to S3: {key} ({len(data)} bytes, public={make_public})")
        return StoredObject(
            key=key,
            url=url,
            public_url=self.public_url(key) if make_public else None,
        )

    async def read_url(
        self,
        key: str,
        *,
        expires_in: int = DEFAULT_URL_EXPIRY,
    ) -> str:
        """Generate a presigned URL for temporary access."""
        validate_key(key)
        validate_expiry(expires_in)
        try:
            async with self._get_client() as client:
                return await self._presign(client, key, expires_in)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate presigned URL for {key}: {e}")
            raise BackendUnavailableError(
                f"Failed to generate URL: {_error_message(e)}",
                cause=e,
            ) from e

    async def delete(self, key: str) -> bool:
        """Delete an object from S3. Missing keys are a no-op."""
        validate_key(key)
        try:
            async with self._get_client() as client:
                # Check if exists first
                try:
                    await client.head_object(Bucket=self._settings.bucket, Key=key)
                except ClientError as e:
                    if _is_not_found(e):
                        logger.debug(f"Delete skipped, not in S3: {key}")
                        return False
                    raise

                await client.delete_object(Bucket=self._settings.bucket, Key=key)
                logger.info(f"Deleted file from S3: {key}")
                return True

        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 delete failed for {key}: {e}")
            raise BackendUnavailableError(
                f"Failed to delete file: {_error_message(e)}",
                cause=e,
            ) from e

    async def exists(self, key: str) -> bool:
        """Check if an object exists in S3."""
        return await self.stat(key) is not None

    async def stat(self, key: str) -> FileMetadata | None:
        """Get object metadata from a HEAD request."""
        validate_key(key)
        try:
            async with self._get_client() as client:
                head = await client.head_object(Bucket=self._settings.bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            logger.error(f"S3 head failed for {key}: {e}")
            raise BackendUnavailableError(
                f"Failed to read file metadata: {_error_message(e)}",
                cause=e,
            ) from e
        except BotoCoreError as e:
            logger.error(f"S3 head failed for {key}: {e}")
            raise BackendUnavailableError(f"Failed to read file metadata: {e}", cause=e) from e

        return FileMetadata(
            size=head.get("ContentLength", 0),
            last_modified=head.get("LastModified") or datetime.now(timezone.utc),
            mime_type=head.get("ContentType", "application/octet-stream"),
        )

    async def health_check(self) -> bool:
        """Check if the bucket is accessible."""
        try:
            async with self._get_client() as client:
                await client.head_bucket(Bucket=self._settings.bucket)
                return True
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"S3 health check failed: {e}")
            return False

    async def close(self) -> None:
        """Nothing to release; each call opens and closes its own client."""
