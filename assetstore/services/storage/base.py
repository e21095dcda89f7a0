"""Storage backend protocol definition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .exceptions import StorageValidationError
from .schemas import DEFAULT_URL_EXPIRY

if TYPE_CHECKING:
    from .schemas import FileMetadata, StoredObject


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for storage backend implementations.

    Both variants honour the same contract: missing keys are never an
    error for ``delete``, ``exists`` or ``stat``, and transport failures
    surface as ``BackendUnavailableError``.
    """

    async def put(
        self,
        key: str,
        data: bytes,
        mime_type: str,
        *,
        make_public: bool = False,
    ) -> StoredObject:
        """Write an object.

        Args:
            key: Storage key for the object.
            data: Raw bytes to store.
            mime_type: Content type recorded with the object.
            make_public: Whether the object should get a stable public URL.

        Returns:
            Stored object with an access URL, plus a public URL only when
            ``make_public`` is set.

        Raises:
            StorageValidationError: If the key is malformed.
            BackendUnavailableError: If the write fails.
        """
        ...

    async def read_url(
        self,
        key: str,
        *,
        expires_in: int = DEFAULT_URL_EXPIRY,
    ) -> str:
        """Generate a fresh access URL for an existing key.

        Args:
            key: Storage key for the object.
            expires_in: URL validity duration in seconds.

        Returns:
            Access URL. Backends without access control ignore the expiry.
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete an object.

        Args:
            key: Storage key for the object.

        Returns:
            True if the object was deleted, False if it didn't exist.

        Raises:
            BackendUnavailableError: If deletion fails.
        """
        ...

    async def exists(self, key: str) -> bool:
        """Check if an object exists without transferring its body."""
        ...

    async def stat(self, key: str) -> FileMetadata | None:
        """Get object metadata.

        Returns:
            Metadata if the object exists, None otherwise.
        """
        ...

    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        ...

    async def close(self) -> None:
        """Release any held resources. Called during shutdown."""
        ...


def validate_key(key: str) -> str:
    """Reject keys that are empty or could escape their namespace.

    Raises:
        StorageValidationError: If the key is malformed.
    """
    if not key:
        raise StorageValidationError("Storage key is empty")
    if key.startswith("/") or "\\" in key:
        raise StorageValidationError(f"Invalid storage key: {key}")
    if any(part in ("", ".", "..") for part in key.split("/")):
        raise StorageValidationError(f"Invalid storage key: {key}")
    return key


def validate_expiry(expires_in: int) -> int:
    """Ensure a URL lifetime is a positive number of seconds."""
    if expires_in <= 0:
        raise StorageValidationError(f"URL expiry must be positive, got {expires_in}")
    return expires_in
