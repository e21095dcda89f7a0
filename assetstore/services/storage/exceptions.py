"""Storage service exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schemas import UploadResult


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigurationError(StorageError):
    """Raised when settings are invalid or the selected backend is missing some."""


class StorageValidationError(StorageError):
    """Raised when caller input fails validation (empty data, bad key, etc.)."""


class ProcessingError(StorageError):
    """Raised when image bytes cannot be decoded or transformed."""


class BackendUnavailableError(StorageError):
    """Raised when the storage backend fails at the network or filesystem level."""


class PartialUploadError(StorageError):
    """Raised when the main object was stored but its thumbnail was not.

    The stored object is not rolled back. ``result`` describes it so the
    caller can retry the thumbnail alone or accept the asset without one.
    """

    def __init__(
        self,
        message: str,
        *,
        result: UploadResult,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.result = result
