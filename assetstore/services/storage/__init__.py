"""Storage service module.

Provides asset storage over interchangeable backends (S3-compatible object
store or local filesystem) with an image transformation pipeline.
"""

from .base import StorageBackend
from .exceptions import (
    BackendUnavailableError,
    ConfigurationError,
    PartialUploadError,
    ProcessingError,
    StorageError,
    StorageValidationError,
)
from .factory import create_backend
from .images import ImagePipeline, is_image
from .keys import derive_thumbnail_key, generate_key
from .local import LocalStorageBackend
from .s3 import S3StorageBackend
from .schemas import (
    FileMetadata,
    ImageFormat,
    LocalStorageSettings,
    ProcessedAsset,
    ResizeOptions,
    S3StorageSettings,
    StorageConfig,
    StoredObject,
    UploadOptions,
    UploadResult,
)
from .service import AssetStorageService

__all__ = [
    # Protocol
    "StorageBackend",
    # Implementations
    "AssetStorageService",
    "ImagePipeline",
    "LocalStorageBackend",
    "S3StorageBackend",
    "create_backend",
    # Keys
    "derive_thumbnail_key",
    "generate_key",
    "is_image",
    # Schemas
    "FileMetadata",
    "ImageFormat",
    "LocalStorageSettings",
    "ProcessedAsset",
    "ResizeOptions",
    "S3StorageSettings",
    "StorageConfig",
    "StoredObject",
    "UploadOptions",
    "UploadResult",
    # Exceptions
    "BackendUnavailableError",
    "ConfigurationError",
    "PartialUploadError",
    "ProcessingError",
    "StorageError",
    "StorageValidationError",
]
