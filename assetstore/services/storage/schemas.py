"""Storage service DTOs using msgspec."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import msgspec

from assetstore.core.enums import ResizeFit, StorageProvider

from .exceptions import ConfigurationError, ProcessingError

# Explicit defaults
DEFAULT_QUALITY = 85  # Applied only when a format is requested without quality
DEFAULT_URL_EXPIRY = 3600  # Signed URL lifetime in seconds
THUMBNAIL_SIZE = (300, 300)
THUMBNAIL_QUALITY = 80


class ImageFormat(str, Enum):
    """Output formats the image pipeline can encode."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @classmethod
    def from_content_type(cls, content_type: str) -> ImageFormat:
        """Get format from MIME type."""
        mapping = {
            "image/png": cls.PNG,
            "image/jpeg": cls.JPEG,
            "image/jpg": cls.JPEG,
            "image/webp": cls.WEBP,
        }
        fmt = mapping.get(content_type.lower())
        if fmt is None:
            raise ValueError(f"Unsupported content type: {content_type}")
        return fmt

    @property
    def content_type(self) -> str:
        """Get MIME type for format."""
        return {
            self.PNG: "image/png",
            self.JPEG: "image/jpeg",
            self.WEBP: "image/webp",
        }[self]

    @property
    def pillow_format(self) -> str:
        """Format name understood by Pillow's encoder registry."""
        return self.value.upper()


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


class S3StorageSettings(msgspec.Struct, frozen=True, kw_only=True):
    """S3-compatible object store configuration."""

    bucket: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    region: str = "us-east-1"
    public_domain: str | None = None  # CloudFront or other distribution domain
    endpoint_url: str | None = None  # Custom endpoint for S3-compatible stores
    connect_timeout: float = 10
    read_timeout: float = 30
    max_attempts: int = 3

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("bucket", "access_key_id", "secret_access_key")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"S3 storage is missing required settings: {', '.join(missing)}"
            )


class LocalStorageSettings(msgspec.Struct, frozen=True, kw_only=True):
    """Local filesystem configuration."""

    root_path: str = ""
    base_url: str = ""
    url_prefix: str = "uploads"

    def __post_init__(self) -> None:
        missing = [name for name in ("root_path", "base_url") if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Local storage is missing required settings: {', '.join(missing)}"
            )


class StorageConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Immutable backend selection plus its connection parameters."""

    provider: StorageProvider
    s3: S3StorageSettings | None = None
    local: LocalStorageSettings | None = None

    def __post_init__(self) -> None:
        if self.provider == StorageProvider.S3 and self.s3 is None:
            raise ConfigurationError("S3 provider selected but no S3 settings given")
        if self.provider == StorageProvider.LOCAL and self.local is None:
            raise ConfigurationError("Local provider selected but no local settings given")


# -----------------------------------------------------------------------------
# Upload options
# -----------------------------------------------------------------------------


class ResizeOptions(msgspec.Struct, kw_only=True):
    """Target box for a resize. A missing side follows the source aspect ratio."""

    width: int | None = None
    height: int | None = None
    fit: ResizeFit = ResizeFit.COVER

    def __post_init__(self) -> None:
        if self.width is None and self.height is None:
            raise ProcessingError("Resize requires a width or a height")
        for side in (self.width, self.height):
            if side is not None and side <= 0:
                raise ProcessingError(f"Resize dimensions must be positive, got {side}")
        try:
            self.fit = ResizeFit(self.fit)
        except ValueError as e:
            raise ProcessingError(f"Unsupported resize fit: {self.fit}") from e


class UploadOptions(msgspec.Struct, kw_only=True):
    """Per-call upload options. Every feature is off unless set.

    ``quality`` falls back to ``DEFAULT_QUALITY`` only when ``format`` is set.
    Thumbnails are always ``THUMBNAIL_SIZE`` JPEGs at ``THUMBNAIL_QUALITY``.
    """

    folder: str | None = None
    resize: ResizeOptions | None = None
    quality: int | None = None
    format: ImageFormat | None = None
    generate_thumbnail: bool = False
    make_public: bool = False

    def __post_init__(self) -> None:
        if self.quality is not None and not 1 <= self.quality <= 100:
            raise ProcessingError(f"Quality must be between 1 and 100, got {self.quality}")
        if self.format is not None:
            try:
                self.format = ImageFormat(self.format)
            except ValueError as e:
                raise ProcessingError(f"Unsupported output format: {self.format}") from e


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


class ProcessedAsset(msgspec.Struct, kw_only=True):
    """Pipeline output. Dimensions are only known for images."""

    data: bytes
    mime_type: str
    width: int | None = None
    height: int | None = None

    @property
    def size(self) -> int:
        return len(self.data)


class StoredObject(msgspec.Struct, kw_only=True):
    """Result of writing one object to a backend."""

    key: str
    url: str
    public_url: str | None = None


class UploadResult(msgspec.Struct, kw_only=True):
    """Result of a successful upload."""

    key: str
    url: str  # May be time-limited
    size: int
    mime_type: str
    public_url: str | None = None
    thumbnail_key: str | None = None
    thumbnail_url: str | None = None
    width: int | None = None
    height: int | None = None


class FileMetadata(msgspec.Struct, kw_only=True):
    """Stored object metadata."""

    size: int
    last_modified: datetime
    mime_type: str
