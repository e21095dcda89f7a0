from enum import Enum


class StorageProvider(str, Enum):
    """Available storage backends."""

    S3 = "s3"
    LOCAL = "local"
    # Future providers:
    # GCS = "gcs"


class ResizeFit(str, Enum):
    """How a resized image fills its target box."""

    COVER = "cover"  # Fill the box, crop the overflow
    CONTAIN = "contain"  # Fit inside the box, pad the remainder
    FILL = "fill"  # Stretch to the box, ignoring aspect ratio
    INSIDE = "inside"  # Fit inside the box, no padding
    OUTSIDE = "outside"  # Cover the box, no cropping


class FileType(str, Enum):
    """Coarse file categories derived from MIME types."""

    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    PRESENTATION = "presentation"
    DOCUMENT = "document"

    @classmethod
    def from_content_type(cls, content_type: str) -> "FileType":
        """Classify a MIME type."""
        content_type = content_type.lower()
        if content_type.startswith("image/"):
            return cls.IMAGE
        if content_type.startswith("video/"):
            return cls.VIDEO
        if "pdf" in content_type:
            return cls.PDF
        if "presentation" in content_type or "powerpoint" in content_type:
            return cls.PRESENTATION
        return cls.DOCUMENT
