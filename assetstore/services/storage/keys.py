"""Storage key naming.

Key format:
- Objects: [{folder}/]{uuid4}_{epoch_ms}.{ext}
- Thumbnails: [{folder}/]{uuid4}_{epoch_ms}_thumb.jpg

A thumbnail key is always derivable from its parent key, so the
relationship never needs to be stored.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from .exceptions import StorageValidationError

THUMBNAIL_SUFFIX = "_thumb.jpg"


def file_extension(filename: str) -> str:
    """Return the lower-cased extension of a filename, without the dot.

    Raises:
        StorageValidationError: If the filename has no usable extension.
    """
    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    stem, dot, ext = basename.rpartition(".")
    if not dot or not stem or not ext.isalnum():
        raise StorageValidationError(f"Filename has no usable extension: {filename!r}")
    return ext.lower()


def generate_key(filename: str, folder: str | None = None) -> str:
    """Build a collision-resistant key for a new upload.

    Args:
        filename: Original filename, used only for its extension.
        folder: Optional prefix, joined with a single slash.

    Returns:
        Storage key string.
    """
    ext = file_extension(filename)
    timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    key = f"{uuid4()}_{timestamp}.{ext}"

    if folder and (folder := folder.strip("/")):
        return f"{folder}/{key}"
    return key


def derive_thumbnail_key(key: str) -> str:
    """Replace the extension of ``key`` with the thumbnail suffix."""
    prefix, slash, name = key.rpartition("/")
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return f"{prefix}{slash}{stem}{THUMBNAIL_SUFFIX}"
