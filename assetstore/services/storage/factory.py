"""Backend selection from the immutable storage config."""

from __future__ import annotations

from assetstore.core.enums import StorageProvider

from .base import StorageBackend
from .exceptions import ConfigurationError
from .local import LocalStorageBackend
from .s3 import S3StorageBackend
from .schemas import StorageConfig


def create_backend(config: StorageConfig) -> StorageBackend:
    """Build the backend named by ``config.provider``.

    Raises:
        ConfigurationError: If the provider has no implementation.
    """
    if config.provider == StorageProvider.S3 and config.s3 is not None:
        return S3StorageBackend(config.s3)
    if config.provider == StorageProvider.LOCAL and config.local is not None:
        return LocalStorageBackend(config.local)
    raise ConfigurationError(f"Unsupported storage provider: {config.provider}")
