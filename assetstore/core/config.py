"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from assetstore.core.enums import StorageProvider
from assetstore.services.storage.exceptions import ConfigurationError
from assetstore.services.storage.schemas import (
    LocalStorageSettings,
    S3StorageSettings,
    StorageConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug logging")

    # Backend selection
    storage_provider: StorageProvider = Field(
        default=StorageProvider.LOCAL,
        description="Storage backend: s3 (alias aws) or local",
    )

    # S3 settings
    aws_region: str = Field(default="us-east-1", description="S3 bucket region")
    aws_s3_bucket: str = Field(default="", description="S3 bucket name")
    aws_access_key_id: str = Field(default="", description="S3 access key ID")
    aws_secret_access_key: str = Field(default="", description="S3 secret access key")
    aws_cloudfront_domain: str | None = Field(
        default=None,
        description="Distribution domain for public URLs (e.g. CloudFront)",
    )
    aws_endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores",
    )

    # Local filesystem settings
    local_upload_path: str = Field(default="./uploads", description="Local storage root")
    local_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL local files are served from",
    )
    local_url_prefix: str = Field(default="uploads", description="URL path before the key")

    # Timeouts for backend I/O
    storage_connect_timeout: float = Field(
        default=10,
        gt=0,
        description="Backend connect timeout in seconds",
    )
    storage_read_timeout: float = Field(
        default=30,
        gt=0,
        description="Backend read timeout in seconds",
    )
    storage_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per backend request, retried by the network client",
    )

    @field_validator("storage_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: object) -> object:
        """Accept any case, and "aws" as the older name for S3."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "aws":
                return StorageProvider.S3
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If an environment value fails validation.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid storage settings: {e}", cause=e) from e


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    get_settings.cache_clear()


def load_storage_config(settings: Settings | None = None) -> StorageConfig:
    """Build the immutable storage config for the selected provider.

    Raises:
        ConfigurationError: If the environment is invalid or the provider is
            missing required settings.
    """
    settings = settings or get_settings()

    if settings.storage_provider == StorageProvider.S3:
        return StorageConfig(
            provider=StorageProvider.S3,
            s3=S3StorageSettings(
                bucket=settings.aws_s3_bucket,
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
                region=settings.aws_region,
                public_domain=settings.aws_cloudfront_domain or None,
                endpoint_url=settings.aws_endpoint_url or None,
                connect_timeout=settings.storage_connect_timeout,
                read_timeout=settings.storage_read_timeout,
                max_attempts=settings.storage_max_attempts,
            ),
        )

    return StorageConfig(
        provider=StorageProvider.LOCAL,
        local=LocalStorageSettings(
            root_path=settings.local_upload_path,
            base_url=settings.local_base_url,
            url_prefix=settings.local_url_prefix,
        ),
    )
