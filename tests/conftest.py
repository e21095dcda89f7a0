"""Pytest configuration and shared fixtures."""

import io
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from assetstore.core.config import Settings
from assetstore.services.storage import (
    AssetStorageService,
    LocalStorageBackend,
    LocalStorageSettings,
    S3StorageBackend,
    S3StorageSettings,
)


def make_image(
    width: int,
    height: int,
    fmt: str = "JPEG",
    mode: str = "RGB",
) -> bytes:
    """Encode a two-tone test image."""
    color: Any = (200, 40, 40) if mode == "RGB" else (200, 40, 40, 128)
    img = Image.new(mode, (width, height), color)
    img.paste((20, 20, 220) if mode == "RGB" else (20, 20, 220, 255), (0, 0, width // 2, height))
    buf = io.BytesIO()
    img.save(buf, fmt)
    return buf.getvalue()


def image_size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


def not_found_error(operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, operation)


class FakeS3Client:
    """In-memory stand-in for the aioboto3 S3 client."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}

    async def put_object(
        self,
        *,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str,
        ACL: str,
    ) -> dict[str, Any]:
        self.objects[Key] = {
            "Bucket": Bucket,
            "Body": Body,
            "ContentType": ContentType,
            "ACL": ACL,
            "LastModified": datetime.now(timezone.utc),
        }
        return {}

    async def head_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        obj = self.objects.get(Key)
        if obj is None:
            raise not_found_error()
        return {
            "ContentLength": len(obj["Body"]),
            "ContentType": obj["ContentType"],
            "LastModified": obj["LastModified"],
        }

    async def delete_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        self.objects.pop(Key, None)
        return {}

    async def generate_presigned_url(
        self,
        client_method: str,
        Params: dict[str, str],
        ExpiresIn: int,
    ) -> str:
        return (
            f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}"
            f"?X-Amz-Expires={ExpiresIn}&X-Amz-Signature=test"
        )

    async def head_bucket(self, *, Bucket: str) -> dict[str, Any]:
        return {}


def attach_client(backend: S3StorageBackend, client: Any) -> S3StorageBackend:
    """Route a backend's client context to ``client``."""

    @asynccontextmanager
    async def _get_client() -> AsyncIterator[Any]:
        yield client

    backend._get_client = _get_client  # type: ignore[method-assign]
    return backend


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Provide test settings for the local backend."""
    return Settings(
        _env_file=None,
        storage_provider="local",
        local_upload_path=str(tmp_path / "uploads"),
        local_base_url="http://localhost:3000",
        debug=True,
    )


@pytest.fixture
def local_settings(tmp_path: Path) -> LocalStorageSettings:
    return LocalStorageSettings(
        root_path=str(tmp_path / "uploads"),
        base_url="http://localhost:3000",
    )


@pytest.fixture
def local_backend(local_settings: LocalStorageSettings) -> LocalStorageBackend:
    return LocalStorageBackend(local_settings)


@pytest.fixture
def s3_settings() -> S3StorageSettings:
    return S3StorageSettings(
        bucket="test-bucket",
        access_key_id="test_key",
        secret_access_key="test_secret",
        region="eu-west-1",
    )


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def s3_backend(s3_settings: S3StorageSettings, fake_s3: FakeS3Client) -> S3StorageBackend:
    return attach_client(S3StorageBackend(s3_settings), fake_s3)


@pytest.fixture(params=["local", "s3"])
def backend(
    request: pytest.FixtureRequest,
    local_backend: LocalStorageBackend,
    s3_backend: S3StorageBackend,
) -> LocalStorageBackend | S3StorageBackend:
    """Each backend variant in turn."""
    return local_backend if request.param == "local" else s3_backend


@pytest.fixture
def local_service(local_backend: LocalStorageBackend) -> AssetStorageService:
    return AssetStorageService(local_backend)


@pytest.fixture
def service(backend: LocalStorageBackend | S3StorageBackend) -> AssetStorageService:
    return AssetStorageService(backend)


@pytest.fixture
def image_factory():
    """Provide the test image encoder."""
    return make_image


@pytest.fixture
def read_image_size():
    return image_size


@pytest.fixture
def s3_backend_with(s3_settings: S3StorageSettings):
    """Build S3 backends talking to an arbitrary client double."""

    def _build(client: Any, settings: S3StorageSettings | None = None) -> S3StorageBackend:
        return attach_client(S3StorageBackend(settings or s3_settings), client)

    return _build
