"""Tests for the local filesystem backend."""

import asyncio
import errno
from pathlib import Path

import pytest

from assetstore.services.storage import (
    BackendUnavailableError,
    LocalStorageBackend,
    LocalStorageSettings,
    StorageValidationError,
)


class TestLocalUrls:
    """Tests for static URL building."""

    def test_url_joins_base_prefix_and_key(self, local_backend: LocalStorageBackend) -> None:
        assert local_backend.url_for("decks/a.png") == "http://localhost:3000/uploads/decks/a.png"

    def test_trailing_slashes(self, tmp_path: Path) -> None:
        backend = LocalStorageBackend(
            LocalStorageSettings(
                root_path=str(tmp_path),
                base_url="https://assets.example.com/",
                url_prefix="/static/",
            )
        )
        assert backend.url_for("a.png") == "https://assets.example.com/static/a.png"

    def test_empty_prefix(self, tmp_path: Path) -> None:
        backend = LocalStorageBackend(
            LocalStorageSettings(root_path=str(tmp_path), base_url="http://h", url_prefix="")
        )
        assert backend.url_for("a.png") == "http://h/a.png"

    @pytest.mark.asyncio
    async def test_read_url_ignores_expiry(self, local_backend: LocalStorageBackend) -> None:
        url = await local_backend.read_url("a.png", expires_in=5)
        assert url == "http://localhost:3000/uploads/a.png"


class TestLocalPut:
    """Tests for writing files."""

    @pytest.mark.asyncio
    async def test_put_creates_directories(
        self, local_backend: LocalStorageBackend, local_settings: LocalStorageSettings
    ) -> None:
        stored = await local_backend.put("decks/7/slide.png", b"data", "image/png")

        path = Path(local_settings.root_path) / "decks" / "7" / "slide.png"
        assert path.read_bytes() == b"data"
        assert stored.key == "decks/7/slide.png"
        assert stored.url == "http://localhost:3000/uploads/decks/7/slide.png"

    @pytest.mark.asyncio
    async def test_private_put_has_no_public_url(self, local_backend: LocalStorageBackend) -> None:
        stored = await local_backend.put("a.pdf", b"%PDF", "application/pdf")
        assert stored.public_url is None

    @pytest.mark.asyncio
    async def test_public_put_mirrors_url(self, local_backend: LocalStorageBackend) -> None:
        stored = await local_backend.put("a.pdf", b"%PDF", "application/pdf", make_public=True)
        assert stored.public_url == stored.url

    @pytest.mark.asyncio
    async def test_concurrent_puts_into_one_folder(
        self, local_backend: LocalStorageBackend
    ) -> None:
        """Test directory creation is safe when many writers race."""
        keys = [f"shared/folder/file_{i}.txt" for i in range(25)]
        await asyncio.gather(*(local_backend.put(key, b"x", "text/plain") for key in keys))

        for key in keys:
            assert await local_backend.exists(key)

    @pytest.mark.asyncio
    async def test_write_failure(self, tmp_path: Path) -> None:
        """Test filesystem errors surface as backend failures."""
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where a directory should be")
        backend = LocalStorageBackend(
            LocalStorageSettings(root_path=str(blocker), base_url="http://h")
        )

        with pytest.raises(BackendUnavailableError, match="Failed to write file"):
            await backend.put("a.png", b"data", "image/png")

    @pytest.mark.asyncio
    async def test_interrupted_write_leaves_no_file(
        self, local_backend: LocalStorageBackend, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test a write that dies partway stores nothing at the key."""
        write_bytes = Path.write_bytes

        def write_then_fail(self: Path, data: bytes) -> int:
            write_bytes(self, data[:10])
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr(Path, "write_bytes", write_then_fail)
        with pytest.raises(BackendUnavailableError, match="No space left"):
            await local_backend.put("decks/slide.png", b"x" * 100, "image/png")
        monkeypatch.undo()

        assert not await local_backend.exists("decks/slide.png")
        assert list((local_backend.root / "decks").iterdir()) == []

    @pytest.mark.asyncio
    async def test_interrupted_overwrite_keeps_previous_file(
        self, local_backend: LocalStorageBackend, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        await local_backend.put("a.txt", b"previous", "text/plain")

        def fail(self: Path, data: bytes) -> int:
            raise OSError(errno.EIO, "I/O error")

        monkeypatch.setattr(Path, "write_bytes", fail)
        with pytest.raises(BackendUnavailableError):
            await local_backend.put("a.txt", b"replacement", "text/plain")
        monkeypatch.undo()

        assert (local_backend.root / "a.txt").read_bytes() == b"previous"


class TestLocalKeys:
    """Tests for key validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "key", ["", "/etc/passwd", "../outside.png", "a/../../b.png", "a//b.png", "a\\b.png"]
    )
    async def test_rejects_unsafe_keys(self, local_backend: LocalStorageBackend, key: str) -> None:
        with pytest.raises(StorageValidationError):
            await local_backend.put(key, b"x", "image/png")


class TestLocalLifecycle:
    """Tests for exists/stat/delete."""

    @pytest.mark.asyncio
    async def test_stat(self, local_backend: LocalStorageBackend) -> None:
        await local_backend.put("docs/report.pdf", b"%PDF-1.4", "application/pdf")

        meta = await local_backend.stat("docs/report.pdf")

        assert meta is not None
        assert meta.size == 8
        assert meta.mime_type == "application/pdf"
        assert meta.last_modified.tzinfo is not None

    @pytest.mark.asyncio
    async def test_stat_unknown_extension(self, local_backend: LocalStorageBackend) -> None:
        await local_backend.put("blob.zzzunknown", b"x", "application/x-test")
        meta = await local_backend.stat("blob.zzzunknown")
        assert meta is not None
        assert meta.mime_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_stat_missing(self, local_backend: LocalStorageBackend) -> None:
        assert await local_backend.stat("missing.png") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_ignored(self, local_backend: LocalStorageBackend) -> None:
        assert await local_backend.delete("missing.png") is False

    @pytest.mark.asyncio
    async def test_health_check(self, local_backend: LocalStorageBackend) -> None:
        assert await local_backend.health_check() is True
        assert local_backend.root.is_dir()
