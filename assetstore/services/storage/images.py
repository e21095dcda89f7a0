"""
Image transformation pipeline built on Pillow.

Two independent paths:
- transform(): optional resize and/or re-encode driven by UploadOptions.
- thumbnail(): fixed 300x300 cover crop, JPEG at quality 80.

Rules:
- Non-image content (and vector images) pass through without decoding.
- Images are never enlarged: output dimensions stay within the source's.
- Undecodable input raises ProcessingError before anything is written.

Functions are deterministic and side-effect free; callers run them off
the event loop since decoding is CPU-bound.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from assetstore.core.enums import ResizeFit

from .exceptions import ProcessingError
from .schemas import (
    DEFAULT_QUALITY,
    THUMBNAIL_QUALITY,
    THUMBNAIL_SIZE,
    ImageFormat,
    ProcessedAsset,
    ResizeOptions,
    UploadOptions,
)

logger = logging.getLogger(__name__)

# image/* types Pillow cannot rasterize; stored as-is
VECTOR_CONTENT_TYPES = {"image/svg+xml"}

_RESAMPLE = Image.Resampling.LANCZOS


def is_image(mime_type: str) -> bool:
    """True for raster image MIME types."""
    mime_type = mime_type.lower()
    return mime_type.startswith("image/") and mime_type not in VECTOR_CONTENT_TYPES


def _open(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ProcessingError(f"Cannot decode image: {e}", cause=e) from e
    return img


def _normalize_mode(img: Image.Image) -> Image.Image:
    # Palette/CMYK/16-bit modes don't resample or pad cleanly
    if img.mode in ("RGB", "RGBA", "L", "LA"):
        return img
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def _flatten(img: Image.Image) -> Image.Image:
    """Composite transparency onto white for formats without alpha."""
    if img.mode in ("RGB", "L"):
        return img
    rgba = img.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


def _target_box(source: tuple[int, int], resize: ResizeOptions) -> tuple[int, int]:
    sw, sh = source
    if resize.height is None:
        return resize.width, max(1, round(sh * resize.width / sw))
    if resize.width is None:
        return max(1, round(sw * resize.height / sh)), resize.height
    return resize.width, resize.height


def _clamp_box(box: tuple[int, int], source: tuple[int, int]) -> tuple[int, int]:
    """Shrink a box, keeping its aspect ratio, until it fits inside the source."""
    tw, th = box
    sw, sh = source
    if tw <= sw and th <= sh:
        return box
    factor = min(sw / tw, sh / th)
    return max(1, int(tw * factor)), max(1, int(th * factor))


def _pad_color(img: Image.Image) -> int | tuple[int, ...]:
    bands = img.getbands()
    return 0 if len(bands) == 1 else tuple(0 for _ in bands)


def _resize(img: Image.Image, resize: ResizeOptions) -> Image.Image:
    box = _target_box(img.size, resize)
    sw, sh = img.size

    if resize.fit in (ResizeFit.INSIDE, ResizeFit.OUTSIDE):
        ratios = (box[0] / sw, box[1] / sh)
        scale = min(ratios) if resize.fit == ResizeFit.INSIDE else max(ratios)
        scale = min(scale, 1.0)
        size = (max(1, round(sw * scale)), max(1, round(sh * scale)))
        return img if size == img.size else img.resize(size, _RESAMPLE)

    box = _clamp_box(box, img.size)
    if box == img.size:
        return img
    if resize.fit == ResizeFit.FILL:
        return img.resize(box, _RESAMPLE)
    if resize.fit == ResizeFit.CONTAIN:
        return ImageOps.pad(img, box, method=_RESAMPLE, color=_pad_color(img))
    return ImageOps.fit(img, box, method=_RESAMPLE)


def _encode(img: Image.Image, format_name: str, quality: int) -> bytes:
    buf = io.BytesIO()
    try:
        if format_name == "JPEG":
            _flatten(img).save(buf, "JPEG", quality=quality)
        elif format_name == "WEBP":
            img.save(buf, "WEBP", quality=quality)
        elif format_name == "PNG":
            # PNG is lossless; quality does not apply
            img.save(buf, "PNG", optimize=True)
        else:
            img.save(buf, format_name)
    except (KeyError, OSError, ValueError) as e:
        raise ProcessingError(f"Cannot encode image as {format_name}: {e}", cause=e) from e
    return buf.getvalue()


def _output_format(
    requested: ImageFormat | None, mime_type: str, source_format: str | None
) -> tuple[str, str]:
    """Pick the encoder and resulting MIME type for a re-encode."""
    if requested is None:
        try:
            requested = ImageFormat.from_content_type(mime_type)
        except ValueError:
            # GIF, TIFF, BMP and friends stay in the format Pillow decoded
            if not source_format:
                raise ProcessingError(
                    "Cannot determine source image format for re-encoding"
                ) from None
            return source_format, mime_type
    return requested.pillow_format, requested.content_type


class ImagePipeline:
    """Resize, re-encode and thumbnail raster images."""

    def transform(
        self,
        data: bytes,
        mime_type: str,
        options: UploadOptions | None = None,
    ) -> ProcessedAsset:
        """Apply resize and format options to an asset.

        Args:
            data: Original bytes.
            mime_type: Declared MIME type of ``data``.
            options: Upload options; only ``resize``, ``format`` and
                ``quality`` are read.

        Returns:
            Processed asset. Non-images come back untouched and without
            dimensions.

        Raises:
            ProcessingError: If the image can't be decoded or encoded.
        """
        options = options or UploadOptions()
        if not is_image(mime_type):
            return ProcessedAsset(data=data, mime_type=mime_type)

        img = _open(data)
        source_format = img.format
        if options.resize is None and options.format is None:
            return ProcessedAsset(
                data=data, mime_type=mime_type, width=img.width, height=img.height
            )

        out = _normalize_mode(img)
        if options.resize is not None:
            out = _resize(out, options.resize)

        format_name, out_mime = _output_format(options.format, mime_type, source_format)

        encoded = _encode(out, format_name, options.quality or DEFAULT_QUALITY)
        logger.debug(
            f"Transformed image {img.width}x{img.height} -> {out.width}x{out.height} "
            f"({format_name}, {len(data)} -> {len(encoded)} bytes)"
        )
        return ProcessedAsset(data=encoded, mime_type=out_mime, width=out.width, height=out.height)

    def thumbnail(self, data: bytes) -> ProcessedAsset:
        """Derive a fixed-size JPEG thumbnail from original image bytes.

        Raises:
            ProcessingError: If the image can't be decoded.
        """
        img = _normalize_mode(_open(data))
        box = _clamp_box(THUMBNAIL_SIZE, img.size)
        thumb = ImageOps.fit(img, box, method=_RESAMPLE)
        encoded = _encode(thumb, ImageFormat.JPEG.pillow_format, THUMBNAIL_QUALITY)
        return ProcessedAsset(
            data=encoded,
            mime_type=ImageFormat.JPEG.content_type,
            width=thumb.width,
            height=thumb.height,
        )
