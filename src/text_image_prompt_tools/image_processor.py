"""Image loading, data-URI encoding and thumbnails."""

import base64
import binascii
import hashlib
import io
import logging
from math import gcd
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from PIL import Image, UnidentifiedImageError

from .providers.base import split_data_uri

logger = logging.getLogger(__name__)

# Quality presets: (max_dimension, jpeg_quality)
QUALITY_PRESETS = {
    "quick": (512, 75),
    "normal": (1024, 85),
    "detailed": (1568, 90),
    "full": (None, 95),
}

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp"}

THUMBNAIL_MAX_SIZE = 200
THUMBNAIL_QUALITY = 60
LARGE_IMAGE_BYTES = 500 * 1024


def to_data_uri(data: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{base64.standard_b64encode(data).decode('utf-8')}"


def data_uri_size(data_uri: str) -> int:
    """Length of the base64 payload (0 for anything that is not a data URI)."""
    if not data_uri.startswith("data:image"):
        return 0
    return len(split_data_uri(data_uri)[1])


def is_image_too_large(data_uri: str, limit: int = LARGE_IMAGE_BYTES) -> bool:
    return data_uri_size(data_uri) > limit


def aspect_ratio(width: int, height: int) -> str:
    """Reduced ratio such as ``"16:9"``."""
    if not width or not height:
        return ""
    divisor = gcd(width, height)
    return f"{width // divisor}:{height // divisor}"


def _decode(data_uri: str) -> Optional[Image.Image]:
    _, payload = split_data_uri(data_uri)
    try:
        return Image.open(io.BytesIO(base64.b64decode(payload, validate=True)))
    except (binascii.Error, ValueError, UnidentifiedImageError) as e:
        logger.debug(f"Could not decode image data: {e}")
        return None


def image_dimensions(data_uri: str) -> Optional[tuple[int, int]]:
    """(width, height) of a data-URI image, or None if it cannot be decoded."""
    img = _decode(data_uri)
    return img.size if img else None


def make_thumbnail(
    data_uri: str,
    max_size: int = THUMBNAIL_MAX_SIZE,
    quality: int = THUMBNAIL_QUALITY,
) -> Optional[str]:
    """Shrink a data-URI image to a small JPEG thumbnail.

    Non-data URIs are returned unchanged; undecodable images give None.
    """
    if not data_uri.startswith("data:image"):
        return data_uri

    img = _decode(data_uri)
    if img is None:
        return None

    img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
    if img.mode != "RGB":
        img = img.convert("RGB")

    output = io.BytesIO()
    img.save(output, format="JPEG", quality=quality, optimize=True)
    return to_data_uri(output.getvalue(), "image/jpeg")


class ImageProcessor:
    """Turns image files and URLs into data URIs for vision requests."""

    def __init__(
        self,
        quality: str = "normal",
        max_dimension: Optional[int] = None,
        jpeg_quality: Optional[int] = None,
    ):
        """Initialize image processor.

        Args:
            quality: Quality preset - "quick", "normal", "detailed", "full"
            max_dimension: Override max image dimension in pixels
            jpeg_quality: JPEG compression quality 1-100
        """
        preset = QUALITY_PRESETS.get(quality, QUALITY_PRESETS["normal"])

        self.quality = quality
        self.max_dimension = max_dimension or preset[0]
        self.jpeg_quality = jpeg_quality or preset[1]

        # Cache for deduplication
        self._cache: dict[str, dict] = {}

    def load(self, source: str | Path) -> dict:
        """Load a file path, URL or data URI.

        Returns:
            Dict with ``image_url`` (data URI or remote URL) and ``metadata``
        """
        source_str = str(source)
        if source_str.startswith("data:image"):
            return self.process_data_uri(source_str)
        if source_str.startswith(("http://", "https://")):
            return self.process_url(source_str)
        return self.process_file(Path(source))

    def process_data_uri(self, data_uri: str) -> dict:
        size = image_dimensions(data_uri)
        metadata = {"source": "data-uri"}
        if size:
            metadata.update(width=size[0], height=size[1], aspect_ratio=aspect_ratio(*size))
        return {"image_url": data_uri, "metadata": metadata}

    def process_file(self, file_path: Path) -> dict:
        path = Path(file_path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Image not found: {file_path}")

        if not path.is_file():
            raise ValueError(f"Not a file: {file_path}")

        ext = path.suffix.lower()
        if ext not in IMAGE_EXTENSIONS:
            raise ValueError(f"Unsupported image format: {ext}")

        file_bytes = path.read_bytes()
        file_hash = hashlib.md5(file_bytes).hexdigest()

        if file_hash in self._cache:
            logger.debug(f"Using cached image: {path.name}")
            return self._cache[file_hash]

        img = Image.open(io.BytesIO(file_bytes))
        width, height = img.size
        optimized_bytes, media_type = self._optimize_image(img)

        original_size = len(file_bytes)
        optimized_size = len(optimized_bytes)
        compression = (1 - optimized_size / original_size) * 100 if original_size else 0

        result = {
            "image_url": to_data_uri(optimized_bytes, media_type),
            "metadata": {
                "source": "file",
                "filename": path.name,
                "width": width,
                "height": height,
                "aspect_ratio": aspect_ratio(width, height),
                "original_size": original_size,
                "optimized_size": optimized_size,
                "compression_percent": compression,
            },
        }
        self._cache[file_hash] = result

        logger.info(
            f"Processed: {path.name} "
            f"({original_size:,} -> {optimized_size:,} bytes, {compression:.0f}% smaller)"
        )
        return result

    def process_url(self, url: str) -> dict:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid URL: {url}")
        return {"image_url": url, "metadata": {"source": "url"}}

    def _optimize_image(self, img: Image.Image) -> tuple[bytes, str]:
        """Resize and compress image.

        Returns: (optimized_bytes, media_type)
        """
        original_size = img.size

        if self.max_dimension and max(img.size) > self.max_dimension:
            ratio = self.max_dimension / max(img.size)
            new_size = (int(img.size[0] * ratio), int(img.size[1] * ratio))
            img = img.resize(new_size, Image.Resampling.LANCZOS)
            logger.debug(f"Resized: {original_size} -> {new_size}")

        has_transparency = img.mode in ("RGBA", "LA") or (
            img.mode == "P" and "transparency" in img.info
        )

        output = io.BytesIO()

        if has_transparency:
            # Keep as PNG for transparency
            if img.mode == "P":
                img = img.convert("RGBA")
            img.save(output, format="PNG", optimize=True)
            media_type = "image/png"
        else:
            if img.mode != "RGB":
                img = img.convert("RGB")
            img.save(output, format="JPEG", quality=self.jpeg_quality, optimize=True)
            media_type = "image/jpeg"

        return output.getvalue(), media_type
