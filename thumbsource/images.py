"""Image metadata probing from partial local reads and HTTP range requests."""

from __future__ import annotations

import io
import logging
import re
import threading
from typing import Dict, Optional, Tuple

from filetype import guess
from PIL import Image, UnidentifiedImageError

from .config import DEFAULT_PROBE_BYTES
from .errors import ImageInfoError, TransferError
from .filesystem import FileSystemPort
from .http import HttpRangePort
from .models import ImageMetadata, ImageSource

logger = logging.getLogger("thumbsource")

ALLOWED_IMAGE_TYPES = {"png", "jpg", "gif", "webp", "bmp", "tiff", "ico"}
PIL_FORMATS = {
    "PNG": "png",
    "JPEG": "jpg",
    "MPO": "jpg",
    "GIF": "gif",
    "WEBP": "webp",
    "BMP": "bmp",
    "DIB": "bmp",
    "TIFF": "tiff",
    "ICO": "ico",
}
CONTENT_RANGE_PATTERN = re.compile(r"bytes[\s=]*(?:\d+-\d+|\*)\s*/\s*(\d+)", re.IGNORECASE)


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext in ("jpeg", "jpe"):
            return "jpg"
        if ext == "tif":
            return "tiff"
        return ext
    return None


def read_image_size(data: bytes) -> Tuple[Optional[int], Optional[int], Optional[str]]:
    """Return width, height and format decoded from the leading bytes of an image.

    Pillow only parses the header on open, so a truncated body is enough.
    """
    if not data:
        return None, None, None
    fmt = detect_image_format(data)
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            fmt = fmt or PIL_FORMATS.get(img.format or "")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        logger.debug("Pillow could not read image header: %s", exc)
        return None, None, fmt
    if fmt not in ALLOWED_IMAGE_TYPES:
        fmt = None
    return width, height, fmt


def file_size_from_headers(status: Optional[int], headers: Dict[str, str]) -> Optional[int]:
    """Total resource size from a range probe response, or None if unknown."""
    if status == 206:
        match = CONTENT_RANGE_PATTERN.search(headers.get("content-range", ""))
        if match:
            return int(match.group(1))
        return None
    if status == 200:
        length = headers.get("content-length", "").strip()
        if length.isdigit():
            return int(length)
    return None


class ImageMetadataResolver:
    """Resolve width, height, format and byte size of an :class:`ImageSource`."""

    def __init__(
        self,
        fs: FileSystemPort,
        http: HttpRangePort,
        probe_bytes: int = DEFAULT_PROBE_BYTES,
    ) -> None:
        self.fs = fs
        self.http = http
        self.probe_bytes = probe_bytes

    def resolve(
        self, source: ImageSource, cancel: Optional[threading.Event] = None
    ) -> ImageMetadata:
        if source.is_local:
            return self.resolve_local(source.path)
        return self.resolve_remote(source.url or source.path, cancel=cancel)

    def resolve_local(self, path: str) -> ImageMetadata:
        data = self.fs.read_prefix(path, self.probe_bytes)
        return _decode(path, data, self.fs.file_size(path))

    def resolve_remote(
        self, url: str, cancel: Optional[threading.Event] = None
    ) -> ImageMetadata:
        response = self.http.get_range(url, 0, self.probe_bytes - 1, cancel=cancel)
        headers = {key.lower(): value for key, value in response.headers.items()}
        file_size = file_size_from_headers(response.status_code, headers)
        if not file_size:
            raise TransferError(f'Cannot get size of file "{url}"')

        return _decode(url, response.body, file_size)


def _decode(where: str, data: bytes, file_size: int) -> ImageMetadata:
    width, height, fmt = read_image_size(data)
    if width is None or height is None or fmt is None:
        raise ImageInfoError(f'Cannot get size of image "{where}"')
    logger.debug("%s: %sx%s %s, %d bytes", where, width, height, fmt, file_size)
    return ImageMetadata(width=width, height=height, format=fmt, file_size=file_size)
