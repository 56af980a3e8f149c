"""Sidecar files caching metadata of remote images that are not copied."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .config import Layout
from .filesystem import FileSystemPort
from .models import ImageMetadata
from .naming import PathNameSanitizer

logger = logging.getLogger("thumbsource")

INFO_EXTENSION = "info"


class InfoFileCache:
    """Stores :class:`ImageMetadata` as JSON next to where a copy would live."""

    def __init__(
        self,
        fs: FileSystemPort,
        sanitizer: PathNameSanitizer,
        remote_dir: Path | str,
        layout: Layout = Layout.FLAT,
    ) -> None:
        self.fs = fs
        self.sanitizer = sanitizer
        self.remote_dir = remote_dir
        self.layout = layout

    def path_for(self, url: str) -> str:
        spec = self.sanitizer.safe_name(
            url, self.remote_dir, "", False, INFO_EXTENSION, self.layout
        )
        return spec.absolute_path

    def load(self, url: str) -> Optional[ImageMetadata]:
        path = self.path_for(url)
        if not self.fs.exists(path):
            return None
        size = self.fs.file_size(path)
        try:
            data = json.loads(self.fs.read_prefix(path, size).decode("utf-8"))
            metadata = ImageMetadata.from_dict(data)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Ignoring unreadable info file %s: %s", path, exc)
            return None
        if not metadata.file_size:
            logger.warning("Ignoring info file %s without a file size", path)
            return None
        logger.debug("Using cached info for %s from %s", url, path)
        return metadata

    def store(self, url: str, metadata: ImageMetadata) -> str:
        path = self.path_for(url)
        payload = json.dumps(metadata.to_dict(), sort_keys=True).encode("utf-8")
        self.fs.write(path, payload)
        return path
