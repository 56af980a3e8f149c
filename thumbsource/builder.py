"""High-level orchestration from an image ``src`` to thumbnail cache targets."""

from __future__ import annotations

import html
import logging
import threading
from typing import Optional, Sequence

from .classifier import SourceClassifier
from .config import ThumbConfig
from .filesystem import FileSystemPort, LocalFileSystem
from .http import HttpRangePort, RequestsHttpClient
from .images import ImageMetadataResolver
from .info_file import InfoFileCache
from .models import ImageMetadata, ImageSource, ThumbInfo, ThumbnailTarget
from .naming import PathNameSanitizer
from .remote import RemoteFileMaterializer

logger = logging.getLogger("thumbsource")


class ThumbInfoBuilder:
    """Wires the classifier, resolver and cache namer together for one site."""

    def __init__(
        self,
        config: ThumbConfig,
        fs: Optional[FileSystemPort] = None,
        http: Optional[HttpRangePort] = None,
    ) -> None:
        self.config = config
        self.fs = fs or LocalFileSystem(config.site_root)
        self.http = http or RequestsHttpClient(
            timeout=config.request_timeout, user_agent=config.user_agent
        )
        self.sanitizer = PathNameSanitizer(
            self.fs, config.site_root, write_index_files=config.write_index_files
        )
        remote_dir = config.resolve_dir(config.remote_dir)

        self.materializer: Optional[RemoteFileMaterializer] = None
        self.info_files: Optional[InfoFileCache] = None
        # Copying remote originals and caching their info are exclusive.
        if config.copy_remote and config.remote_dir:
            self.materializer = RemoteFileMaterializer(
                self.fs, self.http, self.sanitizer, remote_dir, config.layout
            )
        elif config.remote_dir:
            self.info_files = InfoFileCache(
                self.fs, self.sanitizer, remote_dir, config.layout
            )

        self.classifier = SourceClassifier(self.fs, self.materializer)
        self.resolver = ImageMetadataResolver(self.fs, self.http, config.probe_bytes)

    def original(
        self, src: str, cancel: Optional[threading.Event] = None
    ) -> ImageSource:
        return self.classifier.classify(html.unescape(src), self.config.site, cancel=cancel)

    def metadata(
        self, source: ImageSource, cancel: Optional[threading.Event] = None
    ) -> ImageMetadata:
        if source.is_local or self.info_files is None:
            return self.resolver.resolve(source, cancel=cancel)
        cached = self.info_files.load(source.url)
        if cached is not None:
            return cached
        metadata = self.resolver.resolve(source, cancel=cancel)
        self.info_files.store(source.url, metadata)
        return metadata

    def thumbnail_target(
        self, source: ImageSource, width: int, height: int, ratio: float = 1
    ) -> ThumbnailTarget:
        scaled_width = int(round(width * ratio))
        scaled_height = int(round(height * ratio))
        spec = self.sanitizer.safe_name(
            source.path,
            self.config.resolve_dir(self.config.thumbs_dir),
            f"-{scaled_width}x{scaled_height}",
            source.is_local,
            None,
            self.config.layout,
        )
        return ThumbnailTarget(
            ratio=ratio,
            width=scaled_width,
            height=scaled_height,
            path=spec.absolute_path,
            url=self.fs.path_to_url(spec.absolute_path),
        )

    def make(
        self,
        src: str,
        thumb_width: int,
        thumb_height: int,
        ratios: Sequence[float] = (1,),
        cancel: Optional[threading.Event] = None,
    ) -> ThumbInfo:
        """Classify ``src``, probe it and work out one thumbnail target per ratio."""
        info = ThumbInfo()
        if not src or not src.strip():
            return info
        info.original = self.original(src, cancel=cancel)
        if not info.original.path:
            return info
        info.metadata = self.metadata(info.original, cancel=cancel)
        info.thumbnails = [
            self.thumbnail_target(info.original, thumb_width, thumb_height, ratio)
            for ratio in ratios
        ]
        logger.debug(
            "Prepared %d thumbnail target(s) for %s", len(info.thumbnails), src
        )
        return info
