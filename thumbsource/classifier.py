"""Decide whether an image reference is a local file, a same-site URL or remote."""

from __future__ import annotations

import logging
import threading
from typing import Optional
from urllib.parse import urlparse

from .config import SiteContext
from .errors import TransferError
from .filesystem import FileSystemPort
from .models import ImageSource
from .utils import netloc_host, space_to_plus, strip_www

logger = logging.getLogger("thumbsource")

URL_PREFIXES = ("http://", "https://")


def is_url_local(url: str, site: SiteContext) -> bool:
    """Return True if ``url`` points at the configured site.

    URLs with a query string are never local: they may be generated
    on the fly and must not be read straight from disk.
    """
    try:
        parsed = urlparse(url)
        site_host = strip_www(netloc_host(urlparse(site.base_url).netloc))
        image_host = strip_www(netloc_host(parsed.netloc))
    except ValueError:
        return False
    if parsed.query:
        return False
    return not image_host or image_host == site_host


class SourceClassifier:
    """Turns a raw ``src`` into an :class:`ImageSource`."""

    def __init__(self, fs: FileSystemPort, materializer=None) -> None:
        self.fs = fs
        self.materializer = materializer

    def real_path(self, raw_source: str) -> Optional[str]:
        # Skip the filesystem for anything that is obviously a URL.
        if raw_source.startswith(URL_PREFIXES):
            return None
        return self.fs.real_path(raw_source)

    def classify(
        self,
        raw_source: str,
        site: SiteContext,
        cancel: Optional[threading.Event] = None,
    ) -> ImageSource:
        path = self.real_path(raw_source)
        if path:
            logger.debug("%s is a local file", raw_source)
            return ImageSource(is_local=True, path=path, url=self.fs.path_to_url(path))

        if is_url_local(raw_source, site):
            parsed = urlparse(raw_source)
            url = parsed.path + (f"?{parsed.query}" if parsed.query else "")
            logger.debug("%s is a same-site URL", raw_source)
            return ImageSource(
                is_local=True, path=self.fs.url_to_path(parsed.path), url=url
            )

        if self.materializer is not None:
            try:
                local_path = self.materializer.materialize(raw_source, cancel=cancel)
            except (TransferError, ValueError) as exc:
                logger.warning("Could not copy %s, using it remotely: %s", raw_source, exc)
            else:
                logger.debug("%s was copied to %s", raw_source, local_path)
                return ImageSource(
                    is_local=True, path=local_path, url=self.fs.path_to_url(local_path)
                )

        url = space_to_plus(raw_source)
        logger.debug("%s is remote", raw_source)
        return ImageSource(is_local=False, path=url, url=url)
