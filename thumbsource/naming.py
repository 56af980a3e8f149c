"""Safe, collision-free cache file names for originals and thumbnails."""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from .config import Layout
from .filesystem import FileSystemPort
from .models import CachePathSpec
from .utils import netloc_host, safe_component, split_extension

logger = logging.getLogger("thumbsource")

INDEX_FILE_NAME = "index.html"
INDEX_FILE_BODY = b'<html><body bgcolor="#FFFFFF"></body></html>'


def url_identifier(url: str) -> str:
    """Reduce a URL to ``host[:port]/path``, tagging query variants with a SHA-1.

    Credentials never reach the name. A URL without a path gets the leaf
    ``index`` so the host is not split into name and extension.

    The hash goes in front of the extension so ``a.png?v=1`` and
    ``a.png?v=2`` stay distinct while keeping the ``.png`` suffix.
    """
    parsed = urlparse(url)
    host = netloc_host(parsed.netloc, keep_port=True)
    path = parsed.path if parsed.path.strip("/") else "/index"
    identifier = host + path
    if parsed.query:
        query_code = hashlib.sha1(parsed.query.encode("utf-8")).hexdigest()
        head, _, leaf = identifier.rpartition("/")
        stem, ext = split_extension(leaf)
        leaf = f"{stem}_{query_code}" + (f".{ext}" if ext else "")
        identifier = f"{head}/{leaf}" if head else leaf
    return identifier


def decorate_name(name: str, suffix: str = "", extra_extension: Optional[str] = None) -> str:
    """Splice ``suffix`` in before the extension and append ``extra_extension``."""
    stem, ext = split_extension(name)
    result = stem + suffix + (f".{ext}" if ext else "")
    if extra_extension:
        result += f".{extra_extension}"
    return result


class PathNameSanitizer:
    """Maps local paths and remote URLs onto files inside a cache directory."""

    def __init__(
        self,
        fs: FileSystemPort,
        site_root: Path | str,
        write_index_files: bool = True,
    ) -> None:
        self.fs = fs
        self.site_root = os.path.realpath(str(site_root))
        self.write_index_files = write_index_files

    def relative_parts(self, source: str, is_local: bool) -> List[str]:
        """Split ``source`` into safe path segments relative to the site root."""
        path = source if is_local else url_identifier(source)
        path = path.replace("\\", "/")
        root = self.site_root.replace("\\", "/").rstrip("/")
        if is_local and (path == root or path.startswith(root + "/")):
            path = path[len(root) + 1 :]
        return [
            safe_component(part)
            for part in path.split("/")
            if part not in ("", ".", "..")
        ]

    def safe_name(
        self,
        source: str,
        cache_dir: Path | str,
        suffix: str = "",
        is_local: bool = True,
        extra_extension: Optional[str] = None,
        layout: Layout = Layout.FLAT,
    ) -> CachePathSpec:
        cache_dir = Path(cache_dir)
        if not cache_dir.is_absolute():
            cache_dir = Path(self.site_root) / cache_dir
        parts = self.relative_parts(source, is_local)
        if not parts:
            raise ValueError(f"Cannot derive a cache name from {source!r}")

        leaf = decorate_name(parts[-1], suffix, extra_extension)
        if layout is Layout.HIERARCHICAL:
            directory = cache_dir.joinpath(*parts[:-1])
            name = leaf
        else:
            directory = cache_dir
            name = "-".join(parts[:-1] + [leaf])

        created = self.ensure_directory(directory)
        return CachePathSpec(
            absolute_path=str(directory / name),
            containing_directory_created=created,
        )

    def ensure_directory(self, directory: Path) -> bool:
        """Create ``directory`` and any missing parents.

        Each directory created here gets a blank index page so a web server
        will not list the cache.
        """
        if self.fs.is_dir(str(directory)):
            return False
        missing: List[Path] = []
        current = directory
        while not self.fs.is_dir(str(current)):
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent

        created = False
        for path in reversed(missing):
            if not self.fs.make_dir(str(path)):
                continue
            created = True
            logger.debug("Created cache directory %s", path)
            if self.write_index_files:
                self.fs.write(
                    str(path / INDEX_FILE_NAME), INDEX_FILE_BODY, overwrite=False
                )
        return created
