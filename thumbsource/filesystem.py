"""Filesystem access used by the classifier, resolver and cache namer."""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import quote, unquote, urlparse

logger = logging.getLogger("thumbsource")


class FileSystemPort(ABC):
    """Narrow interface to the storage holding originals and cache files."""

    @abstractmethod
    def read_prefix(self, path: str, max_bytes: int) -> bytes:
        """Return at most ``max_bytes`` from the start of ``path``."""

    @abstractmethod
    def file_size(self, path: str) -> int:
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        ...

    @abstractmethod
    def make_dir(self, path: str) -> bool:
        """Create a single directory; return False if it already existed."""

    @abstractmethod
    def write_stream(
        self, path: str, chunks: Iterable[bytes], overwrite: bool = True
    ) -> bool:
        """Atomically write ``chunks`` to ``path``.

        With ``overwrite=False`` nothing is committed when ``path`` already
        exists. Returns whether this call committed the file.
        """

    def write(self, path: str, data: bytes, overwrite: bool = True) -> bool:
        return self.write_stream(path, [data], overwrite=overwrite)

    @abstractmethod
    def real_path(self, candidate: str) -> Optional[str]:
        """Canonical path of an existing file, or None."""

    @abstractmethod
    def path_to_url(self, path: str) -> str:
        ...

    @abstractmethod
    def url_to_path(self, url_path: str) -> str:
        ...


class LocalFileSystem(FileSystemPort):
    """Operating-system filesystem rooted at the site document root."""

    def __init__(self, site_root: Path | str, base_path: str = "/") -> None:
        self.site_root = os.path.realpath(str(site_root))
        self.base_path = "/" + base_path.strip("/") + "/" if base_path.strip("/") else "/"

    def read_prefix(self, path: str, max_bytes: int) -> bytes:
        with open(path, "rb") as fh:
            return fh.read(max_bytes)

    def file_size(self, path: str) -> int:
        return os.path.getsize(path)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def make_dir(self, path: str) -> bool:
        try:
            os.mkdir(path)
        except FileExistsError:
            if not os.path.isdir(path):
                raise
            return False
        return True

    def write_stream(
        self, path: str, chunks: Iterable[bytes], overwrite: bool = True
    ) -> bool:
        directory = os.path.dirname(path) or "."
        fd, tmp_path = tempfile.mkstemp(
            prefix=".tmp-", suffix=".part", dir=directory
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                for chunk in chunks:
                    fh.write(chunk)
                fh.flush()
                os.fsync(fh.fileno())
            if overwrite:
                os.replace(tmp_path, path)
                return True
            try:
                # link() refuses to replace an existing target
                os.link(tmp_path, path)
            except FileExistsError:
                logger.debug("Keeping existing file %s", path)
                return False
            return True
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def real_path(self, candidate: str) -> Optional[str]:
        if not candidate:
            return None
        if os.path.isabs(candidate):
            options = [candidate]
        else:
            options = [os.path.join(self.site_root, candidate), candidate]
        for option in options:
            if os.path.isfile(option):
                return os.path.realpath(option)
        return None

    def path_to_url(self, path: str) -> str:
        resolved = os.path.realpath(path)
        if resolved == self.site_root or resolved.startswith(self.site_root + os.sep):
            relative = os.path.relpath(resolved, self.site_root)
        else:
            relative = resolved.lstrip(os.sep)
        return self.base_path + quote(relative.replace(os.sep, "/"))

    def url_to_path(self, url_path: str) -> str:
        url_path = unquote(urlparse(url_path).path)
        if self.base_path != "/" and url_path.startswith(self.base_path):
            url_path = url_path[len(self.base_path) :]
        parts = [part for part in url_path.split("/") if part not in ("", ".", "..")]
        return os.path.join(self.site_root, *parts)
