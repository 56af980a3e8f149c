"""Copy remote originals into a local cache directory."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .config import Layout
from .filesystem import FileSystemPort
from .http import HttpRangePort
from .naming import PathNameSanitizer

logger = logging.getLogger("thumbsource")


class RemoteFileMaterializer:
    """Downloads a remote image once and hands out its local path.

    Concurrent calls for the same target are serialised per path inside
    the process; across processes the commit refuses to overwrite, so the
    first complete download wins and later ones are discarded.
    """

    def __init__(
        self,
        fs: FileSystemPort,
        http: HttpRangePort,
        sanitizer: PathNameSanitizer,
        remote_dir: Path | str,
        layout: Layout = Layout.FLAT,
    ) -> None:
        self.fs = fs
        self.http = http
        self.sanitizer = sanitizer
        self.remote_dir = remote_dir
        self.layout = layout
        # path -> [lock, number of callers holding or waiting for it]
        self._locks: Dict[str, List] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _path_lock(self, path: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(path, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if not entry[1]:
                    del self._locks[path]

    def target_path(self, url: str, remote_dir: Optional[Path | str] = None) -> str:
        spec = self.sanitizer.safe_name(
            url,
            remote_dir if remote_dir is not None else self.remote_dir,
            is_local=False,
            layout=self.layout,
        )
        return spec.absolute_path

    def materialize(
        self,
        url: str,
        remote_dir: Optional[Path | str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        local_path = self.target_path(url, remote_dir)
        if self.fs.exists(local_path):
            return local_path
        with self._path_lock(local_path):
            if self.fs.exists(local_path):
                return local_path
            logger.info("Copying %s to %s", url, local_path)
            committed = self.fs.write_stream(
                local_path, self.http.download(url, cancel=cancel), overwrite=False
            )
            if not committed:
                logger.debug("%s was copied by another writer", url)
        return local_path
