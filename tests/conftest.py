from __future__ import annotations

import io
import os
import threading
import time
from typing import Dict, Iterator, List, Optional

import pytest
from PIL import Image

from thumbsource.errors import TransferError
from thumbsource.filesystem import LocalFileSystem
from thumbsource.http import HttpRangePort, RangeResponse


def image_bytes(size=(40, 30), fmt="PNG", noise=False) -> bytes:
    if noise:
        img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    else:
        img = Image.new("RGB", size, (200, 30, 30))
    buffer = io.BytesIO()
    img.save(buffer, fmt)
    return buffer.getvalue()


class FakeHttp(HttpRangePort):
    """In-memory transport that records requests."""

    def __init__(self, responses: Optional[Dict[str, RangeResponse]] = None) -> None:
        self.responses = responses or {}
        self.bodies: Dict[str, bytes] = {}
        self.range_calls: List[tuple] = []
        self.download_calls: List[str] = []
        self.fail_after: Optional[int] = None
        self.delay = 0.0
        self._lock = threading.Lock()

    def get_range(self, url, start, end, cancel=None) -> RangeResponse:
        self.range_calls.append((url, start, end))
        if url not in self.responses:
            raise TransferError(f"no route to {url}")
        return self.responses[url]

    def download(self, url, cancel=None) -> Iterator[bytes]:
        with self._lock:
            self.download_calls.append(url)
        body = self.bodies[url]
        for index in range(0, len(body), 1024):
            if self.fail_after is not None and index >= self.fail_after:
                raise TransferError(f"connection to {url} dropped")
            if self.delay:
                time.sleep(self.delay)
            yield body[index : index + 1024]


@pytest.fixture
def site_root(tmp_path):
    root = tmp_path / "site"
    (root / "images").mkdir(parents=True)
    return root


@pytest.fixture
def fs(site_root):
    return LocalFileSystem(site_root)


@pytest.fixture
def http():
    return FakeHttp()
