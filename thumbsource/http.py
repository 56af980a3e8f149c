"""HTTP range probing and streamed downloads built on requests."""

from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional, Tuple

import requests

from .config import DEFAULT_REQUEST_TIMEOUT, DEFAULT_USER_AGENT
from .errors import TransferError

logger = logging.getLogger("thumbsource")

STATUS_LINE_PATTERN = re.compile(r"HTTP/[0-9.]+\s+([0-9]+)")
CHUNK_SIZE = 64 * 1024


@dataclass
class RangeResponse:
    """Status, lower-cased headers and (possibly truncated) body of a probe."""

    status_code: Optional[int]
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_header_lines(cls, lines: Iterable[str], body: bytes = b"") -> "RangeResponse":
        headers, status = parse_http_headers(lines)
        return cls(status_code=status, headers=headers, body=body)


def parse_http_headers(lines: Iterable[str]) -> Tuple[Dict[str, str], Optional[int]]:
    """Parse raw header lines into a lower-cased mapping and a status code.

    Status lines (``HTTP/<version> <code>``) set the status; the last one seen
    wins, so redirects report the final response.

    For transports that hand back raw header lines; ``RequestsHttpClient``
    reads the parsed status and headers from requests directly.
    """
    headers: Dict[str, str] = {}
    status: Optional[int] = None
    for line in lines:
        name, sep, value = line.partition(":")
        match = STATUS_LINE_PATTERN.match(line.strip())
        if match:
            status = int(match.group(1))
            continue
        if sep:
            headers[name.strip().lower()] = value.strip()
    return headers, status


class HttpRangePort(ABC):
    """Transport used for remote originals."""

    @abstractmethod
    def get_range(
        self,
        url: str,
        start: int,
        end: int,
        cancel: Optional[threading.Event] = None,
    ) -> RangeResponse:
        """GET ``url`` with ``Range: bytes=start-end``; body capped at the range length."""

    @abstractmethod
    def download(
        self, url: str, cancel: Optional[threading.Event] = None
    ) -> Iterator[bytes]:
        """Yield the whole body of ``url`` in chunks."""


class RequestsHttpClient(HttpRangePort):
    """HttpRangePort implementation backed by a requests session."""

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", user_agent)

    def get_range(
        self,
        url: str,
        start: int,
        end: int,
        cancel: Optional[threading.Event] = None,
    ) -> RangeResponse:
        limit = end - start + 1
        headers = {"Range": f"bytes={start}-{end}"}
        try:
            with self.session.get(
                url, headers=headers, stream=True, timeout=self.timeout
            ) as resp:
                if resp.status_code >= 400:
                    raise TransferError(f"HTTP {resp.status_code} while probing {url}")
                body = bytearray()
                # Servers ignoring the range send the whole file; stop at the limit.
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    _check_cancelled(cancel, url)
                    body.extend(chunk)
                    if len(body) >= limit:
                        break
                response_headers = {k.lower(): v for k, v in resp.headers.items()}
                status = resp.status_code
        except requests.RequestException as exc:
            raise TransferError(f"Failed to probe {url}: {exc}") from exc
        logger.debug("Probed %s: HTTP %s, %d bytes", url, status, len(body))
        return RangeResponse(status, response_headers, bytes(body[:limit]))

    def download(
        self, url: str, cancel: Optional[threading.Event] = None
    ) -> Iterator[bytes]:
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as resp:
                if resp.status_code >= 400:
                    raise TransferError(f"HTTP {resp.status_code} while fetching {url}")
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    _check_cancelled(cancel, url)
                    if chunk:
                        yield chunk
        except requests.RequestException as exc:
            raise TransferError(f"Failed to fetch {url}: {exc}") from exc


def _check_cancelled(cancel: Optional[threading.Event], url: str) -> None:
    if cancel is not None and cancel.is_set():
        raise TransferError(f"Transfer of {url} was cancelled")
