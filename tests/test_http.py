import threading

import pytest
import requests

from thumbsource.errors import TransferError
from thumbsource.http import RequestsHttpClient, parse_http_headers


class FakeResponse:
    def __init__(self, status_code, headers, body):
        self.status_code = status_code
        self.headers = headers
        self.body = body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def iter_content(self, chunk_size=1):
        for index in range(0, len(self.body), chunk_size):
            yield self.body[index : index + chunk_size]


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_parse_http_headers_lowercases_and_reads_status():
    headers, status = parse_http_headers(
        [
            "HTTP/1.1 301 Moved Permanently",
            "Location: https://example.org/a.png",
            "HTTP/2 206",
            "Content-Range: bytes 0-9/100",
            "X-Note: a:b",
        ]
    )
    assert status == 206
    assert headers["content-range"] == "bytes 0-9/100"
    assert headers["x-note"] == "a:b"


def test_get_range_sends_range_and_caps_body():
    body = bytes(range(256)) * 1024
    session = FakeSession(FakeResponse(200, {"Content-Length": str(len(body))}, body))
    client = RequestsHttpClient(timeout=3, session=session)

    response = client.get_range("https://example.org/a.png", 0, 65535)

    url, kwargs = session.calls[0]
    assert kwargs["headers"] == {"Range": "bytes=0-65535"}
    assert kwargs["timeout"] == 3
    assert response.status_code == 200
    assert response.headers == {"content-length": str(len(body))}
    assert response.body == body[:65536]
    assert session.headers["User-Agent"]


def test_timeout_becomes_transfer_error():
    client = RequestsHttpClient(session=FakeSession(error=requests.Timeout("slow")))
    with pytest.raises(TransferError) as excinfo:
        client.get_range("https://example.org/a.png", 0, 10)
    assert isinstance(excinfo.value.__cause__, requests.Timeout)


def test_error_status_becomes_transfer_error():
    client = RequestsHttpClient(session=FakeSession(FakeResponse(404, {}, b"")))
    with pytest.raises(TransferError):
        client.get_range("https://example.org/a.png", 0, 10)
    with pytest.raises(TransferError):
        list(client.download("https://example.org/a.png"))


def test_download_streams_chunks():
    body = b"x" * 200_000
    client = RequestsHttpClient(session=FakeSession(FakeResponse(200, {}, body)))
    assert b"".join(client.download("https://example.org/a.png")) == body


def test_cancelled_download_raises():
    cancel = threading.Event()
    cancel.set()
    client = RequestsHttpClient(session=FakeSession(FakeResponse(200, {}, b"x" * 10)))
    with pytest.raises(TransferError):
        list(client.download("https://example.org/a.png", cancel=cancel))
