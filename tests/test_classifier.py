import os

from thumbsource.classifier import SourceClassifier, is_url_local
from thumbsource.config import SiteContext
from thumbsource.errors import TransferError

SITE = SiteContext(base_url="https://www.example.com/")


class FailingMaterializer:
    def materialize(self, url, cancel=None):
        raise TransferError("boom")


class RecordingMaterializer:
    def __init__(self, path):
        self.path = path
        self.urls = []

    def materialize(self, url, cancel=None):
        self.urls.append(url)
        return self.path


def test_same_host_ignoring_www_is_local():
    assert is_url_local("https://example.com/img.png", SITE)
    assert is_url_local("https://www.example.com/img.png", SiteContext("https://example.com"))


def test_query_string_forces_remote():
    assert not is_url_local("https://example.com/img.png?v=2", SITE)


def test_other_host_is_remote():
    assert not is_url_local("https://cdn.example.org/img.png", SITE)


def test_hostless_url_is_local():
    assert is_url_local("/images/img.png", SITE)


def test_existing_path_is_local(fs, site_root):
    image = site_root / "images" / "photo.png"
    image.write_bytes(b"x")
    source = SourceClassifier(fs).classify("images/photo.png", SITE)
    assert source.is_local
    assert source.path == os.path.realpath(image)
    assert source.url == "/images/photo.png"


def test_url_skips_filesystem_lookup(site_root):
    class CountingFs:
        def __init__(self):
            self.lookups = 0

        def real_path(self, candidate):
            self.lookups += 1
            return None

    counting = CountingFs()
    classifier = SourceClassifier(counting)
    assert classifier.real_path("https://example.com/a.png") is None
    assert classifier.real_path("http://example.com/a.png") is None
    assert counting.lookups == 0


def test_same_site_url_maps_to_site_path(fs, site_root):
    source = SourceClassifier(fs).classify("https://example.com/images/a%20b.png", SITE)
    assert source.is_local
    assert source.url == "/images/a%20b.png"
    assert source.path == os.path.join(os.path.realpath(site_root), "images", "a b.png")


def test_remote_url_keeps_url_as_path(fs):
    source = SourceClassifier(fs).classify("https://cdn.example.org/my image.png", SITE)
    assert not source.is_local
    assert source.url == "https://cdn.example.org/my+image.png"
    assert source.path == source.url


def test_remote_url_is_copied_when_materializer_given(fs, site_root):
    copy = site_root / "images" / "copy.png"
    copy.write_bytes(b"x")
    materializer = RecordingMaterializer(str(copy))
    source = SourceClassifier(fs, materializer).classify("https://cdn.example.org/a.png", SITE)
    assert materializer.urls == ["https://cdn.example.org/a.png"]
    assert source.is_local
    assert source.path == str(copy)
    assert source.url == "/images/copy.png"


def test_failed_copy_degrades_to_remote(fs):
    classifier = SourceClassifier(fs, FailingMaterializer())
    source = classifier.classify("https://cdn.example.org/a.png", SITE)
    assert not source.is_local
    assert source.path == "https://cdn.example.org/a.png"


def test_host_comparison_keeps_case():
    assert not is_url_local("https://Example.com/img.png", SiteContext("https://example.com/"))
    assert is_url_local("https://user:pw@example.com:8443/img.png", SITE)


def test_malformed_url_with_copying_degrades_to_remote(fs, site_root, http):
    from thumbsource.naming import PathNameSanitizer
    from thumbsource.remote import RemoteFileMaterializer

    materializer = RemoteFileMaterializer(fs, http, PathNameSanitizer(fs, site_root), "remote")
    source = SourceClassifier(fs, materializer).classify("http://[::1/img.png", SITE)
    assert not source.is_local
    assert source.path == source.url == "http://[::1/img.png"
    assert http.download_calls == []
