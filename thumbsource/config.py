"""Configuration objects and constants for thumbnail source handling."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_PROBE_BYTES = 64 * 1024
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "thumbsource/0.1"


class Layout(enum.Enum):
    """How cache files are arranged below a cache directory."""

    FLAT = "flat"
    HIERARCHICAL = "hierarchical"


@dataclass(frozen=True)
class SiteContext:
    """The site under which URLs are treated as local."""

    base_url: str


@dataclass
class ThumbConfig:
    """Top-level settings that control classification, probing and caching."""

    site_root: Path
    base_url: str = "http://localhost/"
    thumbs_dir: Path = field(default_factory=lambda: Path("images/thumbnails"))
    remote_dir: Path = field(default_factory=lambda: Path("images/remote"))
    copy_remote: bool = False
    layout: Layout = Layout.FLAT
    write_index_files: bool = True
    probe_bytes: int = DEFAULT_PROBE_BYTES
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def site(self) -> SiteContext:
        return SiteContext(base_url=self.base_url)

    def resolve_dir(self, directory: Path | str) -> Path:
        """Anchor a relative cache directory at the site root."""
        directory = Path(directory)
        if directory.is_absolute():
            return directory
        return self.site_root / directory
