"""Value objects passed between the classifier, resolver and cache namer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ImageSource:
    """A classified image reference.

    For local sources both ``path`` and ``url`` are set. For remote sources
    that were not copied, ``path`` equals ``url``.
    """

    is_local: bool
    path: Optional[str]
    url: Optional[str]

    def __post_init__(self) -> None:
        if not self.path and not self.url:
            raise ValueError("ImageSource needs a path or a url")


@dataclass(frozen=True)
class ImageMetadata:
    """Dimensions, format and byte size of an image; unknown fields are None."""

    width: Optional[int]
    height: Optional[int]
    format: Optional[str]
    file_size: Optional[int]

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "file_size": self.file_size,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImageMetadata":
        return cls(
            width=_optional_int(data.get("width")),
            height=_optional_int(data.get("height")),
            format=data.get("format"),
            file_size=_optional_int(data.get("file_size")),
        )


@dataclass(frozen=True)
class CachePathSpec:
    """A resolved cache location and whether its directory had to be created."""

    absolute_path: str
    containing_directory_created: bool = False


@dataclass(frozen=True)
class ThumbnailTarget:
    """Where a thumbnail of a given scale ratio should be stored."""

    ratio: float
    width: int
    height: int
    path: str
    url: str


@dataclass
class ThumbInfo:
    """The original image plus the thumbnail locations derived from it."""

    original: Optional[ImageSource] = None
    metadata: Optional[ImageMetadata] = None
    thumbnails: List[ThumbnailTarget] = field(default_factory=list)


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(value)
