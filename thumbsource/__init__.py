"""Image source resolution, metadata probing and cache naming for thumbnails."""

from .builder import ThumbInfoBuilder
from .config import Layout, SiteContext, ThumbConfig
from .errors import ImageInfoError, ThumbnailError, TransferError
from .models import CachePathSpec, ImageMetadata, ImageSource, ThumbInfo, ThumbnailTarget

__all__ = [
    "CachePathSpec",
    "ImageInfoError",
    "ImageMetadata",
    "ImageSource",
    "Layout",
    "SiteContext",
    "ThumbConfig",
    "ThumbInfo",
    "ThumbInfoBuilder",
    "ThumbnailError",
    "ThumbnailTarget",
    "TransferError",
]
