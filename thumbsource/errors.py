"""Exceptions raised while resolving image sources."""


class ThumbnailError(Exception):
    """Base class for errors surfaced to callers."""


class TransferError(ThumbnailError):
    """Remote fetch failed, was cancelled, or gave no usable byte count."""


class ImageInfoError(ThumbnailError):
    """Bytes were read but did not decode into width, height and format."""
