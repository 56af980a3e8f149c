"""Utility helpers for host, file name and path component normalization."""

from __future__ import annotations

import re
from typing import Tuple

WWW_PATTERN = re.compile(r"^www\.")
UNSAFE_CHARS_PATTERN = re.compile(r'[:*?"<>|\x00-\x1f]')


def strip_www(host: str) -> str:
    """Drop a single leading ``www.`` from a host name."""
    return WWW_PATTERN.sub("", host or "")


def space_to_plus(url: str) -> str:
    return url.replace(" ", "+")


def split_extension(name: str) -> Tuple[str, str]:
    """Split ``name`` into stem and extension (without the dot).

    Only the final dot of the leaf counts; dot-files have no extension.
    """
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot + 1 :]


def safe_component(value: str) -> str:
    """Replace characters that are not legal in file names on common systems."""
    return UNSAFE_CHARS_PATTERN.sub("_", value)


def netloc_host(netloc: str, keep_port: bool = False) -> str:
    """Host part of a URL netloc with credentials removed and case preserved.

    ``urlparse(...).hostname`` lower-cases the host; this does not.
    """
    host = (netloc or "").rpartition("@")[2]
    if keep_port:
        return host
    if host.startswith("["):
        return host[: host.find("]") + 1] if "]" in host else host
    return host.partition(":")[0]
