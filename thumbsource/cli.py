"""Command-line entry point for inspecting image sources and cache paths."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from .builder import ThumbInfoBuilder
from .config import DEFAULT_PROBE_BYTES, DEFAULT_REQUEST_TIMEOUT, Layout, ThumbConfig
from .errors import ThumbnailError

logger = logging.getLogger("thumbsource.cli")


def _add_site_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--site-root",
        default=".",
        type=Path,
        help="Document root that local paths and same-site URLs map onto",
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost/",
        help="Public URL of the site; URLs on this host are treated as local",
    )
    parser.add_argument(
        "--remote-dir",
        default="images/remote",
        help="Directory (relative to the site root) for copies and info files of remote images",
    )
    parser.add_argument(
        "--copy-remote",
        action="store_true",
        help="Download remote originals into --remote-dir instead of probing them",
    )
    parser.add_argument(
        "--hierarchical",
        action="store_true",
        help="Mirror source directories inside cache directories instead of flattening names",
    )
    parser.add_argument(
        "--no-index-files",
        action="store_true",
        help="Do not drop index.html placeholders into created cache directories",
    )
    parser.add_argument(
        "--probe-bytes",
        type=int,
        default=DEFAULT_PROBE_BYTES,
        help="How many leading bytes to read when probing image headers",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="HTTP timeout in seconds",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve image metadata and thumbnail cache locations.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser(
        "info", help="Classify an image source and print its metadata"
    )
    info_parser.add_argument("src", help="Local path or URL of the image")
    _add_site_arguments(info_parser)

    path_parser = subparsers.add_parser(
        "cache-path", help="Print the cache file path derived from a source"
    )
    path_parser.add_argument("src", help="Local path or URL of the image")
    path_parser.add_argument("--cache-dir", required=True, help="Cache directory")
    path_parser.add_argument(
        "--suffix",
        default="",
        help="Suffix spliced in before the extension; use --suffix=-WxH when it starts with a dash",
    )
    path_parser.add_argument("--ext", default=None, help="Extra extension, e.g. info")
    path_parser.add_argument(
        "--remote", action="store_true", help="Treat SRC as a remote URL"
    )
    _add_site_arguments(path_parser)

    thumbs_parser = subparsers.add_parser(
        "thumbs", help="Print the original metadata and thumbnail targets"
    )
    thumbs_parser.add_argument("src", help="Local path or URL of the image")
    thumbs_parser.add_argument("--width", type=int, required=True, help="Thumbnail width")
    thumbs_parser.add_argument("--height", type=int, required=True, help="Thumbnail height")
    thumbs_parser.add_argument(
        "--ratio",
        type=float,
        action="append",
        dest="ratios",
        help="Scale ratio; repeat for several variants (default: 1)",
    )
    thumbs_parser.add_argument(
        "--thumbs-dir", default="images/thumbnails", help="Thumbnail cache directory"
    )
    _add_site_arguments(thumbs_parser)

    return parser.parse_args(argv)


def _build(args: argparse.Namespace) -> ThumbInfoBuilder:
    config = ThumbConfig(
        site_root=Path(args.site_root).resolve(),
        base_url=args.base_url,
        remote_dir=Path(args.remote_dir),
        copy_remote=args.copy_remote,
        layout=Layout.HIERARCHICAL if args.hierarchical else Layout.FLAT,
        write_index_files=not args.no_index_files,
        probe_bytes=args.probe_bytes,
        request_timeout=args.timeout,
    )
    if getattr(args, "thumbs_dir", None):
        config.thumbs_dir = Path(args.thumbs_dir)
    return ThumbInfoBuilder(config)


def _run_info(builder: ThumbInfoBuilder, args: argparse.Namespace) -> dict:
    source = builder.original(args.src)
    metadata = builder.metadata(source)
    return {"source": asdict(source), "metadata": metadata.to_dict()}


def _run_cache_path(builder: ThumbInfoBuilder, args: argparse.Namespace) -> dict:
    spec = builder.sanitizer.safe_name(
        args.src,
        builder.config.resolve_dir(args.cache_dir),
        args.suffix,
        not args.remote,
        args.ext,
        builder.config.layout,
    )
    return asdict(spec)


def _run_thumbs(builder: ThumbInfoBuilder, args: argparse.Namespace) -> dict:
    info = builder.make(args.src, args.width, args.height, args.ratios or (1,))
    return asdict(info)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    builder = _build(args)
    handlers = {
        "info": _run_info,
        "cache-path": _run_cache_path,
        "thumbs": _run_thumbs,
    }
    try:
        result = handlers[args.command](builder, args)
    except (ThumbnailError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    sys.stdout.write(json.dumps(result, indent=2) + "\n")
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
