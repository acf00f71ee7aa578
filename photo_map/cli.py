"""Command-line entry point: ``photo-map`` / ``python -m photo_map``.

Configuration comes from environment variables; flags given on the
command line take precedence.

Exit codes:
    0  build completed (individual records may still have been skipped)
    1  fatal error during the build (listing, authentication, output)
    2  invalid configuration
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import TYPE_CHECKING, Any

from photo_map import __version__
from photo_map.core.config import (
    PROVIDER_DROPBOX,
    PROVIDER_LOCAL,
    BuildConfig,
    ConfigValidationError,
    validate_config,
)
from photo_map.core.exceptions import PipelineError
from photo_map.orchestrators.build_pipeline import run_build

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("photo_map.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photo-map",
        description="Build a static photo map from a Dropbox shared folder.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--output-dir", help="Directory for generated files (OUTPUT_DIR)")
    parser.add_argument(
        "--provider",
        choices=(PROVIDER_DROPBOX, PROVIDER_LOCAL),
        help="Image source (IMAGE_PROVIDER)",
    )
    parser.add_argument("--source-dir", help="Image root for the local provider (LOCAL_SOURCE_DIR)")
    parser.add_argument(
        "--enable-geocode",
        action="store_true",
        help="Forward-geocode file names as a last resort (ENABLE_FILENAME_GEOCODE)",
    )
    parser.add_argument(
        "--reverse-geocode",
        action="store_true",
        help="Look up place titles for resolved points (ENABLE_REVERSE_GEOCODE)",
    )
    parser.add_argument("--no-exif", action="store_true", help="Skip EXIF GPS reads (DISABLE_EXIF)")
    parser.add_argument("--thumb-max-width", type=int, help="Thumbnail width cap in pixels")
    parser.add_argument("--workers", type=int, help="Records processed concurrently")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def config_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed flags onto ``BuildConfig`` field overrides."""
    overrides: dict[str, Any] = {}
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.provider:
        overrides["image_provider"] = args.provider
    if args.source_dir:
        overrides["local_source_dir"] = args.source_dir
        overrides.setdefault("image_provider", PROVIDER_LOCAL)
    if args.enable_geocode:
        overrides["enable_filename_geocode"] = True
    if args.reverse_geocode:
        overrides["enable_reverse_geocode"] = True
    if args.no_exif:
        overrides["enable_exif"] = False
    if args.thumb_max_width is not None:
        overrides["thumb_max_width"] = args.thumb_max_width
    if args.workers is not None:
        overrides["resolve_workers"] = args.workers
    return overrides


def load_config(args: argparse.Namespace) -> BuildConfig:
    """Environment first, flags on top, then validate.

    Raises:
        ConfigValidationError: If the merged configuration is invalid.
        ValueError: If a numeric environment variable cannot be parsed.
    """
    config = BuildConfig.from_env(validate=False)
    config = dataclasses.replace(config, **config_overrides(args))
    validate_config(config)
    return config


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = load_config(args)
    except (ConfigValidationError, ValueError) as exc:
        logger.error("Configuration error | error=%s", exc)
        return EXIT_CONFIG

    try:
        summary = run_build(config)
    except PipelineError as exc:
        logger.error("Build failed | %s", exc.to_error_dict())
        return EXIT_FAILURE
    except Exception:
        logger.exception("Build failed unexpectedly")
        return EXIT_FAILURE

    logger.info("Wrote %d features to %s", summary.resolved, summary.geojson_path)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
