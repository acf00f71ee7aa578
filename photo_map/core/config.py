"""Build configuration loaded from environment variables.

All configuration values have sensible defaults except the Dropbox
shared-folder reference and access token, which are required whenever
the ``dropbox`` provider is selected.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if a required value is
    missing or a numeric value is out of its valid range.  This aborts the
    run before any listing occurs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from photo_map.core.constants import (
    DEFAULT_CONTENT_FILE,
    DEFAULT_GEOJSON_FILENAME,
    DEFAULT_NOMINATIM_THROTTLE_MS,
    DEFAULT_NOMINATIM_URL,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_OVERRIDES_FILE,
    DEFAULT_THUMB_MAX_WIDTH,
    DEFAULT_USER_AGENT,
)
from photo_map.core.exceptions import PipelineError

_TRUTHY = frozenset({"1", "true", "yes", "on"})

PROVIDER_DROPBOX = "dropbox"
PROVIDER_LOCAL = "local"


class ConfigValidationError(PipelineError):
    """Raised when configuration values are missing or out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        self.message = message
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Immutable build configuration.

    Loaded once at startup and threaded through the orchestrator.

    Attributes:
        image_provider: Listing provider (``dropbox`` or ``local``).
        dropbox_shared_url: Dropbox shared-folder link to enumerate.
        dropbox_token: Dropbox API access token.
        local_source_dir: Root directory for the ``local`` provider.
        output_dir: Base path for generated artifacts.
        geojson_filename: Name of the GeoJSON file under ``output_dir``.
        overrides_file: Path of the coordinate override table.
        content_file: Path of the title/description content rules.
        enable_exif: Read GPS tags from downloaded bytes when the listing
            carries no location.
        enable_filename_geocode: Forward-geocode the filename as a last resort.
        enable_reverse_geocode: Reverse-geocode resolved coordinates into
            place titles.
        thumb_max_width: Maximum thumbnail width in pixels.
        nominatim_url: Base URL of the Nominatim service.
        nominatim_email: Contact e-mail sent with reverse lookups.
        nominatim_user_agent: Identifying ``User-Agent`` header value.
        nominatim_throttle_ms: Minimum delay between geocoder calls.
        http_timeout_s: Per-request timeout for every external call.
        http_max_retries: Retries for retryable listing failures.
        resolve_workers: Records resolved concurrently (1 = sequential).
        map_title: Title shown on the generated map page.
    """

    image_provider: str = PROVIDER_DROPBOX
    dropbox_shared_url: str = ""
    dropbox_token: str = ""
    local_source_dir: str = ""
    output_dir: str = DEFAULT_OUTPUT_DIR
    geojson_filename: str = DEFAULT_GEOJSON_FILENAME
    overrides_file: str = DEFAULT_OVERRIDES_FILE
    content_file: str = DEFAULT_CONTENT_FILE
    enable_exif: bool = True
    enable_filename_geocode: bool = False
    enable_reverse_geocode: bool = False
    thumb_max_width: int = DEFAULT_THUMB_MAX_WIDTH
    nominatim_url: str = DEFAULT_NOMINATIM_URL
    nominatim_email: str = ""
    nominatim_user_agent: str = DEFAULT_USER_AGENT
    nominatim_throttle_ms: int = DEFAULT_NOMINATIM_THROTTLE_MS
    http_timeout_s: float = 20.0
    http_max_retries: int = 2
    resolve_workers: int = 1
    map_title: str = "Photo Map"

    @property
    def geocoding_enabled(self) -> bool:
        """Whether any step needs the external geocoder."""
        return self.enable_filename_geocode or self.enable_reverse_geocode

    @classmethod
    def from_env(cls, *, validate: bool = True) -> BuildConfig:
        """Load and validate configuration from environment variables.

        Pass ``validate=False`` to apply further overrides (e.g. command-line
        flags) before calling ``validate_config``.

        Raises:
            ConfigValidationError: If a required value is empty or a
                numeric value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``THUMB_MAX_WIDTH=abc``).
        """
        config = cls(
            image_provider=os.getenv("IMAGE_PROVIDER", PROVIDER_DROPBOX).strip().lower(),
            dropbox_shared_url=os.getenv("DROPBOX_SHARED_URL", "").strip(),
            dropbox_token=os.getenv("DROPBOX_TOKEN", "").strip(),
            local_source_dir=os.getenv("LOCAL_SOURCE_DIR", ""),
            output_dir=os.getenv("OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
            geojson_filename=os.getenv("GEOJSON_FILENAME", DEFAULT_GEOJSON_FILENAME),
            overrides_file=os.getenv("OVERRIDES_FILE", DEFAULT_OVERRIDES_FILE),
            content_file=os.getenv("CONTENT_FILE", DEFAULT_CONTENT_FILE),
            enable_exif=not _env_flag("DISABLE_EXIF"),
            enable_filename_geocode=_env_flag("ENABLE_FILENAME_GEOCODE"),
            enable_reverse_geocode=_env_flag("ENABLE_REVERSE_GEOCODE"),
            thumb_max_width=int(os.getenv("THUMB_MAX_WIDTH", str(DEFAULT_THUMB_MAX_WIDTH))),
            nominatim_url=os.getenv("NOMINATIM_URL", DEFAULT_NOMINATIM_URL),
            nominatim_email=os.getenv("NOMINATIM_EMAIL", ""),
            nominatim_user_agent=os.getenv("NOMINATIM_USER_AGENT", DEFAULT_USER_AGENT),
            nominatim_throttle_ms=int(
                os.getenv("NOMINATIM_THROTTLE_MS", str(DEFAULT_NOMINATIM_THROTTLE_MS))
            ),
            http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", "20")),
            http_max_retries=int(os.getenv("HTTP_MAX_RETRIES", "2")),
            resolve_workers=int(os.getenv("RESOLVE_WORKERS", "1")),
            map_title=os.getenv("MAP_TITLE", "Photo Map"),
        )
        if validate:
            validate_config(config)
        return config


def validate_config(config: BuildConfig) -> None:
    """Validate required values and numeric ranges.  Raises ``ConfigValidationError``."""
    if config.image_provider not in (PROVIDER_DROPBOX, PROVIDER_LOCAL):
        raise ConfigValidationError(
            "IMAGE_PROVIDER",
            config.image_provider,
            f"must be {PROVIDER_DROPBOX!r} or {PROVIDER_LOCAL!r}",
        )

    if config.image_provider == PROVIDER_DROPBOX:
        if not config.dropbox_shared_url:
            raise ConfigValidationError(
                "DROPBOX_SHARED_URL",
                config.dropbox_shared_url,
                "must not be empty (shared folder link)",
            )
        if not config.dropbox_token:
            raise ConfigValidationError(
                "DROPBOX_TOKEN",
                "",
                "must not be empty",
            )

    if config.image_provider == PROVIDER_LOCAL and not config.local_source_dir:
        raise ConfigValidationError(
            "LOCAL_SOURCE_DIR",
            config.local_source_dir,
            "must not be empty when IMAGE_PROVIDER=local",
        )

    if not config.output_dir:
        raise ConfigValidationError("OUTPUT_DIR", config.output_dir, "must not be empty")

    if not config.geojson_filename:
        raise ConfigValidationError(
            "GEOJSON_FILENAME",
            config.geojson_filename,
            "must not be empty",
        )

    if config.thumb_max_width <= 0:
        raise ConfigValidationError(
            "THUMB_MAX_WIDTH",
            config.thumb_max_width,
            "must be > 0 (pixels)",
        )

    if config.nominatim_throttle_ms < 0:
        raise ConfigValidationError(
            "NOMINATIM_THROTTLE_MS",
            config.nominatim_throttle_ms,
            "must be >= 0 (milliseconds)",
        )

    if config.http_timeout_s <= 0:
        raise ConfigValidationError(
            "HTTP_TIMEOUT_S",
            config.http_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.http_max_retries < 0:
        raise ConfigValidationError(
            "HTTP_MAX_RETRIES",
            config.http_max_retries,
            "must be >= 0",
        )

    if config.resolve_workers < 1:
        raise ConfigValidationError(
            "RESOLVE_WORKERS",
            config.resolve_workers,
            "must be >= 1",
        )

    if config.geocoding_enabled and not config.nominatim_user_agent.strip():
        raise ConfigValidationError(
            "NOMINATIM_USER_AGENT",
            config.nominatim_user_agent,
            "must not be empty when geocoding is enabled",
        )
