"""Shared build constants: single source of truth.

Centralises output file names, recognised image extensions, coordinate
source tags, and external service defaults that would otherwise be
duplicated across providers, resolver strategies, and the orchestrator.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Output layout
# ---------------------------------------------------------------------------

DEFAULT_OUTPUT_DIR: str = "site"
"""Base directory for all generated artifacts."""

DEFAULT_GEOJSON_FILENAME: str = "locations.json"
"""GeoJSON FeatureCollection consumed by the map page."""

THUMBS_DIRNAME: str = "thumbs"
"""Sub-directory (under the output directory) holding thumbnail JPEGs."""

GEOCACHE_FILENAME: str = "geocache.json"
"""Reverse-geocode memo persisted between runs."""

MAP_PAGE_FILENAMES: tuple[str, ...] = ("index.html", "200.html")
"""Map page plus a static-host fallback copy."""

THUMB_PREFIX: str = "t-"
"""Prefix for deterministic thumbnail file names (``t-<md5>.jpg``)."""

# ---------------------------------------------------------------------------
# Input collaborators
# ---------------------------------------------------------------------------

DEFAULT_OVERRIDES_FILE: str = "overrides.json"
"""Curator coordinate corrections keyed by exact display path."""

DEFAULT_CONTENT_FILE: str = "content.json"
"""Curator title/description rules keyed by filename or pattern."""

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {".jpg", ".jpeg", ".png", ".webp", ".tif", ".tiff", ".heic", ".heif"}
)
"""Lower-case file extensions treated as images by every provider."""

# ---------------------------------------------------------------------------
# Coordinate source tags
# ---------------------------------------------------------------------------

SOURCE_MEDIA_INFO = "media_info"
SOURCE_EXIF = "exif"
SOURCE_OVERRIDE = "override"
SOURCE_FILENAME = "filename"
SOURCE_GEOCODE = "geocode"

ALL_SOURCES: tuple[str, ...] = (
    SOURCE_MEDIA_INFO,
    SOURCE_EXIF,
    SOURCE_OVERRIDE,
    SOURCE_FILENAME,
    SOURCE_GEOCODE,
)

# ---------------------------------------------------------------------------
# WGS 84 bounds
# ---------------------------------------------------------------------------

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# ---------------------------------------------------------------------------
# External services
# ---------------------------------------------------------------------------

DEFAULT_NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT: str = "RealRomania-PhotoMap/1.0 (+github-pages)"
DEFAULT_NOMINATIM_THROTTLE_MS: int = 1100

DEFAULT_THUMB_MAX_WIDTH: int = 1024
THUMB_JPEG_QUALITY: int = 82
