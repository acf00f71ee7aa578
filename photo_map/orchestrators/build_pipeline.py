"""Build orchestrator: list, resolve, enrich, materialize, write.

Pipeline per run:

1. Load curator inputs (overrides, content rules) and the geocache.
2. List every image from the provider.
3. Per record: resolve a coordinate, reverse-geocode a place title,
   enrich titles, materialize a thumbnail.  Records are independent;
   a failure in one is logged and counted, never fatal.
4. Write ``locations.json``, the map pages, and the geocache once, at
   the end.

With ``resolve_workers > 1`` records are processed on a thread pool.
``Executor.map`` returns results in submission order, so the output
order is the listing order either way.  The override table and
gazetteer are read-only; all geocoder calls share one ``RateLimiter``.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from photo_map.activities.enrich_content import (
    ContentRules,
    enrich,
    load_coordinate_overrides,
)
from photo_map.activities.materialize_thumbnail import (
    STRATEGY_EXTERNAL,
    ThumbnailResult,
    materialize_thumbnail,
)
from photo_map.activities.write_artifacts import (
    ensure_output_dirs,
    write_geojson,
    write_map_page,
)
from photo_map.core.constants import ALL_SOURCES, GEOCACHE_FILENAME
from photo_map.geocoding.cache import ReverseGeocodeCache
from photo_map.geocoding.nominatim import NominatimClient
from photo_map.geocoding.throttle import RateLimiter
from photo_map.models.feature import ResolvedFeature
from photo_map.providers.factory import get_provider
from photo_map.resolve.resolver import CoordinateResolver, Resolution, ResolutionStats

if TYPE_CHECKING:
    from collections.abc import Iterable

    from photo_map.core.config import BuildConfig
    from photo_map.geocoding.nominatim import PlaceInfo
    from photo_map.models.record import ImageRecord
    from photo_map.providers.base import ImageProvider

logger = logging.getLogger("photo_map.orchestrators.build_pipeline")

STATUS_RESOLVED = "resolved"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


# ---------------------------------------------------------------------------
# Result contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RecordOutcome:
    """What happened to one listed image."""

    name: str
    status: str
    resolution: Resolution | None = None
    feature: ResolvedFeature | None = None
    thumbnail: ThumbnailResult | None = None
    reverse_geocoded: bool = False
    error: str = ""


@dataclass(frozen=True, slots=True)
class BuildSummary:
    """End-of-run counts.

    Attributes:
        total: Images listed by the provider.
        by_source: Resolved images per coordinate source tag.
        local_thumbs: Features with a thumbnail written under ``thumbs/``.
        external_images: Features relying on an external image link.
        reverse_geocoded: Features with a reverse-geocoded place title.
        skipped: Images with no resolvable coordinate.
        failed: Images whose processing raised unexpectedly.
        source_errors: Coordinate sources that raised or returned an
            out-of-range point (recovered, per record).
        geojson_path: Where the FeatureCollection was written.
        elapsed_s: Wall-clock duration of the run.
    """

    total: int = 0
    by_source: dict[str, int] = field(default_factory=dict)
    local_thumbs: int = 0
    external_images: int = 0
    reverse_geocoded: int = 0
    skipped: int = 0
    failed: int = 0
    source_errors: int = 0
    geojson_path: str = ""
    elapsed_s: float = 0.0

    @property
    def resolved(self) -> int:
        return sum(self.by_source.values())

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Iterable[RecordOutcome],
        *,
        geojson_path: str = "",
        elapsed_s: float = 0.0,
    ) -> BuildSummary:
        outcomes = list(outcomes)
        stats = ResolutionStats.from_resolutions(
            outcome.resolution
            for outcome in outcomes
            if outcome.status != STATUS_FAILED and outcome.resolution is not None
        )
        local = external = reverse = failed = 0
        for outcome in outcomes:
            if outcome.status == STATUS_FAILED:
                failed += 1
                continue
            if outcome.feature is None:
                continue
            if outcome.feature.thumb:
                local += 1
            elif outcome.thumbnail and outcome.thumbnail.strategy == STRATEGY_EXTERNAL:
                external += 1
            if outcome.reverse_geocoded:
                reverse += 1
        return cls(
            total=len(outcomes),
            by_source=dict(stats.by_source),
            local_thumbs=local,
            external_images=external,
            reverse_geocoded=reverse,
            skipped=stats.skipped,
            failed=failed,
            source_errors=stats.source_errors,
            geojson_path=geojson_path,
            elapsed_s=elapsed_s,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "resolved": self.resolved,
            "by_source": dict(self.by_source),
            "local_thumbs": self.local_thumbs,
            "external_images": self.external_images,
            "reverse_geocoded": self.reverse_geocoded,
            "skipped": self.skipped,
            "failed": self.failed,
            "source_errors": self.source_errors,
            "geojson_path": self.geojson_path,
            "elapsed_s": round(self.elapsed_s, 3),
        }


# ---------------------------------------------------------------------------
# Per-record processing
# ---------------------------------------------------------------------------


class RecordProcessor:
    """Run one record through resolve → place → enrich → thumbnail.

    Shared between worker threads; every collaborator is read-only or
    internally locked.
    """

    def __init__(
        self,
        *,
        resolver: CoordinateResolver,
        provider: ImageProvider,
        rules: ContentRules,
        thumbs_dir: Path,
        thumb_max_width: int,
        geocache: ReverseGeocodeCache | None = None,
        reverse_geocoder: NominatimClient | None = None,
    ) -> None:
        self._resolver = resolver
        self._provider = provider
        self._rules = rules
        self._thumbs_dir = thumbs_dir
        self._thumb_max_width = thumb_max_width
        self._geocache = geocache if geocache is not None else ReverseGeocodeCache()
        self._reverse_geocoder = reverse_geocoder

    def __call__(self, record: ImageRecord) -> RecordOutcome:
        try:
            return self._process(record)
        except Exception as exc:
            logger.exception("Record processing failed | name=%s", record.name)
            return RecordOutcome(name=record.name, status=STATUS_FAILED, error=str(exc))

    def _process(self, record: ImageRecord) -> RecordOutcome:
        resolution = self._resolver.resolve(record)
        if resolution.coordinate is None or resolution.source is None:
            return RecordOutcome(name=record.name, status=STATUS_SKIPPED, resolution=resolution)

        place = self._place_for(resolution)
        text = enrich(record.name, self._rules, place)
        thumb = materialize_thumbnail(
            record,
            self._provider,
            self._thumbs_dir,
            max_width=self._thumb_max_width,
        )
        feature = ResolvedFeature(
            coordinate=resolution.coordinate,
            title=text.title,
            source=resolution.source,
            taken_at=resolution.taken_at,
            path=record.path_display or record.path_key,
            place_title=text.place_title,
            blurb=text.blurb,
            curated_title=text.curated_title,
            curated_description=text.curated_description,
            thumb=thumb.local_path,
            thumb_external=thumb.external_url,
            full_external=thumb.full_url,
            original_page=thumb.page_url,
        )
        return RecordOutcome(
            name=record.name,
            status=STATUS_RESOLVED,
            resolution=resolution,
            feature=feature,
            thumbnail=thumb,
            reverse_geocoded=place is not None,
        )

    def _place_for(self, resolution: Resolution) -> PlaceInfo | None:
        if self._reverse_geocoder is None or resolution.coordinate is None:
            return None
        try:
            return self._geocache.get_or_fetch(resolution.coordinate, self._reverse_geocoder.reverse)
        except Exception as exc:
            logger.warning(
                "Reverse geocode failed | name=%s | error=%s",
                resolution.record.name,
                exc,
            )
            return None


def process_records(
    records: list[ImageRecord],
    processor: RecordProcessor,
    *,
    workers: int = 1,
) -> list[RecordOutcome]:
    """Process *records*, preserving their order in the result."""
    if workers <= 1 or len(records) <= 1:
        return [processor(record) for record in records]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resolve") as pool:
        return list(pool.map(processor, records))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_build(
    config: BuildConfig,
    *,
    provider: ImageProvider | None = None,
    geocoder: NominatimClient | None = None,
) -> BuildSummary:
    """Execute one full build and return its summary.

    Args:
        config: Validated build configuration.
        provider: Listing provider; created from ``config.image_provider``
            when omitted (and closed afterwards).
        geocoder: Forward/reverse geocoder; a ``NominatimClient`` is
            created when omitted and any geocoding flag is set.

    Raises:
        PipelineError: On startup failures (unreadable curator files,
            provider authentication or listing failure, unwritable output).
    """
    started = time.monotonic()
    output_dir = Path(config.output_dir)
    overrides = load_coordinate_overrides(Path(config.overrides_file))
    rules = ContentRules.load(Path(config.content_file))

    owns_provider = provider is None
    owns_geocoder = geocoder is None and config.geocoding_enabled
    if owns_provider:
        provider = get_provider(config.image_provider, config)
    if owns_geocoder:
        limiter = RateLimiter(config.nominatim_throttle_ms / 1000.0)
        geocoder = NominatimClient.from_config(config, limiter)

    geocache_path = output_dir / GEOCACHE_FILENAME
    geocache = ReverseGeocodeCache.load(geocache_path)

    logger.info(
        "Build started | provider=%s | output=%s | exif=%s | filename_geocode=%s "
        "| reverse_geocode=%s | workers=%d",
        provider.name,
        output_dir,
        config.enable_exif,
        config.enable_filename_geocode,
        config.enable_reverse_geocode,
        config.resolve_workers,
    )

    try:
        records = provider.list_images()
        logger.info("Images listed | count=%d", len(records))

        thumbs_dir = ensure_output_dirs(output_dir)
        resolver = CoordinateResolver.from_config(config, overrides, geocoder=geocoder)
        logger.info("Resolver chain | order=%s", ",".join(resolver.order))

        processor = RecordProcessor(
            resolver=resolver,
            provider=provider,
            rules=rules,
            thumbs_dir=thumbs_dir,
            thumb_max_width=config.thumb_max_width,
            geocache=geocache,
            reverse_geocoder=geocoder if config.enable_reverse_geocode else None,
        )
        outcomes = process_records(records, processor, workers=config.resolve_workers)

        features = [outcome.feature for outcome in outcomes if outcome.feature is not None]
        geojson_path = write_geojson(features, output_dir, config.geojson_filename)
        write_map_page(output_dir, data_url=config.geojson_filename, title=config.map_title)
        if config.enable_reverse_geocode:
            geocache.save(geocache_path)
    finally:
        if owns_provider:
            provider.close()
        if owns_geocoder and geocoder is not None:
            geocoder.close()

    summary = BuildSummary.from_outcomes(
        outcomes,
        geojson_path=str(geojson_path),
        elapsed_s=time.monotonic() - started,
    )
    log_summary(summary)
    return summary


def log_summary(summary: BuildSummary) -> None:
    logger.info(
        "Build complete | total=%d | resolved=%d | skipped=%d | failed=%d "
        "| source_errors=%d | local_thumbs=%d | external_images=%d | reverse_geocoded=%d "
        "| elapsed=%.1fs",
        summary.total,
        summary.resolved,
        summary.skipped,
        summary.failed,
        summary.source_errors,
        summary.local_thumbs,
        summary.external_images,
        summary.reverse_geocoded,
        summary.elapsed_s,
    )
    for source in ALL_SOURCES:
        logger.info("Resolved by source | source=%s | count=%d", source, summary.by_source.get(source, 0))
