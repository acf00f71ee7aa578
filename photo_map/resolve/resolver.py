"""Coordinate resolver: folds the ordered strategy chain per record.

The priority order is the ``strategies`` tuple itself.  Folding rules:

1. A non-authoritative strategy is skipped once a coordinate is held.
2. An authoritative strategy (the override table) always runs and, when it
   yields a coordinate, replaces the current one.
3. The first capture time found is kept; later sources only fill it in.
4. An exception from any strategy is logged and counts as no
   contribution.  It never escapes ``resolve``.

Tallies are computed from the returned ``Resolution`` values
(``ResolutionStats.from_resolutions``), not from shared counters.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from photo_map.core.constants import ALL_SOURCES
from photo_map.resolve.gazetteer import DEFAULT_GAZETTEER
from photo_map.resolve.strategies import (
    ExifStrategy,
    GazetteerStrategy,
    GeocodeStrategy,
    MediaInfoStrategy,
    OverrideStrategy,
)

if TYPE_CHECKING:
    from photo_map.core.config import BuildConfig
    from photo_map.models.record import Coordinate, ImageRecord
    from photo_map.resolve.gazetteer import Gazetteer
    from photo_map.resolve.strategies import ForwardGeocoder, ResolverStrategy

logger = logging.getLogger("photo_map.resolve.resolver")


@dataclass(frozen=True, slots=True)
class Resolution:
    """Terminal classification of one record.

    Attributes:
        record: The record that was resolved.
        coordinate: Winning coordinate, ``None`` when unresolved.
        source: Tag of the strategy that supplied ``coordinate``.
        taken_at: Capture time from the first source that reported one.
        attempted: Sources consulted, in order.
        errors: ``"<source>: <error>"`` for every source that raised.
    """

    record: ImageRecord
    coordinate: Coordinate | None = None
    source: str | None = None
    taken_at: str | None = None
    attempted: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.coordinate is not None


@dataclass(frozen=True, slots=True)
class ResolutionStats:
    """Resolved-by-source breakdown for a run."""

    by_source: dict[str, int] = field(default_factory=dict)
    skipped: int = 0
    source_errors: int = 0

    @property
    def resolved(self) -> int:
        return sum(self.by_source.values())

    @classmethod
    def from_resolutions(cls, resolutions: Iterable[Resolution]) -> ResolutionStats:
        counts: Counter[str] = Counter({source: 0 for source in ALL_SOURCES})
        skipped = 0
        errors = 0
        for resolution in resolutions:
            errors += len(resolution.errors)
            if resolution.resolved and resolution.source:
                counts[resolution.source] += 1
            else:
                skipped += 1
        return cls(by_source=dict(counts), skipped=skipped, source_errors=errors)


def build_strategies(
    *,
    overrides: Mapping[str, Any],
    enable_exif: bool = True,
    gazetteer: Gazetteer = DEFAULT_GAZETTEER,
    geocoder: ForwardGeocoder | None = None,
) -> tuple[ResolverStrategy, ...]:
    """Assemble the default chain.  ``geocoder=None`` disables the last step."""
    strategies: list[ResolverStrategy] = [MediaInfoStrategy()]
    if enable_exif:
        strategies.append(ExifStrategy())
    strategies.append(OverrideStrategy(overrides))
    strategies.append(GazetteerStrategy(gazetteer))
    if geocoder is not None:
        strategies.append(GeocodeStrategy(geocoder))
    return tuple(strategies)


class CoordinateResolver:
    """Resolve records through an ordered, immutable strategy chain.

    Safe to share between threads as long as the strategies' collaborators
    are (the override table and gazetteer are read-only).
    """

    def __init__(self, strategies: Iterable[ResolverStrategy]) -> None:
        self._strategies = tuple(strategies)

    @property
    def strategies(self) -> tuple[ResolverStrategy, ...]:
        return self._strategies

    @property
    def order(self) -> tuple[str, ...]:
        """Source tags in priority order."""
        return tuple(strategy.source for strategy in self._strategies)

    @classmethod
    def from_config(
        cls,
        config: BuildConfig,
        overrides: Mapping[str, Any],
        *,
        gazetteer: Gazetteer = DEFAULT_GAZETTEER,
        geocoder: ForwardGeocoder | None = None,
    ) -> CoordinateResolver:
        return cls(
            build_strategies(
                overrides=overrides,
                enable_exif=config.enable_exif,
                gazetteer=gazetteer,
                geocoder=geocoder if config.enable_filename_geocode else None,
            )
        )

    def resolve(self, record: ImageRecord) -> Resolution:
        coordinate: Coordinate | None = None
        source: str | None = None
        taken_at: str | None = None
        attempted: list[str] = []
        errors: list[str] = []

        for strategy in self._strategies:
            if coordinate is not None and not strategy.authoritative:
                continue
            attempted.append(strategy.source)
            try:
                candidate = strategy.contribute(record)
            except Exception as exc:
                logger.warning(
                    "Coordinate source failed | name=%s | source=%s | error=%s",
                    record.name,
                    strategy.source,
                    exc,
                )
                errors.append(f"{strategy.source}: {exc}")
                continue
            if candidate is None:
                continue
            if taken_at is None and candidate.taken_at:
                taken_at = candidate.taken_at
            if candidate.coordinate is not None:
                if coordinate is not None:
                    logger.info(
                        "Coordinate superseded | name=%s | from=%s | by=%s",
                        record.name,
                        source,
                        strategy.source,
                    )
                coordinate = candidate.coordinate
                source = strategy.source

        if coordinate is None:
            logger.info("Record unresolved | name=%s | attempted=%s", record.name, attempted)
        else:
            logger.debug(
                "Record resolved | name=%s | source=%s | lon=%.5f | lat=%.5f",
                record.name,
                source,
                coordinate.lon,
                coordinate.lat,
            )

        return Resolution(
            record=record,
            coordinate=coordinate,
            source=source,
            taken_at=taken_at,
            attempted=tuple(attempted),
            errors=tuple(errors),
        )


def resolve(
    record: ImageRecord,
    overrides: Mapping[str, Any],
    config: BuildConfig,
    *,
    gazetteer: Gazetteer = DEFAULT_GAZETTEER,
    geocoder: ForwardGeocoder | None = None,
) -> Resolution:
    """Resolve a single record with the chain described by *config*."""
    resolver = CoordinateResolver.from_config(
        config,
        overrides,
        gazetteer=gazetteer,
        geocoder=geocoder,
    )
    return resolver.resolve(record)
