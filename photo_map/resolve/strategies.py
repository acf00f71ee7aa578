"""Coordinate source strategies.

Each strategy inspects one source and returns a ``Candidate`` or ``None``.
The resolver folds an ordered tuple of strategies left to right:

==================  =============  =================================
strategy            source tag     runs when
==================  =============  =================================
MediaInfoStrategy   ``media_info`` always first
ExifStrategy        ``exif``       no coordinate yet, EXIF enabled
OverrideStrategy    ``override``   always (authoritative)
GazetteerStrategy   ``filename``   no coordinate yet
GeocodeStrategy     ``geocode``    no coordinate yet, geocoding enabled
==================  =============  =================================

An *authoritative* strategy runs even after an earlier source produced a
coordinate and replaces it; the capture time already found is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from photo_map.core.constants import (
    SOURCE_EXIF,
    SOURCE_FILENAME,
    SOURCE_GEOCODE,
    SOURCE_MEDIA_INFO,
    SOURCE_OVERRIDE,
)
from photo_map.models.record import Coordinate
from photo_map.resolve.exif import read_exif_location
from photo_map.utils.text import filename_key, query_from_filename

if TYPE_CHECKING:
    from photo_map.models.record import ImageRecord
    from photo_map.resolve.gazetteer import Gazetteer

logger = logging.getLogger("photo_map.resolve.strategies")


@dataclass(frozen=True, slots=True)
class Candidate:
    """What one source contributed for a record.

    Attributes:
        coordinate: The point found, or ``None`` when the source only
            knew the capture time.
        taken_at: Capture timestamp, if the source reports one.
    """

    coordinate: Coordinate | None
    taken_at: str | None = None


class ForwardGeocoder(Protocol):
    def search(self, query: str) -> Coordinate | None: ...


class ResolverStrategy:
    """Base class: one coordinate source in the fallback chain."""

    #: Source tag recorded on features resolved by this strategy.
    source: str = ""
    #: Whether the strategy runs (and wins) even when a coordinate is held.
    authoritative: bool = False

    def contribute(self, record: ImageRecord) -> Candidate | None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source={self.source!r})"


class MediaInfoStrategy(ResolverStrategy):
    """Location reported by the listing itself."""

    source = SOURCE_MEDIA_INFO

    def contribute(self, record: ImageRecord) -> Candidate | None:
        location = record.location
        if location is None:
            return None
        return Candidate(coordinate=location.to_coordinate(), taken_at=location.taken_at)


class ExifStrategy(ResolverStrategy):
    """GPS tags read out of the downloaded image bytes."""

    source = SOURCE_EXIF

    def contribute(self, record: ImageRecord) -> Candidate | None:
        if record.content is None:
            return None
        location = read_exif_location(record.content.get())
        if location is None:
            return None
        return Candidate(coordinate=location.to_coordinate(), taken_at=location.taken_at)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class OverrideStrategy(ResolverStrategy):
    """Curator correction keyed by the record's exact display path."""

    source = SOURCE_OVERRIDE
    authoritative = True

    def __init__(self, overrides: Mapping[str, Any]) -> None:
        self._overrides = overrides

    def contribute(self, record: ImageRecord) -> Candidate | None:
        entry = self._overrides.get(record.override_key)
        if not isinstance(entry, Mapping):
            return None
        lat, lon = entry.get("lat"), entry.get("lon")
        if not (_is_number(lat) and _is_number(lon)):
            logger.warning(
                "Override ignored (lat/lon must be numbers) | path=%s | entry=%s",
                record.override_key,
                entry,
            )
            return None
        return Candidate(coordinate=Coordinate(lon=float(lon), lat=float(lat)))


class GazetteerStrategy(ResolverStrategy):
    """Longest gazetteer key found in the normalised file name."""

    source = SOURCE_FILENAME

    def __init__(self, gazetteer: Gazetteer) -> None:
        self._gazetteer = gazetteer

    def contribute(self, record: ImageRecord) -> Candidate | None:
        coordinate = self._gazetteer.lookup(filename_key(record.name))
        return Candidate(coordinate=coordinate) if coordinate else None


class GeocodeStrategy(ResolverStrategy):
    """Forward-geocode the cleaned file name (first result)."""

    source = SOURCE_GEOCODE

    def __init__(self, geocoder: ForwardGeocoder) -> None:
        self._geocoder = geocoder

    def contribute(self, record: ImageRecord) -> Candidate | None:
        coordinate = self._geocoder.search(query_from_filename(record.name))
        return Candidate(coordinate=coordinate) if coordinate else None
