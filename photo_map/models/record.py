"""Typed models for images discovered in a source listing.

- ``Coordinate``: A validated WGS 84 point stored as ``(lon, lat)``
- ``Location``: Listing-supplied location + capture time (optional on a record)
- ``LazyBytes``: Memoised byte loader so a record is downloaded at most once
- ``ImageRecord``: One image entry from a provider listing

All models are frozen dataclasses.  Absence of embedded metadata is an
explicit ``None`` ``location`` rather than a missing nested key.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from photo_map.core.constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)
from photo_map.core.exceptions import PipelineError

if TYPE_CHECKING:
    from collections.abc import Callable


class ModelValidationError(ValueError, PipelineError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        PipelineError.__init__(self, formatted)


def _check_range(model: str, name: str, value: float, lo: float, hi: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ModelValidationError(model, name, value, "must be a number")
    if math.isnan(value) or not lo <= value <= hi:
        raise ModelValidationError(model, name, value, f"must be between {lo} and {hi}")


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS 84 point.

    Stored and serialised in GeoJSON order: longitude first.

    Attributes:
        lon: Longitude in decimal degrees (-180..180).
        lat: Latitude in decimal degrees (-90..90).
    """

    lon: float
    lat: float

    def __post_init__(self) -> None:
        _check_range("Coordinate", "lon", self.lon, MIN_LONGITUDE, MAX_LONGITUDE)
        _check_range("Coordinate", "lat", self.lat, MIN_LATITUDE, MAX_LATITUDE)

    def as_lon_lat(self) -> list[float]:
        """Return ``[lon, lat]`` for GeoJSON ``coordinates``."""
        return [float(self.lon), float(self.lat)]


@dataclass(frozen=True, slots=True)
class Location:
    """Location metadata carried by a listing entry or embedded tags.

    Either coordinate may be ``None`` when the source only reports part of
    a fix; such a location does not resolve a record.

    Attributes:
        lat: Latitude, if known.
        lon: Longitude, if known.
        taken_at: Capture timestamp as reported by the source.
    """

    lat: float | None = None
    lon: float | None = None
    taken_at: str | None = None

    @property
    def is_complete(self) -> bool:
        """Whether both latitude and longitude are present."""
        return self.lat is not None and self.lon is not None

    def to_coordinate(self) -> Coordinate | None:
        """Return a validated ``Coordinate`` or ``None`` if incomplete."""
        if not self.is_complete:
            return None
        return Coordinate(lon=self.lon, lat=self.lat)  # type: ignore[arg-type]


class LazyBytes:
    """Fetch a record's bytes on first access and memoise them.

    A failed fetch is not cached, so a later consumer may try again.
    """

    def __init__(self, loader: Callable[[], bytes]) -> None:
        self._loader = loader
        self._data: bytes | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._data is not None

    def get(self) -> bytes:
        with self._lock:
            if self._data is None:
                self._data = self._loader()
            return self._data


@dataclass(frozen=True, slots=True)
class ImageRecord:
    """A single image discovered in a provider listing.

    Attributes:
        name: Display file name (e.g. ``"Cheile Bicazului 2.jpg"``).
        path_key: Normalised unique path (lower-case) within the listing;
            thumbnail cache key.
        path_display: Exact display path; override-table lookup key.
        file_id: Provider file identifier, if any.
        location: Listing-supplied location, ``None`` when absent.
        content: Lazy byte handle, ``None`` when the provider cannot serve bytes.
    """

    name: str
    path_key: str
    path_display: str = ""
    file_id: str = ""
    location: Location | None = None
    content: LazyBytes | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ModelValidationError("ImageRecord", "name", self.name, "must not be empty")
        if not self.path_key:
            raise ModelValidationError(
                "ImageRecord", "path_key", self.path_key, "must not be empty"
            )

    @property
    def override_key(self) -> str:
        """Key used for the coordinate override table."""
        return self.path_display or self.path_key
