"""Pydantic models for the GeoJSON output document.

The serialised form is the contract with the map page:

    {"type": "FeatureCollection",
     "features": [{"type": "Feature",
                   "properties": {...},
                   "geometry": {"type": "Point", "coordinates": [lon, lat]}}]}

Field declaration order is the JSON key order, so output is stable
between runs and diffs cleanly.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class PointGeometry(BaseModel):
    """GeoJSON ``Point``.  ``coordinates`` is always ``[lon, lat]``."""

    type: Literal["Point"] = "Point"
    coordinates: list[float]

    @field_validator("coordinates")
    @classmethod
    def _two_positions(cls, value: list[float]) -> list[float]:
        if len(value) != 2:
            msg = f"Point coordinates must be [lon, lat], got {len(value)} values"
            raise ValueError(msg)
        return value


class FeatureProperties(BaseModel):
    """Properties rendered by the map page popups and table of contents.

    Attributes:
        title: Title derived from the file name.
        place_title: Reverse-geocoded place title, or ``title``.
        blurb: Generated fallback description.
        curated_title: Title from the curator content rules.
        curated_description: Description from the curator content rules.
        taken_at: Capture timestamp, when known.
        source: Coordinate source tag (``media_info``, ``exif``, ...).
        path: Display path of the image in the source listing.
        original_page: Public preview page for the image.
        thumb: Thumbnail path relative to the output directory.
        thumb_external: External thumbnail URL when no local file exists.
        full_external: External URL of the full-size image.
    """

    title: str = ""
    place_title: str = ""
    blurb: str = ""
    curated_title: str = ""
    curated_description: str = ""
    taken_at: str | None = None
    source: str = ""
    path: str = ""
    original_page: str | None = None
    thumb: str | None = None
    thumb_external: str | None = None
    full_external: str | None = None


class GeoFeature(BaseModel):
    """A single GeoJSON ``Feature`` with point geometry."""

    type: Literal["Feature"] = "Feature"
    properties: FeatureProperties = Field(default_factory=FeatureProperties)
    geometry: PointGeometry


class FeatureCollection(BaseModel):
    """Top-level GeoJSON ``FeatureCollection``."""

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[GeoFeature] = Field(default_factory=list)

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to a pretty-printed JSON string."""
        return self.model_dump_json(indent=indent)

    @classmethod
    def from_json(cls, text: str | bytes) -> FeatureCollection:
        """Parse a previously written collection."""
        return cls.model_validate_json(text)
