"""Data model for a resolved image feature.

A ``ResolvedFeature`` is produced for every image record whose coordinate
was resolved.  It is the input to the artifact writer, which serialises
it without re-deriving coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass

from photo_map.models.geojson import FeatureProperties, GeoFeature, PointGeometry
from photo_map.models.record import Coordinate


@dataclass(frozen=True, slots=True)
class ResolvedFeature:
    """A single geolocated image ready for output.

    Attributes:
        coordinate: Resolved point (lon, lat).
        title: Title derived from the file name.
        source: Coordinate source tag.
        taken_at: Capture timestamp, if known.
        path: Display path of the image.
        place_title: Reverse-geocoded place title (falls back to ``title``).
        blurb: Generated fallback description.
        curated_title: Curator-supplied title.
        curated_description: Curator-supplied description.
        thumb: Local thumbnail reference relative to the output directory.
        thumb_external: External thumbnail fallback URL.
        full_external: External full-size image URL.
        original_page: Public preview page URL.
    """

    coordinate: Coordinate
    title: str
    source: str
    taken_at: str | None = None
    path: str = ""
    place_title: str = ""
    blurb: str = ""
    curated_title: str = ""
    curated_description: str = ""
    thumb: str | None = None
    thumb_external: str | None = None
    full_external: str | None = None
    original_page: str | None = None

    @property
    def has_image(self) -> bool:
        """Whether any image reference (local or external) is available."""
        return bool(self.thumb or self.thumb_external or self.full_external)

    def to_geojson(self) -> GeoFeature:
        """Build the GeoJSON ``Feature`` for this image."""
        return GeoFeature(
            properties=FeatureProperties(
                title=self.title,
                place_title=self.place_title or self.title,
                blurb=self.blurb,
                curated_title=self.curated_title,
                curated_description=self.curated_description,
                taken_at=self.taken_at,
                source=self.source,
                path=self.path,
                original_page=self.original_page,
                thumb=self.thumb,
                thumb_external=self.thumb_external,
                full_external=self.full_external,
            ),
            geometry=PointGeometry(coordinates=self.coordinate.as_lon_lat()),
        )
