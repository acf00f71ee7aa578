"""Data models and schemas.

Defines the data structures used throughout the build:
- ImageRecord: An image entry from a provider listing
- Coordinate / Location: Validated points and optional listing metadata
- ResolvedFeature: A geolocated image ready for output
- FeatureCollection: The GeoJSON output document (pydantic)
"""

from photo_map.models.feature import ResolvedFeature
from photo_map.models.geojson import (
    FeatureCollection,
    FeatureProperties,
    GeoFeature,
    PointGeometry,
)
from photo_map.models.record import (
    Coordinate,
    ImageRecord,
    LazyBytes,
    Location,
    ModelValidationError,
)

__all__ = [
    "Coordinate",
    "FeatureCollection",
    "FeatureProperties",
    "GeoFeature",
    "ImageRecord",
    "LazyBytes",
    "Location",
    "ModelValidationError",
    "PointGeometry",
    "ResolvedFeature",
]
