"""Coordinate resolution.

- gazetteer: Static place-name table with longest-match lookup
- exif: GPS/capture-time extraction from image bytes (Pillow)
- strategies: One class per coordinate source
- resolver: Ordered fold over the strategies, per record
"""

from photo_map.resolve.gazetteer import DEFAULT_GAZETTEER, Gazetteer
from photo_map.resolve.resolver import (
    CoordinateResolver,
    Resolution,
    ResolutionStats,
    build_strategies,
    resolve,
)
from photo_map.resolve.strategies import Candidate, ResolverStrategy

__all__ = [
    "DEFAULT_GAZETTEER",
    "Candidate",
    "CoordinateResolver",
    "Gazetteer",
    "Resolution",
    "ResolutionStats",
    "ResolverStrategy",
    "build_strategies",
    "resolve",
]
