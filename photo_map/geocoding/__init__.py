"""External geocoding service (OpenStreetMap Nominatim).

- NominatimClient: forward search and reverse lookup over ``httpx``
- RateLimiter: global minimum delay between calls
- ReverseGeocodeCache: rounded-coordinate memo persisted between runs
"""

from photo_map.geocoding.cache import ReverseGeocodeCache, cache_key
from photo_map.geocoding.nominatim import GeocodeError, NominatimClient, PlaceInfo
from photo_map.geocoding.throttle import RateLimiter

__all__ = [
    "GeocodeError",
    "NominatimClient",
    "PlaceInfo",
    "RateLimiter",
    "ReverseGeocodeCache",
    "cache_key",
]
