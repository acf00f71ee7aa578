"""Reverse-geocode memo keyed by rounded coordinate.

Key derivation: ``f"{lat:.5f},{lon:.5f}"`` (about 1 m precision).
Staleness: entries never expire within a run and are persisted to
``geocache.json`` between runs.  The memo exists to spare the rate-limited
service; a cached entry is not treated as authoritative.  Negative
results (``None``) are remembered for the current run only.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import TYPE_CHECKING

from photo_map.geocoding.nominatim import PlaceInfo

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from photo_map.models.record import Coordinate

logger = logging.getLogger("photo_map.geocoding.cache")

PRECISION = 5


def cache_key(coordinate: Coordinate, precision: int = PRECISION) -> str:
    """Rounded ``"lat,lon"`` key for *coordinate*."""
    return f"{coordinate.lat:.{precision}f},{coordinate.lon:.{precision}f}"


class ReverseGeocodeCache:
    """Thread-safe memo of reverse lookups."""

    def __init__(self, entries: dict[str, PlaceInfo | None] | None = None) -> None:
        self._entries: dict[str, PlaceInfo | None] = dict(entries or {})
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, coordinate: object) -> bool:
        return cache_key(coordinate) in self._entries  # type: ignore[arg-type]

    def get_or_fetch(
        self,
        coordinate: Coordinate,
        fetch: Callable[[Coordinate], PlaceInfo | None],
    ) -> PlaceInfo | None:
        """Return the memoised place for *coordinate*, calling *fetch* on a miss.

        Exceptions raised by *fetch* propagate and nothing is cached.
        """
        key = cache_key(coordinate)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        info = fetch(coordinate)
        with self._lock:
            self._entries[key] = info
        return info

    @classmethod
    def load(cls, path: Path) -> ReverseGeocodeCache:
        """Load a persisted memo; a missing or unreadable file gives an empty one."""
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls()
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable geocache | path=%s | error=%s", path, exc)
            return cls()
        if not isinstance(raw, dict):
            logger.warning("Ignoring geocache with unexpected shape | path=%s", path)
            return cls()
        entries: dict[str, PlaceInfo | None] = {}
        for key, value in raw.items():
            if isinstance(value, dict) and value.get("nice_title"):
                entries[str(key)] = PlaceInfo.from_dict(value)
        logger.info("Loaded geocache | path=%s | entries=%d", path, len(entries))
        return cls(entries)

    def save(self, path: Path) -> None:
        """Persist positive entries as pretty-printed JSON (whole-file overwrite)."""
        with self._lock:
            payload = {
                key: info.to_dict()
                for key, info in sorted(self._entries.items())
                if info is not None
            }
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
