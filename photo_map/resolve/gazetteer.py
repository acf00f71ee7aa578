"""Static place-name gazetteer for filename-based coordinate guesses.

Keys are normalised place tokens (lower-case, no diacritics); values are
``(lon, lat)`` pairs.  Lookup picks the **longest** key contained in the
normalised file name, so ``"cheile bicazului"`` beats ``"bicaz"``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from photo_map.models.record import Coordinate
from photo_map.utils.text import normalize_text

# Romanian highlights, stored as (lon, lat).
ROMANIA_HIGHLIGHTS: Mapping[str, tuple[float, float]] = MappingProxyType(
    {
        "breb": (23.9049, 47.7485),
        "barsana": (24.0425, 47.7367),
        "brateiu": (24.3826, 46.1491),
        "bethlen cris": (24.6710, 46.1932),
        "cris": (24.6710, 46.1932),
        "bistrita": (24.5, 47.133),
        "bnr": (26.0986, 44.4305),  # National Bank, Bucharest
        "ateneu": (26.0980, 44.4412),  # Romanian Athenaeum
        "cheile bicazului": (25.8241, 46.8121),
        "bicaz": (26.0901, 46.9133),  # lake and dam
        "bigar": (22.3514, 45.0039),
        "praid": (25.1358, 46.5534),
        "sasca": (21.7577, 44.8803),  # Nera gorge, Sasca Montana
        "sucevita": (25.7206, 47.7814),
        "sapanta": (23.6932, 47.9682),
        "viscri": (25.0918, 46.0558),
        "tihuta": (24.8058, 47.3147),  # Tihuta pass
        "bazias": (21.4300, 44.7840),
        "vodita": (22.4160, 44.6730),
        "zimbri hateg": (22.9538, 45.6117),  # Hateg bison reserve
        "vanatori neamt": (26.2340, 47.2190),
        "lazarea": (25.5169, 46.7770),
        "en isala": (28.8382, 44.8864),  # Enisala, split spelling
        "enisala": (28.8382, 44.8864),
        "feldioara": (25.5862, 45.8282),
        "poienile izei": (24.1160, 47.6940),
        "maramures": (23.9, 47.7),  # broad region
        "oravita": (21.6911, 45.0391),
        "anina": (21.8583, 45.0839),
        "capidava": (28.0800, 44.5100),
        "cernavoda": (28.0333, 44.3333),
        "harsova": (27.9533, 44.6833),
        "rasova": (27.9344, 44.2458),
        "seimeni": (28.0713, 44.3932),
        "izvoarele": (28.1650, 44.3920),  # Constanta county
        "topalu": (28.0110, 44.5310),
        "ghindaresti": (28.0160, 44.3240),
        "ogra": (24.2890, 46.4640),
        "haller": (24.2890, 46.4640),  # Haller castle, Ogra
        "dupus": (24.2164, 46.2178),
    }
)


class Gazetteer:
    """Immutable name → coordinate table with longest-substring lookup."""

    def __init__(self, entries: Mapping[str, tuple[float, float]]) -> None:
        table: dict[str, Coordinate] = {}
        for name, (lon, lat) in entries.items():
            key = normalize_text(name).strip()
            if key:
                table[key] = Coordinate(lon=lon, lat=lat)
        self._entries: Mapping[str, Coordinate] = MappingProxyType(table)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def matches(self, normalized_name: str) -> list[str]:
        """All keys contained in *normalized_name*, longest first."""
        found = [key for key in self._entries if key in normalized_name]
        return sorted(found, key=lambda key: (-len(key), key))

    def lookup(self, normalized_name: str) -> Coordinate | None:
        """Return the coordinate of the longest key found in *normalized_name*."""
        if not normalized_name:
            return None
        found = self.matches(normalized_name)
        return self._entries[found[0]] if found else None


DEFAULT_GAZETTEER = Gazetteer(ROMANIA_HIGHLIGHTS)
