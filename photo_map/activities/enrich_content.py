"""Content enrichment: titles, descriptions, and curator input files.

Two optional curator files are read once per run:

``overrides.json``
    ``{"<exact display path>": {"lat": 46.1, "lon": 24.6}, ...}``: coordinate
    corrections consumed by the resolver's override strategy.

``content.json``
    ``[{"filename": "IMG_1.jpg", "title": "...", "description": "..."},
    {"pattern": "viscri", "title": "...", "description": "..."}]``: title and
    description rules.  An exact base-filename rule wins over patterns;
    among patterns the first match wins.

A missing file is an empty configuration, not an error.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from photo_map.core.exceptions import ValidationError
from photo_map.utils.text import base_key, title_from_filename

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from photo_map.geocoding.nominatim import PlaceInfo

logger = logging.getLogger("photo_map.activities.enrich_content")


class ContentFileError(ValidationError):
    """Raised when a curator file exists but has the wrong shape."""

    default_stage = "load_content"
    default_code = "CONTENT_FILE_INVALID"


@dataclass(frozen=True, slots=True)
class ContentEntry:
    """Curator title and description for matching images."""

    title: str = ""
    description: str = ""


@dataclass(frozen=True, slots=True)
class ContentRules:
    """Exact-name and regular-expression content rules."""

    by_name: Mapping[str, ContentEntry] = field(default_factory=dict)
    patterns: tuple[tuple[re.Pattern[str], ContentEntry], ...] = ()

    def __len__(self) -> int:
        return len(self.by_name) + len(self.patterns)

    def match(self, name: str) -> ContentEntry | None:
        """Return the rule for file *name*: exact name first, then patterns."""
        key = base_key(name)
        exact = self.by_name.get(key)
        if exact is not None:
            return exact
        for pattern, entry in self.patterns:
            if pattern.search(key):
                return entry
        return None

    @classmethod
    def from_list(cls, items: list[Any]) -> ContentRules:
        by_name: dict[str, ContentEntry] = {}
        patterns: list[tuple[re.Pattern[str], ContentEntry]] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            entry = ContentEntry(
                title=str(item.get("title") or "").strip(),
                description=str(item.get("description") or "").strip(),
            )
            if item.get("filename"):
                by_name[base_key(str(item["filename"]))] = entry
            elif item.get("pattern"):
                try:
                    compiled = re.compile(str(item["pattern"]), re.IGNORECASE)
                except re.error as exc:
                    logger.warning(
                        "Skipping invalid content pattern | pattern=%s | error=%s",
                        item["pattern"],
                        exc,
                    )
                    continue
                patterns.append((compiled, entry))
        return cls(by_name=MappingProxyType(by_name), patterns=tuple(patterns))

    @classmethod
    def load(cls, path: Path) -> ContentRules:
        """Load rules from *path*; a missing file yields empty rules.

        Raises:
            ContentFileError: If the file is not a JSON array.
        """
        data = _read_json(path)
        if data is None:
            logger.info("No content file: using automatic titles | path=%s", path)
            return cls()
        if not isinstance(data, list):
            msg = f"{path} must contain a JSON array of rules"
            raise ContentFileError(msg)
        rules = cls.from_list(data)
        logger.info(
            "Content rules loaded | names=%d | patterns=%d",
            len(rules.by_name),
            len(rules.patterns),
        )
        return rules


def load_coordinate_overrides(path: Path) -> Mapping[str, Any]:
    """Load the override table as a read-only mapping.

    Raises:
        ContentFileError: If the file is not a JSON object.
    """
    data = _read_json(path)
    if data is None:
        logger.info("No overrides file | path=%s", path)
        return MappingProxyType({})
    if not isinstance(data, dict):
        msg = f"{path} must contain a JSON object keyed by display path"
        raise ContentFileError(msg)
    logger.info("Coordinate overrides loaded | entries=%d", len(data))
    return MappingProxyType(dict(data))


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        return json.loads(text)
    except ValueError as exc:
        msg = f"{path} is not valid JSON: {exc}"
        raise ContentFileError(msg) from exc


# ---------------------------------------------------------------------------
# Titles and descriptions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Enrichment:
    """Display text for one feature."""

    title: str
    place_title: str
    blurb: str
    curated_title: str = ""
    curated_description: str = ""


def make_blurb(place_title: str, place: PlaceInfo | None = None) -> str:
    """Fallback English description for a place."""
    area = place.area if place is not None else "Romania"
    return (
        f"{place_title} is a photogenic stop in {area}. Take a short walk, "
        "find a view, and let it fold into your itinerary."
    )


def enrich(name: str, rules: ContentRules, place: PlaceInfo | None = None) -> Enrichment:
    """Build titles and descriptions for the image called *name*."""
    title = title_from_filename(name)
    place_title = place.nice_title if place is not None and place.nice_title else title
    curated = rules.match(name)
    return Enrichment(
        title=title,
        place_title=place_title,
        blurb=make_blurb(place_title, place),
        curated_title=curated.title if curated else "",
        curated_description=curated.description if curated else "",
    )
