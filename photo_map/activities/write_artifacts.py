"""Write artifacts activity: GeoJSON document and static map page.

Every artifact is written to a sibling temporary file and moved into
place with ``os.replace``, so reruns replace the previous output and an
interrupted write never leaves a truncated file behind.  The GeoJSON
document is serialised through the pydantic models in
``photo_map.models.geojson``; coordinates are passed through as
``[lon, lat]`` without re-derivation.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, PackageLoader, select_autoescape

from photo_map.core.constants import MAP_PAGE_FILENAMES, THUMBS_DIRNAME
from photo_map.core.exceptions import PipelineError
from photo_map.models.geojson import FeatureCollection

if TYPE_CHECKING:
    from collections.abc import Iterable

    from photo_map.models.feature import ResolvedFeature

logger = logging.getLogger("photo_map.activities.write_artifacts")

MAP_TEMPLATE = "index.html.j2"
LEAFLET_VERSION = "1.9.4"
MARKERCLUSTER_VERSION = "1.5.3"

# Romania
DEFAULT_CENTER = (45.94, 25.00)
DEFAULT_ZOOM = 6


class ArtifactWriteError(PipelineError):
    """Raised when an output file cannot be written."""

    default_stage = "write_artifacts"
    default_code = "ARTIFACT_WRITE_FAILED"


_environment = Environment(
    loader=PackageLoader("photo_map", "templates"),
    autoescape=select_autoescape(["html", "j2"]),
    keep_trailing_newline=True,
)


def ensure_output_dirs(output_dir: Path) -> Path:
    """Create the output and thumbnail directories; return the thumbnail dir."""
    thumbs_dir = output_dir / THUMBS_DIRNAME
    try:
        thumbs_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Cannot create output directory {output_dir}: {exc}"
        raise ArtifactWriteError(msg) from exc
    return thumbs_dir


def build_collection(features: Iterable[ResolvedFeature]) -> FeatureCollection:
    return FeatureCollection(features=[feature.to_geojson() for feature in features])


def write_geojson(
    features: Iterable[ResolvedFeature],
    output_dir: Path,
    filename: str,
) -> Path:
    """Write the FeatureCollection to ``output_dir / filename``.

    Args:
        features: Resolved features in output order.
        output_dir: Target directory; created when missing.
        filename: Document file name (``locations.json`` by default).

    Returns:
        Path of the written file.

    Raises:
        ArtifactWriteError: If the file cannot be written.
    """
    collection = build_collection(features)
    target = output_dir / filename
    _write_text(target, collection.to_json() + "\n")
    logger.info("GeoJSON written | path=%s | features=%d", target, len(collection.features))
    return target


def render_map_page(
    *,
    data_url: str,
    title: str,
    center: tuple[float, float] = DEFAULT_CENTER,
    zoom: int = DEFAULT_ZOOM,
) -> str:
    """Render the Leaflet map page that loads *data_url*."""
    template = _environment.get_template(MAP_TEMPLATE)
    return template.render(
        title=title,
        data_url=data_url,
        center_lat=center[0],
        center_lon=center[1],
        zoom=zoom,
        leaflet_version=LEAFLET_VERSION,
        markercluster_version=MARKERCLUSTER_VERSION,
    )


def write_map_page(output_dir: Path, *, data_url: str, title: str) -> list[Path]:
    """Write ``index.html`` and the ``200.html`` static-host fallback.

    Raises:
        ArtifactWriteError: If a page cannot be written.
    """
    html = render_map_page(data_url=data_url, title=title)
    written = []
    for name in MAP_PAGE_FILENAMES:
        target = output_dir / name
        _write_text(target, html)
        written.append(target)
    logger.info("Map page written | files=%s", ",".join(path.name for path in written))
    return written


def _write_text(target: Path, text: str) -> None:
    tmp_path: Path | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(text)
        os.replace(tmp_path, target)
    except OSError as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        msg = f"Failed to write {target}: {exc}"
        raise ArtifactWriteError(msg) from exc
