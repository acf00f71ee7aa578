"""Materialize thumbnail activity: local JPEG or external link per record.

Attempts, in order:

1. Provider thumbnail addressed by path → ``thumbs/t-<md5(path_key)>.jpg``.
2. Provider thumbnail addressed by file id → ``thumbs/t-<md5(id)>.jpg``.
3. The public raw link, exposed as ``external_url`` for ``<img>`` use.

Every outcome, including "nothing", is terminal; the feature is emitted
either way.  Thumbnail names depend only on the record's path or id, so
reruns overwrite the previous file instead of accumulating copies.
Thumbnails wider than ``max_width`` are downscaled with Pillow.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PIL import Image

from photo_map.core.constants import THUMB_JPEG_QUALITY, THUMBS_DIRNAME
from photo_map.core.exceptions import PermanentError
from photo_map.providers.base import THUMB_BY_ID, THUMB_BY_PATH, SharedLinks
from photo_map.utils.helpers import thumbnail_filename

if TYPE_CHECKING:
    from pathlib import Path

    from photo_map.models.record import ImageRecord
    from photo_map.providers.base import ImageProvider

logger = logging.getLogger("photo_map.activities.materialize_thumbnail")

STRATEGY_EXTERNAL = "external"
STRATEGY_NONE = "none"


class ThumbnailError(PermanentError):
    """Raised when thumbnail bytes cannot be decoded or re-encoded."""

    default_stage = "materialize_thumbnail"
    default_code = "THUMBNAIL_ENCODE_FAILED"


@dataclass(frozen=True, slots=True)
class ThumbnailResult:
    """Image references for one record.

    Attributes:
        local_path: Thumbnail path relative to the output directory.
        external_url: Raw link used when no local thumbnail exists.
        full_url: Raw link to the full-size image.
        page_url: Public preview page.
        strategy: ``"path"``, ``"id"``, ``"external"`` or ``"none"``.
    """

    local_path: str | None = None
    external_url: str | None = None
    full_url: str | None = None
    page_url: str | None = None
    strategy: str = STRATEGY_NONE

    @property
    def is_local(self) -> bool:
        return self.local_path is not None


def fit_thumbnail(data: bytes, max_width: int) -> bytes:
    """Re-encode *data* as JPEG no wider than *max_width* pixels.

    Raises:
        ThumbnailError: If Pillow cannot decode the bytes.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            if image.width > max_width:
                height = max(1, round(image.height * max_width / image.width))
                image = image.resize((max_width, height), Image.Resampling.LANCZOS)
            out = io.BytesIO()
            image.save(out, format="JPEG", quality=THUMB_JPEG_QUALITY)
    except (OSError, ValueError, SyntaxError) as exc:
        msg = f"Cannot encode thumbnail: {exc}"
        raise ThumbnailError(msg) from exc
    return out.getvalue()


def materialize_thumbnail(
    record: ImageRecord,
    provider: ImageProvider,
    thumbs_dir: Path,
    *,
    max_width: int,
) -> ThumbnailResult:
    """Produce a local thumbnail or external link for *record*.  Never raises."""
    links = _safe_links(record, provider)

    attempts = (
        (THUMB_BY_PATH, record.path_key),
        (THUMB_BY_ID, record.file_id or record.path_key),
    )
    for mode, key in attempts:
        try:
            data = fit_thumbnail(provider.thumbnail(record, by=mode), max_width)
            filename = thumbnail_filename(key)
            thumbs_dir.mkdir(parents=True, exist_ok=True)
            (thumbs_dir / filename).write_bytes(data)
        except Exception as exc:
            logger.debug(
                "Thumbnail attempt failed | name=%s | by=%s | error=%s",
                record.name,
                mode,
                exc,
            )
            continue
        logger.debug("Thumbnail written | name=%s | by=%s | file=%s", record.name, mode, filename)
        return ThumbnailResult(
            local_path=f"{THUMBS_DIRNAME}/{filename}",
            full_url=links.raw_url,
            page_url=links.page_url,
            strategy=mode,
        )

    if links.raw_url:
        logger.info("Using external image link | name=%s", record.name)
        return ThumbnailResult(
            external_url=links.raw_url,
            full_url=links.raw_url,
            page_url=links.page_url,
            strategy=STRATEGY_EXTERNAL,
        )

    logger.warning("No image available | name=%s", record.name)
    return ThumbnailResult(page_url=links.page_url)


def _safe_links(record: ImageRecord, provider: ImageProvider) -> SharedLinks:
    try:
        return provider.shared_links(record)
    except Exception as exc:
        logger.warning("Shared link lookup failed | name=%s | error=%s", record.name, exc)
        return SharedLinks()
