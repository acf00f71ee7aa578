"""Local directory adapter.

Serves the same ``ImageProvider`` contract from a directory tree, for
offline builds and fixtures.  There are no public links; the
"thumbnail" is the original file, which the thumbnail materializer
downscales.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from photo_map.models.record import ImageRecord
from photo_map.providers.base import (
    THUMB_BY_PATH,
    ImageProvider,
    ProviderDownloadError,
    ProviderListingError,
    ProviderThumbnailError,
    SharedLinks,
)
from photo_map.providers.dropbox import is_image

if TYPE_CHECKING:
    from photo_map.core.config import BuildConfig

logger = logging.getLogger("photo_map.providers.local")

PROVIDER_NAME = "local"


class LocalFolderProvider(ImageProvider):
    """Enumerate images below ``LOCAL_SOURCE_DIR``."""

    name = PROVIDER_NAME

    def __init__(self, config: BuildConfig) -> None:
        self._root = Path(config.local_source_dir)

    def list_images(self) -> list[ImageRecord]:
        if not self._root.is_dir():
            msg = f"Source directory does not exist: {self._root}"
            raise ProviderListingError(PROVIDER_NAME, msg)

        records: list[ImageRecord] = []
        for path in sorted(self._root.rglob("*")):
            if not path.is_file() or not is_image(path.name):
                continue
            # Case preserved: distinct files on a case-sensitive filesystem
            # must keep distinct keys.
            display = "/" + path.relative_to(self._root).as_posix()
            records.append(
                self.with_content(ImageRecord(name=path.name, path_key=display, path_display=display))
            )
        logger.info("Local listing complete | root=%s | images=%d", self._root, len(records))
        return records

    def fetch_bytes(self, record: ImageRecord) -> bytes:
        return self._read(self._resolve(record))

    def shared_links(self, record: ImageRecord) -> SharedLinks:  # noqa: ARG002
        return SharedLinks()

    def thumbnail(self, record: ImageRecord, *, by: str = THUMB_BY_PATH) -> bytes:  # noqa: ARG002
        try:
            return self._read(self._resolve(record))
        except ProviderDownloadError as exc:
            raise ProviderThumbnailError(PROVIDER_NAME, exc.message) from exc

    def _resolve(self, record: ImageRecord) -> Path:
        return self._root / record.path_display.lstrip("/")

    def _read(self, path: Path) -> bytes:
        try:
            data = path.read_bytes()
        except OSError as exc:
            msg = f"Cannot read {path}: {exc}"
            raise ProviderDownloadError(PROVIDER_NAME, msg) from exc
        if not data:
            msg = f"File is empty: {path}"
            raise ProviderDownloadError(PROVIDER_NAME, msg)
        return data
