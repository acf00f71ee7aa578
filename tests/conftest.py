"""Shared pytest fixtures for the photo map test suite."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from photo_map.core.config import PROVIDER_LOCAL, BuildConfig
from photo_map.models.record import ImageRecord, LazyBytes, Location

# ---------------------------------------------------------------------------
# Image bytes
# ---------------------------------------------------------------------------


def make_jpeg(width: int = 64, height: int = 48, color: tuple[int, int, int] = (200, 120, 40)) -> bytes:
    """Encode a solid-colour JPEG in memory."""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture()
def jpeg_bytes() -> bytes:
    """A small JPEG with no EXIF tags."""
    return make_jpeg()


@pytest.fixture()
def jpeg_factory() -> Callable[..., bytes]:
    """Build JPEGs of a chosen size."""
    return make_jpeg


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def make_record(
    name: str = "IMG_0001.jpg",
    *,
    folder: str = "/Trips",
    file_id: str = "",
    location: Location | None = None,
    content: bytes | None = None,
) -> ImageRecord:
    display = f"{folder}/{name}"
    return ImageRecord(
        name=name,
        path_key=display.lower(),
        path_display=display,
        file_id=file_id,
        location=location,
        content=LazyBytes(lambda: content) if content is not None else None,
    )


@pytest.fixture()
def record_factory() -> Callable[..., ImageRecord]:
    return make_record


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    """Empty image source directory for the local provider."""
    path = tmp_path / "photos"
    path.mkdir()
    return path


@pytest.fixture()
def local_config(tmp_path: Path, source_dir: Path) -> BuildConfig:
    """Offline configuration writing into ``tmp_path / "site"``."""
    return BuildConfig(
        image_provider=PROVIDER_LOCAL,
        local_source_dir=str(source_dir),
        output_dir=str(tmp_path / "site"),
        overrides_file=str(tmp_path / "overrides.json"),
        content_file=str(tmp_path / "content.json"),
    )
