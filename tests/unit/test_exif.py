"""Tests for EXIF GPS extraction."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from photo_map.resolve.exif import (
    EXIF_IFD,
    GPS_IFD,
    TAG_DATETIME_ORIGINAL,
    ExifReadError,
    dms_to_decimal,
    read_exif_location,
)


class TestDmsToDecimal:
    def test_north_east_positive(self) -> None:
        assert dms_to_decimal((46.0, 30.0, 0.0), "N") == pytest.approx(46.5)

    def test_south_west_negative(self) -> None:
        assert dms_to_decimal((24.0, 45.0, 36.0), "W") == pytest.approx(-24.76)
        assert dms_to_decimal((10.0, 0.0, 0.0), b"S") == pytest.approx(-10.0)

    def test_rational_pairs(self) -> None:
        assert dms_to_decimal(((46, 1), (30, 1), (0, 1)), "N") == pytest.approx(46.5)

    def test_plain_number(self) -> None:
        assert dms_to_decimal(25.5, "E") == pytest.approx(25.5)

    def test_zero_denominator(self) -> None:
        assert dms_to_decimal(((46, 0), (30, 1), (0, 1)), "N") is None

    def test_garbage(self) -> None:
        assert dms_to_decimal(("x", "y"), "N") is None
        assert dms_to_decimal((), "N") is None


def _fake_open(gps: dict, exif_ifd: dict | None = None, base: dict | None = None) -> MagicMock:
    exif = MagicMock()
    exif.get_ifd.side_effect = lambda tag: {GPS_IFD: gps, EXIF_IFD: exif_ifd or {}}[tag]
    exif.get.side_effect = (base or {}).get
    image = MagicMock()
    image.getexif.return_value = exif
    opened = MagicMock()
    opened.__enter__.return_value = image
    return MagicMock(return_value=opened)


class TestReadExifLocation:
    def test_gps_and_capture_time(self) -> None:
        gps = {1: "N", 2: (46.0, 30.0, 0.0), 3: "E", 4: (24.0, 45.0, 0.0)}
        exif_ifd = {TAG_DATETIME_ORIGINAL: "2023:08:14 17:02:11"}
        with patch("photo_map.resolve.exif.Image.open", _fake_open(gps, exif_ifd)):
            location = read_exif_location(b"jpeg")

        assert location is not None
        assert location.lat == pytest.approx(46.5)
        assert location.lon == pytest.approx(24.75)
        assert location.taken_at == "2023-08-14T17:02:11"

    def test_base_datetime_fallback(self) -> None:
        gps = {1: "N", 2: (46.0, 0.0, 0.0), 3: "E", 4: (24.0, 0.0, 0.0)}
        with patch(
            "photo_map.resolve.exif.Image.open",
            _fake_open(gps, base={306: "2020:01:02 03:04:05"}),
        ):
            location = read_exif_location(b"jpeg")

        assert location is not None
        assert location.taken_at == "2020-01-02T03:04:05"

    def test_missing_longitude(self) -> None:
        with patch("photo_map.resolve.exif.Image.open", _fake_open({1: "N", 2: (46.0, 0.0, 0.0)})):
            assert read_exif_location(b"jpeg") is None

    def test_real_jpeg_without_tags(self, jpeg_bytes: bytes) -> None:
        assert read_exif_location(jpeg_bytes) is None

    def test_undecodable_bytes(self) -> None:
        with pytest.raises(ExifReadError):
            read_exif_location(b"not an image")
