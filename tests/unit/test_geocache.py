"""Tests for the reverse-geocode memo."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from photo_map.geocoding.cache import ReverseGeocodeCache, cache_key
from photo_map.geocoding.nominatim import GeocodeError, PlaceInfo
from photo_map.models.record import Coordinate

VISCRI = Coordinate(lon=25.0918, lat=46.0558)
PLACE = PlaceInfo(nice_title="Viscri, Brașov", components={"county": "Brașov"})


class TestCacheKey:
    def test_rounded_lat_lon(self) -> None:
        assert cache_key(Coordinate(lon=25.091812345, lat=46.055849999)) == "46.05585,25.09181"

    def test_nearby_points_share_key(self) -> None:
        a = Coordinate(lon=25.0918101, lat=46.0558001)
        b = Coordinate(lon=25.0918099, lat=46.0557999)
        assert cache_key(a) == cache_key(b)


class TestGetOrFetch:
    def test_fetch_once(self) -> None:
        cache = ReverseGeocodeCache()
        fetch = MagicMock(return_value=PLACE)

        assert cache.get_or_fetch(VISCRI, fetch) == PLACE
        assert cache.get_or_fetch(VISCRI, fetch) == PLACE
        fetch.assert_called_once_with(VISCRI)

    def test_negative_result_remembered(self) -> None:
        cache = ReverseGeocodeCache()
        fetch = MagicMock(return_value=None)
        cache.get_or_fetch(VISCRI, fetch)
        cache.get_or_fetch(VISCRI, fetch)
        assert fetch.call_count == 1

    def test_errors_not_cached(self) -> None:
        cache = ReverseGeocodeCache()
        fetch = MagicMock(side_effect=[GeocodeError("down"), PLACE])
        with pytest.raises(GeocodeError):
            cache.get_or_fetch(VISCRI, fetch)
        assert cache.get_or_fetch(VISCRI, fetch) == PLACE


class TestPersistence:
    def test_save_then_load(self, tmp_path: Path) -> None:
        path = tmp_path / "geocache.json"
        cache = ReverseGeocodeCache()
        cache.get_or_fetch(VISCRI, lambda c: PLACE)
        cache.get_or_fetch(Coordinate(lon=1.0, lat=1.0), lambda c: None)

        cache.save(path)
        loaded = ReverseGeocodeCache.load(path)

        assert len(loaded) == 1
        assert loaded.get_or_fetch(VISCRI, MagicMock()) == PLACE
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert list(raw) == ["46.05580,25.09180"]

    def test_missing_file(self, tmp_path: Path) -> None:
        assert len(ReverseGeocodeCache.load(tmp_path / "absent.json")) == 0

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "geocache.json"
        path.write_text("{not json", encoding="utf-8")
        assert len(ReverseGeocodeCache.load(path)) == 0
