"""Tests for the coordinate resolver fold.

Covers:
- Override precedence over listing metadata (capture time preserved)
- Short-circuit: later sources are not consulted once a coordinate is held
- Unresolved records
- Per-source failure isolation
- Out-of-range coordinates treated as no contribution
- Aggregated resolution stats
"""

from __future__ import annotations

from types import MappingProxyType
from unittest.mock import MagicMock

from photo_map.core.config import BuildConfig
from photo_map.geocoding.nominatim import GeocodeError
from photo_map.models.record import Coordinate, ImageRecord, LazyBytes, Location
from photo_map.resolve import (
    CoordinateResolver,
    ResolutionStats,
    build_strategies,
    resolve,
)
from photo_map.resolve.gazetteer import Gazetteer

NO_OVERRIDES = MappingProxyType({})


def _record(
    name: str = "IMG_0001.jpg",
    *,
    location: Location | None = None,
    content: LazyBytes | None = None,
) -> ImageRecord:
    display = f"/Trips/{name}"
    return ImageRecord(
        name=name,
        path_key=display.lower(),
        path_display=display,
        location=location,
        content=content,
    )


def _resolver(overrides=NO_OVERRIDES, **kwargs) -> CoordinateResolver:
    return CoordinateResolver(build_strategies(overrides=overrides, **kwargs))


class TestOrder:
    def test_default_order(self) -> None:
        resolver = _resolver(geocoder=MagicMock())
        assert resolver.order == ("media_info", "exif", "override", "filename", "geocode")

    def test_exif_and_geocode_optional(self) -> None:
        resolver = _resolver(enable_exif=False)
        assert resolver.order == ("media_info", "override", "filename")

    def test_from_config_ignores_geocoder_when_disabled(self) -> None:
        config = BuildConfig(enable_filename_geocode=False)
        resolver = CoordinateResolver.from_config(config, NO_OVERRIDES, geocoder=MagicMock())
        assert "geocode" not in resolver.order

    def test_from_config_uses_geocoder_when_enabled(self) -> None:
        config = BuildConfig(enable_filename_geocode=True, enable_exif=False)
        resolver = CoordinateResolver.from_config(config, NO_OVERRIDES, geocoder=MagicMock())
        assert resolver.order[-1] == "geocode"


class TestOverridePrecedence:
    def test_override_replaces_listing_coordinate(self) -> None:
        record = _record(location=Location(lat=45.0, lon=25.0, taken_at="2023-07-01T10:00:00Z"))
        overrides = MappingProxyType({"/Trips/IMG_0001.jpg": {"lat": 46.5, "lon": 24.1}})

        result = _resolver(overrides).resolve(record)

        assert result.source == "override"
        assert result.coordinate == Coordinate(lon=24.1, lat=46.5)
        assert result.taken_at == "2023-07-01T10:00:00Z"

    def test_override_key_is_exact_display_path(self) -> None:
        record = _record(location=Location(lat=45.0, lon=25.0))
        overrides = MappingProxyType({"/trips/img_0001.jpg": {"lat": 46.5, "lon": 24.1}})

        result = _resolver(overrides).resolve(record)

        assert result.source == "media_info"

    def test_non_numeric_override_ignored(self) -> None:
        record = _record("viscri.jpg")
        overrides = MappingProxyType({"/Trips/viscri.jpg": {"lat": "46.5", "lon": 24.1}})

        result = _resolver(overrides).resolve(record)

        assert result.source == "filename"

    def test_boolean_override_ignored(self) -> None:
        record = _record()
        overrides = MappingProxyType({"/Trips/IMG_0001.jpg": {"lat": True, "lon": 24.1}})

        result = _resolver(overrides).resolve(record)

        assert not result.resolved

    def test_override_without_other_sources(self) -> None:
        overrides = MappingProxyType({"/Trips/IMG_0001.jpg": {"lat": 44.43, "lon": 26.1}})
        result = _resolver(overrides).resolve(_record())
        assert result.source == "override"
        assert result.taken_at is None


class TestShortCircuit:
    def test_listing_coordinate_skips_later_sources(self) -> None:
        gazetteer = MagicMock(spec=Gazetteer)
        geocoder = MagicMock()
        loader = MagicMock(return_value=b"")
        record = _record(
            "viscri.jpg",
            location=Location(lat=46.0, lon=25.0),
            content=LazyBytes(loader),
        )

        result = _resolver(gazetteer=gazetteer, geocoder=geocoder).resolve(record)

        assert result.source == "media_info"
        assert result.attempted == ("media_info", "override")
        gazetteer.lookup.assert_not_called()
        geocoder.search.assert_not_called()
        loader.assert_not_called()

    def test_gazetteer_hit_skips_geocoder(self) -> None:
        geocoder = MagicMock()
        result = _resolver(enable_exif=False, geocoder=geocoder).resolve(_record("Viscri_church.jpg"))

        assert result.source == "filename"
        assert result.coordinate == Coordinate(lon=25.0918, lat=46.0558)
        geocoder.search.assert_not_called()

    def test_geocoder_is_last_resort(self) -> None:
        geocoder = MagicMock()
        geocoder.search.return_value = Coordinate(lon=23.59, lat=46.77)

        result = _resolver(enable_exif=False, geocoder=geocoder).resolve(
            _record("Cluj_Napoca_square.jpg")
        )

        assert result.source == "geocode"
        geocoder.search.assert_called_once_with("Cluj Napoca square")


class TestUnresolved:
    def test_no_source_matches(self) -> None:
        geocoder = MagicMock()
        geocoder.search.return_value = None

        result = _resolver(geocoder=geocoder).resolve(_record())

        assert not result.resolved
        assert result.source is None
        assert result.attempted == ("media_info", "exif", "override", "filename", "geocode")

    def test_partial_listing_location_does_not_resolve(self) -> None:
        result = _resolver().resolve(_record(location=Location(lat=46.0, lon=None)))
        assert not result.resolved


class TestCaptureTime:
    def test_time_from_listing_kept_when_filename_resolves(self) -> None:
        record = _record("viscri.jpg", location=Location(taken_at="2022-05-05T08:00:00Z"))
        result = _resolver().resolve(record)
        assert result.source == "filename"
        assert result.taken_at == "2022-05-05T08:00:00Z"


class TestFailureIsolation:
    def test_download_failure_falls_through(self) -> None:
        loader = MagicMock(side_effect=OSError("network down"))
        record = _record("viscri.jpg", content=LazyBytes(loader))

        result = _resolver().resolve(record)

        assert result.source == "filename"
        assert len(result.errors) == 1
        assert result.errors[0].startswith("exif:")

    def test_geocoder_error_is_no_contribution(self) -> None:
        geocoder = MagicMock()
        geocoder.search.side_effect = GeocodeError("timeout")

        result = _resolver(enable_exif=False, geocoder=geocoder).resolve(_record())

        assert not result.resolved
        assert result.errors == ("geocode: timeout",)

    def test_out_of_range_listing_coordinate_discarded(self) -> None:
        record = _record("viscri.jpg", location=Location(lat=123.0, lon=25.0))

        result = _resolver().resolve(record)

        assert result.source == "filename"
        assert result.errors[0].startswith("media_info:")

    def test_one_bad_record_does_not_affect_another(self) -> None:
        resolver = _resolver()
        bad = _record("viscri.jpg", content=LazyBytes(MagicMock(side_effect=RuntimeError("boom"))))
        good = _record("breb.jpg", location=Location(lat=47.7, lon=23.9))

        results = [resolver.resolve(bad), resolver.resolve(good)]

        assert [r.source for r in results] == ["filename", "media_info"]


    def test_geocoder_failure_for_one_record_spares_the_next(self) -> None:
        def search(query: str) -> Coordinate:
            if query == "Cluj Napoca square":
                raise GeocodeError("timeout")
            return Coordinate(lon=21.23, lat=45.75)

        geocoder = MagicMock()
        geocoder.search.side_effect = search
        resolver = _resolver(enable_exif=False, geocoder=geocoder)

        failed = resolver.resolve(_record("Cluj_Napoca_square.jpg"))
        resolved = resolver.resolve(_record("Timisoara_old_town.jpg"))

        assert not failed.resolved
        assert failed.errors == ("geocode: timeout",)
        assert resolved.source == "geocode"
        assert resolved.coordinate == Coordinate(lon=21.23, lat=45.75)
        assert resolved.errors == ()
        assert geocoder.search.call_count == 2


class TestStats:
    def test_from_resolutions(self) -> None:
        resolver = _resolver(enable_exif=False)
        results = [
            resolver.resolve(_record("a.jpg", location=Location(lat=46.0, lon=25.0))),
            resolver.resolve(_record("viscri.jpg")),
            resolver.resolve(_record("IMG_0001.jpg")),
        ]

        stats = ResolutionStats.from_resolutions(results)

        assert stats.by_source["media_info"] == 1
        assert stats.by_source["filename"] == 1
        assert stats.by_source["geocode"] == 0
        assert stats.resolved == 2
        assert stats.skipped == 1


class TestModuleResolve:
    def test_resolve_uses_config(self) -> None:
        config = BuildConfig(enable_exif=False)
        result = resolve(_record("sapanta_cemetery.jpg"), NO_OVERRIDES, config)
        assert result.source == "filename"
