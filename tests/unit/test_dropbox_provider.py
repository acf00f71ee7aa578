"""Tests for the Dropbox shared-folder adapter (httpx.MockTransport)."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from photo_map.core.config import BuildConfig
from photo_map.models.record import Location
from photo_map.providers.base import (
    ProviderAuthError,
    ProviderListingError,
    ProviderThumbnailError,
)
from photo_map.providers.dropbox import (
    DropboxProvider,
    is_image,
    parse_media_location,
    to_page_url,
    to_raw_url,
)

SHARED_URL = "https://www.dropbox.com/scl/fo/xyz/photos?rlkey=k&dl=0"
FILE_LINK = "https://www.dropbox.com/scl/fi/abc/viscri.jpg?rlkey=k&dl=0"


def _config(**kwargs) -> BuildConfig:
    defaults = {"dropbox_shared_url": SHARED_URL, "dropbox_token": "tok", "http_max_retries": 0}
    defaults.update(kwargs)
    return BuildConfig(**defaults)


def _file(name: str, folder: str = "", **extra) -> dict:
    path = f"{folder}/{name}"
    return {".tag": "file", "name": name, "path_lower": path.lower(), "path_display": path, **extra}


class FakeDropbox:
    """Route MockTransport requests to canned Dropbox responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.thumb_status = 200
        self.listing_status: list[int] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, path = request.url.host, request.url.path
        if host == "api.dropboxapi.com" and path == "/2/files/list_folder":
            if self.listing_status:
                return httpx.Response(self.listing_status.pop(0), text="nope")
            body = json.loads(request.content)
            if body["path"] == "":
                return httpx.Response(
                    200,
                    json={
                        "entries": [
                            {".tag": "folder", "name": "Trip", "path_lower": "/trip"},
                            _file(
                                "Viscri.JPG",
                                id="id:viscri",
                                media_info={
                                    ".tag": "metadata",
                                    "metadata": {
                                        "location": {"latitude": 46.05, "longitude": 25.09},
                                        "time_taken": "2023-07-01T10:00:00Z",
                                    },
                                },
                            ),
                            _file("notes.txt"),
                        ],
                        "has_more": True,
                        "cursor": "c1",
                    },
                )
            return httpx.Response(
                200,
                json={"entries": [_file("breb.jpg", "/Trip")], "has_more": False},
            )
        if host == "api.dropboxapi.com" and path == "/2/files/list_folder/continue":
            return httpx.Response(
                200,
                json={"entries": [_file("IMG_2.jpg"), _file("Viscri.JPG")], "has_more": False},
            )
        if host == "api.dropboxapi.com" and path == "/2/sharing/get_shared_link_metadata":
            return httpx.Response(200, json={"url": FILE_LINK})
        if host == "content.dropboxapi.com" and path == "/2/files/get_thumbnail_v2":
            return httpx.Response(self.thumb_status, content=b"thumb-bytes")
        if host == "www.dropbox.com":
            return httpx.Response(200, content=b"full-bytes")
        return httpx.Response(404)


@pytest.fixture()
def fake() -> FakeDropbox:
    return FakeDropbox()


@pytest.fixture()
def provider(fake: FakeDropbox) -> DropboxProvider:
    client = httpx.Client(transport=httpx.MockTransport(fake))
    return DropboxProvider(_config(), http_client=client)


class TestHelpers:
    def test_is_image(self) -> None:
        assert is_image("a.JPG")
        assert is_image("b.heic")
        assert not is_image("notes.txt")
        assert not is_image("")

    def test_raw_and_page_urls(self) -> None:
        assert to_raw_url(FILE_LINK) == "https://www.dropbox.com/scl/fi/abc/viscri.jpg?rlkey=k&raw=1"
        assert to_page_url(FILE_LINK) == FILE_LINK
        assert to_page_url(to_raw_url(FILE_LINK)).endswith("dl=0")

    def test_media_location(self) -> None:
        entry = {
            "media_info": {
                ".tag": "metadata",
                "metadata": {"location": {"latitude": 46.1, "longitude": 24.5}},
            }
        }
        assert parse_media_location(entry) == Location(lat=46.1, lon=24.5)

    def test_pending_media_info(self) -> None:
        assert parse_media_location({"media_info": {".tag": "pending"}}) is None
        assert parse_media_location({}) is None


class TestListImages:
    def test_breadth_first_with_pagination(self, provider: DropboxProvider) -> None:
        records = provider.list_images()

        assert [r.path_key for r in records] == ["/viscri.jpg", "/img_2.jpg", "/trip/breb.jpg"]
        viscri = records[0]
        assert viscri.name == "Viscri.JPG"
        assert viscri.path_display == "/Viscri.JPG"
        assert viscri.file_id == "id:viscri"
        assert viscri.location == Location(lat=46.05, lon=25.09, taken_at="2023-07-01T10:00:00Z")
        assert records[1].location is None

    def test_listing_request_shape(self, provider: DropboxProvider, fake: FakeDropbox) -> None:
        provider.list_images()
        first = fake.requests[0]
        assert first.headers["Authorization"] == "Bearer tok"
        body = json.loads(first.content)
        assert body == {"path": "", "shared_link": {"url": SHARED_URL}, "include_media_info": True}

    def test_content_is_lazy(self, provider: DropboxProvider, fake: FakeDropbox) -> None:
        records = provider.list_images()
        calls = len(fake.requests)

        assert records[0].content is not None
        assert not records[0].content.loaded
        assert len(fake.requests) == calls
        assert records[0].content.get() == b"full-bytes"

    def test_content_reads_through_fetch_bytes(self, provider: DropboxProvider) -> None:
        with patch.object(DropboxProvider, "fetch_bytes", return_value=b"fetched") as fetch:
            record = provider.list_images()[0]
            assert record.content.get() == b"fetched"
        fetch.assert_called_once_with(record)

    def test_auth_failure(self, fake: FakeDropbox) -> None:
        fake.listing_status = [401]
        client = httpx.Client(transport=httpx.MockTransport(fake))
        with pytest.raises(ProviderAuthError):
            DropboxProvider(_config(), http_client=client).list_images()

    def test_retries_server_errors(self, fake: FakeDropbox) -> None:
        fake.listing_status = [503]
        client = httpx.Client(transport=httpx.MockTransport(fake))
        provider = DropboxProvider(_config(http_max_retries=1), http_client=client)
        with patch("photo_map.utils.helpers.time.sleep") as sleep:
            records = provider.list_images()
        assert len(records) == 3
        sleep.assert_called_once()

    def test_gives_up_after_retries(self, fake: FakeDropbox) -> None:
        fake.listing_status = [503, 503]
        client = httpx.Client(transport=httpx.MockTransport(fake))
        provider = DropboxProvider(_config(http_max_retries=1), http_client=client)
        with patch("photo_map.utils.helpers.time.sleep"), pytest.raises(ProviderListingError):
            provider.list_images()

    def test_missing_credentials(self) -> None:
        with pytest.raises(ProviderAuthError):
            DropboxProvider(_config(dropbox_token=""))


class TestLinksAndThumbnails:
    def test_shared_links_cached(self, provider: DropboxProvider, fake: FakeDropbox) -> None:
        record = provider.list_images()[0]
        first = provider.shared_links(record)
        second = provider.shared_links(record)

        assert first == second
        assert first.raw_url == "https://www.dropbox.com/scl/fi/abc/viscri.jpg?rlkey=k&raw=1"
        assert first.page_url == FILE_LINK
        lookups = [r for r in fake.requests if r.url.path.endswith("get_shared_link_metadata")]
        assert len(lookups) == 1

    def test_thumbnail_by_path(self, provider: DropboxProvider, fake: FakeDropbox) -> None:
        record = provider.list_images()[0]
        assert provider.thumbnail(record, by="path") == b"thumb-bytes"

        arg = json.loads(fake.requests[-1].headers["Dropbox-API-Arg"])
        assert arg["resource"] == {".tag": "shared_link", "url": SHARED_URL, "path": "/viscri.jpg"}
        assert arg["format"] == {".tag": "jpeg"}
        assert arg["mode"] == {".tag": "fitone_bestfit"}
        assert arg["size"] == {".tag": "w1024h768"}

    def test_thumbnail_by_id(self, provider: DropboxProvider, fake: FakeDropbox) -> None:
        record = provider.list_images()[0]
        provider.thumbnail(record, by="id")
        arg = json.loads(fake.requests[-1].headers["Dropbox-API-Arg"])
        assert arg["resource"] == {".tag": "path", "path": "id:viscri"}

    def test_thumbnail_error(self, provider: DropboxProvider, fake: FakeDropbox) -> None:
        record = provider.list_images()[0]
        fake.thumb_status = 409
        with pytest.raises(ProviderThumbnailError) as exc_info:
            provider.thumbnail(record)
        assert exc_info.value.retryable is False

    def test_unknown_mode(self, provider: DropboxProvider) -> None:
        record = provider.list_images()[0]
        with pytest.raises(ValueError, match="addressing mode"):
            provider.thumbnail(record, by="name")
