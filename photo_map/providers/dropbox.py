"""Dropbox shared-folder adapter (Dropbox HTTP API v2).

Concrete ``ImageProvider`` implementation that enumerates a Dropbox
shared-folder link with ``httpx``.  No SDK is involved; every call is a
plain JSON-RPC style POST to the documented endpoints:

- ``files/list_folder`` + ``files/list_folder/continue``: breadth-first
  recursive listing with ``include_media_info`` and cursor pagination.
- ``sharing/get_shared_link_metadata``: per-file public link.
- ``files/get_thumbnail_v2``: server-rendered JPEG thumbnail.

File bytes are downloaded through the per-file ``raw=1`` link.

Configuration:
    ``DROPBOX_SHARED_URL`` and ``DROPBOX_TOKEN`` (an already-issued access
    token).  Token refresh is not handled here.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

import httpx

from photo_map.core.constants import IMAGE_EXTENSIONS
from photo_map.models.record import ImageRecord, Location
from photo_map.providers.base import (
    THUMB_BY_ID,
    THUMB_BY_PATH,
    ImageProvider,
    ProviderAuthError,
    ProviderDownloadError,
    ProviderError,
    ProviderListingError,
    ProviderThumbnailError,
    SharedLinks,
)
from photo_map.utils.helpers import call_with_retry

if TYPE_CHECKING:
    from photo_map.core.config import BuildConfig

logger = logging.getLogger("photo_map.providers.dropbox")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PROVIDER_NAME = "dropbox"

API_BASE_URL = "https://api.dropboxapi.com/2"
CONTENT_BASE_URL = "https://content.dropboxapi.com/2"

_THUMBNAIL_FORMAT = {".tag": "jpeg"}
_THUMBNAIL_MODE = {".tag": "fitone_bestfit"}
_THUMBNAIL_SIZE = {".tag": "w1024h768"}


def is_image(name: str) -> bool:
    """Whether *name* has a recognised image extension."""
    return PurePosixPath((name or "").lower()).suffix in IMAGE_EXTENSIONS


def parse_media_location(entry: dict[str, Any]) -> Location | None:
    """Extract listing-supplied location metadata from a file entry.

    Dropbox reports ``media_info`` as ``{".tag": "metadata", "metadata":
    {"location": {"latitude": .., "longitude": ..}, "time_taken": ..}}``
    once it has processed the file, or ``{".tag": "pending"}`` before.

    Returns:
        A ``Location`` when a location object is present, else ``None``.
    """
    media_info = entry.get("media_info")
    if not isinstance(media_info, dict):
        return None
    metadata = media_info.get("metadata")
    if not isinstance(metadata, dict):
        return None
    location = metadata.get("location")
    if not isinstance(location, dict):
        return None
    return Location(
        lat=_as_float(location.get("latitude")),
        lon=_as_float(location.get("longitude")),
        taken_at=metadata.get("time_taken") or None,
    )


def _as_float(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def to_raw_url(url: str) -> str:
    """Force a Dropbox link to serve file bytes (``raw=1``, no ``dl``)."""
    return str(httpx.URL(url).copy_remove_param("dl").copy_set_param("raw", "1"))


def to_page_url(url: str) -> str:
    """Turn a Dropbox link into its preview page (``dl=0`` instead of ``raw=1``)."""
    parsed = httpx.URL(url)
    if parsed.params.get("raw") == "1":
        return str(parsed.copy_remove_param("raw").copy_set_param("dl", "0"))
    return url


class DropboxProvider(ImageProvider):
    """Dropbox shared-folder adapter.

    Uses one ``httpx.Client`` (thread-safe) for every call, with the
    configured timeout.  Per-file shared links are memoised because both
    the byte download and the thumbnail fallback need them.
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        config: BuildConfig,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not config.dropbox_shared_url:
            msg = "DROPBOX_SHARED_URL is required"
            raise ProviderAuthError(PROVIDER_NAME, msg)
        if not config.dropbox_token:
            msg = "DROPBOX_TOKEN is required"
            raise ProviderAuthError(PROVIDER_NAME, msg)
        self._shared_url = config.dropbox_shared_url
        self._max_retries = config.http_max_retries
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=config.http_timeout_s,
            follow_redirects=True,
        )
        self._auth_header = {"Authorization": f"Bearer {config.dropbox_token}"}
        self._links: dict[str, SharedLinks] = {}
        self._links_lock = threading.Lock()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------
    # list_images
    # ------------------------------------------------------------------

    def list_images(self) -> list[ImageRecord]:
        """Enumerate every image under the shared folder, breadth first.

        Raises:
            ProviderListingError: If a listing page cannot be fetched
                after retries.
            ProviderAuthError: If the token is rejected.
        """
        shared_link = {"url": self._shared_url}
        records: list[ImageRecord] = []
        seen: set[str] = set()
        folders: list[str] = [""]

        while folders:
            folder = folders.pop(0)
            page = self._list_call(
                "files/list_folder",
                {"path": folder, "shared_link": shared_link, "include_media_info": True},
            )
            self._collect(page, folder, folders, records, seen)
            while page.get("has_more"):
                page = self._list_call("files/list_folder/continue", {"cursor": page["cursor"]})
                self._collect(page, folder, folders, records, seen)

        logger.info("Dropbox listing complete | images=%d", len(records))
        return records

    def _list_call(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        return call_with_retry(
            lambda: self._rpc(endpoint, body, ProviderListingError),
            max_retries=self._max_retries,
            description=endpoint,
        )

    def _collect(
        self,
        page: dict[str, Any],
        folder: str,
        folders: list[str],
        records: list[ImageRecord],
        seen: set[str],
    ) -> None:
        for entry in page.get("entries", []):
            tag = entry.get(".tag")
            name = str(entry.get("name", ""))
            path_lower = entry.get("path_lower") or f"{folder}/{name}".lower()
            if tag == "folder":
                folders.append(path_lower)
            elif tag == "file" and is_image(name):
                if path_lower in seen:
                    logger.warning("Duplicate listing entry ignored | path=%s", path_lower)
                    continue
                seen.add(path_lower)
                records.append(self._to_record(entry, name, path_lower))

    def _to_record(self, entry: dict[str, Any], name: str, path_lower: str) -> ImageRecord:
        record = ImageRecord(
            name=name,
            path_key=path_lower,
            path_display=str(entry.get("path_display") or path_lower),
            file_id=str(entry.get("id", "")),
            location=parse_media_location(entry),
        )
        return self.with_content(record)

    # ------------------------------------------------------------------
    # fetch_bytes / shared_links
    # ------------------------------------------------------------------

    def fetch_bytes(self, record: ImageRecord) -> bytes:
        return self._download(record.path_key)

    def _download(self, path_key: str) -> bytes:
        links = self._links_for(path_key)
        if not links.raw_url:
            msg = f"No shared link available for {path_key}"
            raise ProviderDownloadError(PROVIDER_NAME, msg)
        try:
            response = self._client.get(links.raw_url)
        except httpx.HTTPError as exc:
            msg = f"Download failed for {path_key}: {exc}"
            raise ProviderDownloadError(PROVIDER_NAME, msg, retryable=True) from exc
        _check_response(response, ProviderDownloadError, f"download {path_key}")
        if not response.content:
            msg = f"Downloaded file is empty: {path_key}"
            raise ProviderDownloadError(PROVIDER_NAME, msg, retryable=True)
        logger.debug("Downloaded | path=%s | size=%d", path_key, len(response.content))
        return response.content

    def shared_links(self, record: ImageRecord) -> SharedLinks:
        return self._links_for(record.path_key)

    def _links_for(self, path_key: str) -> SharedLinks:
        with self._links_lock:
            cached = self._links.get(path_key)
        if cached is not None:
            return cached
        try:
            meta = self._rpc(
                "sharing/get_shared_link_metadata",
                {"url": self._shared_url, "path": path_key},
                ProviderError,
            )
        except ProviderError as exc:
            logger.warning("Shared link lookup failed | path=%s | error=%s", path_key, exc)
            return SharedLinks()
        page = meta.get("url")
        links = SharedLinks(
            page_url=to_page_url(page) if page else None,
            raw_url=to_raw_url(page) if page else None,
        )
        with self._links_lock:
            self._links[path_key] = links
        return links

    # ------------------------------------------------------------------
    # thumbnail
    # ------------------------------------------------------------------

    def thumbnail(self, record: ImageRecord, *, by: str = THUMB_BY_PATH) -> bytes:
        """Request a JPEG thumbnail from ``files/get_thumbnail_v2``.

        ``by="path"`` addresses the file inside the shared link;
        ``by="id"`` addresses it directly by file id (falling back to the
        path when the listing carried no id).
        """
        if by == THUMB_BY_PATH:
            resource = {".tag": "shared_link", "url": self._shared_url, "path": record.path_key}
        elif by == THUMB_BY_ID:
            resource = {".tag": "path", "path": record.file_id or record.path_key}
        else:
            msg = f"Unknown thumbnail addressing mode: {by!r}"
            raise ValueError(msg)

        arg = {
            "resource": resource,
            "format": _THUMBNAIL_FORMAT,
            "mode": _THUMBNAIL_MODE,
            "size": _THUMBNAIL_SIZE,
        }
        headers = {
            **self._auth_header,
            "Dropbox-API-Arg": json.dumps(arg),
            "Content-Type": "application/octet-stream",
        }
        try:
            response = self._client.post(
                f"{CONTENT_BASE_URL}/files/get_thumbnail_v2",
                headers=headers,
                content=b"",
            )
        except httpx.HTTPError as exc:
            msg = f"thumb({by}) request failed for {record.path_key}: {exc}"
            raise ProviderThumbnailError(PROVIDER_NAME, msg, retryable=True) from exc
        _check_response(response, ProviderThumbnailError, f"thumb({by}) {record.path_key}")
        if not response.content:
            msg = f"thumb({by}) returned no bytes for {record.path_key}"
            raise ProviderThumbnailError(PROVIDER_NAME, msg)
        return response.content

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _rpc(
        self,
        endpoint: str,
        body: dict[str, Any],
        error_cls: type[ProviderError],
    ) -> dict[str, Any]:
        try:
            response = self._client.post(
                f"{API_BASE_URL}/{endpoint}",
                headers=self._auth_header,
                json=body,
            )
        except httpx.HTTPError as exc:
            msg = f"{endpoint} request failed: {exc}"
            raise error_cls(PROVIDER_NAME, msg, retryable=True) from exc
        _check_response(response, error_cls, endpoint)
        try:
            data = response.json()
        except ValueError as exc:
            msg = f"{endpoint} returned invalid JSON"
            raise error_cls(PROVIDER_NAME, msg) from exc
        if not isinstance(data, dict):
            msg = f"{endpoint} returned {type(data).__name__}, expected an object"
            raise error_cls(PROVIDER_NAME, msg)
        return data


def _check_response(
    response: httpx.Response,
    error_cls: type[ProviderError],
    what: str,
) -> None:
    """Map an HTTP error status to the matching provider exception."""
    if response.is_success:
        return
    detail = response.text[:200] if response.text else ""
    if response.status_code in (401, 403):
        msg = f"{what}: HTTP {response.status_code} {detail}".strip()
        raise ProviderAuthError(PROVIDER_NAME, msg)
    retryable = response.status_code == 429 or response.status_code >= 500
    msg = f"{what}: HTTP {response.status_code} {detail}".strip()
    raise error_cls(PROVIDER_NAME, msg, retryable=retryable)
