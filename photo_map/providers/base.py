"""ImageProvider abstract base class.

Defines the contract that every image source adapter must implement.
The build orchestrator interacts exclusively with this interface: it
never knows which concrete source is behind it.

Lifecycle:
    1. ``list_images()``: enumerate every image record.
    2. ``fetch_bytes(record)``: download the original bytes.
    3. ``shared_links(record)``: public page / raw URLs.
    4. ``thumbnail(record, by=...)``: provider-rendered thumbnail bytes.
"""

from __future__ import annotations

import abc
import functools
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from photo_map.core.exceptions import PipelineError
from photo_map.models.record import LazyBytes

if TYPE_CHECKING:
    from photo_map.models.record import ImageRecord

THUMB_BY_PATH = "path"
THUMB_BY_ID = "id"


@dataclass(frozen=True, slots=True)
class SharedLinks:
    """Public links for a single file.

    Attributes:
        page_url: Preview page (``dl=0``), or ``None``.
        raw_url: Direct bytes URL suitable for ``<img src>`` (``raw=1``), or ``None``.
    """

    page_url: str | None = None
    raw_url: str | None = None


class ImageProvider(abc.ABC):
    """Abstract base class for image source adapters.

    Example usage::

        provider = get_provider("dropbox", config)
        for record in provider.list_images():
            data = record.content.get()  # provider.fetch_bytes(record), once
    """

    #: Registry name of the adapter.
    name: str = ""

    @abc.abstractmethod
    def list_images(self) -> list[ImageRecord]:
        """Enumerate every image in the source, recursively.

        Returns:
            Image records in a stable listing order.  Each record's
            ``path_key`` is unique within the listing.

        Raises:
            ProviderListingError: If the listing cannot be completed.
        """

    @abc.abstractmethod
    def fetch_bytes(self, record: ImageRecord) -> bytes:
        """Download the original bytes for *record*.

        Raises:
            ProviderDownloadError: On transport errors or empty content.
        """

    @abc.abstractmethod
    def shared_links(self, record: ImageRecord) -> SharedLinks:
        """Return public links for *record*; empty links when unavailable.

        Never raises for a missing link; returns ``SharedLinks()`` instead.
        """

    @abc.abstractmethod
    def thumbnail(self, record: ImageRecord, *, by: str = THUMB_BY_PATH) -> bytes:
        """Return thumbnail image bytes for *record*.

        Args:
            record: The image to render.
            by: ``"path"`` to address the file by its path within the
                shared folder, ``"id"`` to address it by file identifier.

        Raises:
            ProviderThumbnailError: If the provider cannot render one.
        """

    def with_content(self, record: ImageRecord) -> ImageRecord:
        """Return *record* with a lazy, memoised ``fetch_bytes`` handle attached."""
        return replace(record, content=LazyBytes(functools.partial(self.fetch_bytes, record)))

    def close(self) -> None:  # noqa: B027
        """Release network resources held by the adapter."""


# ---------------------------------------------------------------------------
# Provider exceptions
# ---------------------------------------------------------------------------


class ProviderError(PipelineError):
    """Base exception for provider adapter errors.

    Attributes:
        provider: Name of the provider that raised the error.
        message: Human-readable error description.
        retryable: Whether the caller should retry the operation.
    """

    default_stage = "provider"
    default_code = "PROVIDER_ERROR"

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        retryable: bool = False,
    ) -> None:
        self.provider = provider
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
        )

    def __str__(self) -> str:
        return f"[{self.provider}] {self.message}"


class ProviderAuthError(ProviderError):
    """Authentication or authorisation failure with the provider API."""

    default_code = "PROVIDER_AUTH_FAILED"

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(provider, message, retryable=False)


class ProviderListingError(ProviderError):
    """Error while enumerating the source folder."""

    default_code = "PROVIDER_LISTING_FAILED"


class ProviderDownloadError(ProviderError):
    """Error while downloading file bytes."""

    default_code = "PROVIDER_DOWNLOAD_FAILED"


class ProviderThumbnailError(ProviderError):
    """Error while requesting a provider-rendered thumbnail."""

    default_code = "PROVIDER_THUMBNAIL_FAILED"
