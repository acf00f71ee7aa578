"""Image source adapters.

- ImageProvider: Abstract base class defining the interface
- DropboxProvider: Dropbox shared-folder link (HTTP API v2)
- LocalFolderProvider: Directory tree on disk (offline builds)

The active provider is selected via ``IMAGE_PROVIDER``.
"""

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
from photo_map.providers.factory import (
    DROPBOX,
    LOCAL,
    get_provider,
    list_providers,
    register_provider,
)

__all__ = [
    "DROPBOX",
    "LOCAL",
    "THUMB_BY_ID",
    "THUMB_BY_PATH",
    "ImageProvider",
    "ProviderAuthError",
    "ProviderDownloadError",
    "ProviderError",
    "ProviderListingError",
    "ProviderThumbnailError",
    "SharedLinks",
    "get_provider",
    "list_providers",
    "register_provider",
]
