"""Provider factory: selects the active image source by name.

The factory maintains a registry of known adapters.  Each registration
is a lazy import thunk so an adapter's dependencies load only when that
adapter is selected.

Usage::

    from photo_map.providers.factory import get_provider

    provider = get_provider(config.image_provider, config)
    records = provider.list_images()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from photo_map.providers.base import ImageProvider, ProviderError

if TYPE_CHECKING:
    from collections.abc import Callable

    from photo_map.core.config import BuildConfig

logger = logging.getLogger(__name__)

DROPBOX = "dropbox"
LOCAL = "local"

_ADAPTER_REGISTRY: dict[str, Callable[[], type[ImageProvider]]] = {}


def _register_builtin_adapters() -> None:
    def _dropbox() -> type[ImageProvider]:
        from photo_map.providers.dropbox import DropboxProvider

        return DropboxProvider

    def _local() -> type[ImageProvider]:
        from photo_map.providers.local import LocalFolderProvider

        return LocalFolderProvider

    _ADAPTER_REGISTRY[DROPBOX] = _dropbox
    _ADAPTER_REGISTRY[LOCAL] = _local


def _ensure_registry() -> None:
    """Initialise the adapter registry once (idempotent)."""
    if not _ADAPTER_REGISTRY:
        _register_builtin_adapters()


def register_provider(
    name: str,
    loader: Callable[[], type[ImageProvider]],
) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider name (e.g. ``"s3"``).
        loader: A zero-argument callable that returns the adapter class.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Provider name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _ADAPTER_REGISTRY[name] = loader
    logger.debug("Registered provider adapter: %s", name)


def get_provider(name: str, config: BuildConfig) -> ImageProvider:
    """Create and return an image provider instance.

    Raises:
        ProviderError: If the named provider is not registered.
    """
    _ensure_registry()

    loader = _ADAPTER_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_ADAPTER_REGISTRY))
        msg = f"Unknown image provider: {name!r}. Available: {available}"
        raise ProviderError(provider=name, message=msg)

    adapter_cls = loader()
    logger.info("Creating image provider: %s", name)
    return adapter_cls(config)  # type: ignore[call-arg]


def list_providers() -> list[str]:
    """Return the names of all registered provider adapters."""
    _ensure_registry()
    return sorted(_ADAPTER_REGISTRY)
