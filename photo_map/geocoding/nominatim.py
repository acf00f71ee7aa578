"""Nominatim (OpenStreetMap) geocoding client.

Forward search turns a free-text query (a cleaned file name) into a
coordinate; reverse lookup turns a coordinate into a readable place
title.  Both carry the identifying ``User-Agent`` header the service's
usage policy requires and both pass through the shared ``RateLimiter``.

Response handling:
    - Non-2xx status, invalid JSON or an empty result → ``None`` (no match).
    - Transport failures (timeouts, connection errors) → ``GeocodeError``,
      which resolver strategies treat as "no contribution".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from photo_map.core.exceptions import TransientError
from photo_map.models.record import Coordinate, ModelValidationError

if TYPE_CHECKING:
    from photo_map.core.config import BuildConfig
    from photo_map.geocoding.throttle import RateLimiter

logger = logging.getLogger("photo_map.geocoding.nominatim")

# Address components tried in order for the place name.
_NAME_KEYS = ("tourism", "historic", "natural", "village", "town", "city")
_DEFAULT_PLACE = "Romania"


class GeocodeError(TransientError):
    """Raised when the geocoding service cannot be reached."""

    default_stage = "geocode"
    default_code = "GEOCODE_REQUEST_FAILED"


@dataclass(frozen=True, slots=True)
class PlaceInfo:
    """Result of a reverse lookup.

    Attributes:
        nice_title: ``"<name>, <county>"`` or just ``"<name>"``.
        components: Raw Nominatim ``address`` object.
    """

    nice_title: str
    components: dict[str, str] = field(default_factory=dict)

    @property
    def area(self) -> str:
        """County or state, for generated descriptions."""
        return self.components.get("county") or self.components.get("state") or _DEFAULT_PLACE

    def to_dict(self) -> dict[str, object]:
        return {"nice_title": self.nice_title, "components": dict(self.components)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlaceInfo:
        components = data.get("components") or {}
        return cls(
            nice_title=str(data.get("nice_title", "")),
            components={str(k): str(v) for k, v in components.items()},
        )


def nice_title_from_reverse(payload: dict[str, Any]) -> PlaceInfo:
    """Build a ``PlaceInfo`` from a ``/reverse`` JSON payload."""
    address = payload.get("address") or {}
    name = payload.get("name") or next(
        (address[key] for key in _NAME_KEYS if address.get(key)),
        _DEFAULT_PLACE,
    )
    county = address.get("county") or address.get("state") or ""
    nice_title = f"{name}, {county}" if county else str(name)
    return PlaceInfo(
        nice_title=nice_title,
        components={str(k): str(v) for k, v in address.items()},
    )


class NominatimClient:
    """Forward and reverse geocoding against a Nominatim endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str,
        rate_limiter: RateLimiter,
        email: str = "",
        timeout_s: float = 20.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not user_agent.strip():
            msg = "Nominatim requires an identifying User-Agent"
            raise ValueError(msg)
        self._base_url = base_url.rstrip("/")
        self._email = email
        self._rate_limiter = rate_limiter
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout_s)
        self._headers = {"User-Agent": user_agent}

    @classmethod
    def from_config(
        cls,
        config: BuildConfig,
        rate_limiter: RateLimiter,
        *,
        http_client: httpx.Client | None = None,
    ) -> NominatimClient:
        return cls(
            base_url=config.nominatim_url,
            user_agent=config.nominatim_user_agent,
            rate_limiter=rate_limiter,
            email=config.nominatim_email,
            timeout_s=config.http_timeout_s,
            http_client=http_client,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def search(self, query: str) -> Coordinate | None:
        """Forward-geocode *query*; the first result wins.

        Raises:
            GeocodeError: On transport failure.
        """
        query = query.strip()
        if not query:
            return None
        data = self._get("search", {"q": query, "format": "jsonv2", "limit": "1"})
        if not isinstance(data, list) or not data:
            logger.debug("Forward geocode: no match | query=%s", query)
            return None
        first = data[0]
        try:
            coordinate = Coordinate(lon=float(first["lon"]), lat=float(first["lat"]))
        except (KeyError, TypeError, ValueError, ModelValidationError):
            logger.warning("Forward geocode: unusable result | query=%s | result=%s", query, first)
            return None
        logger.debug(
            "Forward geocode | query=%s | lon=%.5f | lat=%.5f",
            query,
            coordinate.lon,
            coordinate.lat,
        )
        return coordinate

    def reverse(self, coordinate: Coordinate) -> PlaceInfo | None:
        """Reverse-geocode *coordinate* into a place title.

        Raises:
            GeocodeError: On transport failure.
        """
        params = {
            "lat": str(coordinate.lat),
            "lon": str(coordinate.lon),
            "format": "jsonv2",
            "zoom": "14",
        }
        if self._email:
            params["email"] = self._email
        data = self._get("reverse", params)
        if not isinstance(data, dict) or "error" in data:
            return None
        return nice_title_from_reverse(data)

    def _get(self, endpoint: str, params: dict[str, str]) -> Any:
        self._rate_limiter.wait()
        url = f"{self._base_url}/{endpoint}"
        try:
            response = self._client.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            msg = f"Nominatim {endpoint} request failed: {exc}"
            raise GeocodeError(msg) from exc
        if not response.is_success:
            logger.warning(
                "Nominatim %s returned HTTP %d | params=%s",
                endpoint,
                response.status_code,
                params,
            )
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("Nominatim %s returned invalid JSON", endpoint)
            return None
