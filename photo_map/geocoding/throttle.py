"""Process-wide rate limiter for the shared geocoding service.

Nominatim's usage policy allows about one request per second.  Every
geocoder call goes through one ``RateLimiter`` regardless of how many
records are resolved concurrently.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("photo_map.geocoding.throttle")


class RateLimiter:
    """Enforce a minimum interval between successive calls.

    The first call proceeds immediately; each later call blocks until
    ``min_interval_s`` has elapsed since the previous one started.
    Callers are serialised on an internal lock, so concurrent callers
    are spaced out too.
    """

    def __init__(
        self,
        min_interval_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval_s < 0:
            msg = f"min_interval_s must be >= 0, got {min_interval_s}"
            raise ValueError(msg)
        self._interval = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last: float | None = None

    @property
    def min_interval_s(self) -> float:
        return self._interval

    def wait(self) -> None:
        """Block until the next call slot is available, then claim it."""
        with self._lock:
            now = self._clock()
            if self._last is not None:
                remaining = self._interval - (now - self._last)
                if remaining > 0:
                    logger.debug("Geocoder throttle | sleep=%.3fs", remaining)
                    self._sleep(remaining)
                    now = self._clock()
            self._last = now
