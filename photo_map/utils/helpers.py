"""Shared helper functions used across providers and activities."""

from __future__ import annotations

import hashlib
import logging
import time
from typing import TYPE_CHECKING, TypeVar

from photo_map.core.constants import THUMB_PREFIX
from photo_map.core.exceptions import PipelineError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("photo_map.utils.helpers")

T = TypeVar("T")

DEFAULT_RETRY_BASE_SECONDS = 0.5


def md5_hex(value: str) -> str:
    """Hex MD5 digest of a UTF-8 string (stable naming, not security)."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()  # noqa: S324


def thumbnail_filename(key: str) -> str:
    """Deterministic thumbnail file name for a path or file id.

    The same key always yields the same name, so reruns overwrite the
    previous thumbnail instead of accumulating copies.
    """
    return f"{THUMB_PREFIX}{md5_hex(key)}.jpg"


def exif_datetime_to_iso(value: str | bytes | None) -> str | None:
    """Convert an EXIF ``YYYY:MM:DD HH:MM:SS`` stamp to ISO 8601.

    Returns ``None`` for empty input; unrecognised strings are returned
    stripped but otherwise unchanged.
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    text = value.strip().strip("\x00")
    if not text:
        return None
    date_part, _, time_part = text.partition(" ")
    if len(date_part) == 10 and date_part.count(":") == 2:
        date_part = date_part.replace(":", "-")
        return f"{date_part}T{time_part}" if time_part else date_part
    return text


def call_with_retry(
    func: Callable[[], T],
    *,
    max_retries: int,
    description: str,
    base_delay_s: float = DEFAULT_RETRY_BASE_SECONDS,
) -> T:
    """Call *func*, retrying ``PipelineError``s marked retryable.

    Non-retryable errors propagate immediately.  Backoff is exponential
    from ``base_delay_s``.

    Raises:
        PipelineError: The last error once retries are exhausted.
    """
    for attempt in range(max_retries + 1):
        try:
            return func()
        except PipelineError as exc:
            if not exc.retryable or attempt >= max_retries:
                if exc.retryable:
                    logger.error(
                        "Retries exhausted | call=%s | attempts=%d | error=%s",
                        description,
                        attempt + 1,
                        exc,
                    )
                raise
            logger.warning(
                "Attempt %d/%d failed (retryable) | call=%s | error=%s",
                attempt + 1,
                max_retries + 1,
                description,
                exc,
            )
            time.sleep(base_delay_s * (2**attempt))
    msg = f"unreachable: {description}"
    raise AssertionError(msg)
