"""Read GPS position and capture time from embedded EXIF tags.

Uses Pillow's ``Image.getexif()``: the GPS IFD (tag ``0x8825``) for the
position and the Exif IFD (``0x8769``) for ``DateTimeOriginal`` /
``DateTimeDigitized``, falling back to the base ``DateTime`` tag.
"""

from __future__ import annotations

import io
import logging
from typing import Any

from PIL import Image

from photo_map.core.exceptions import PermanentError
from photo_map.models.record import Location
from photo_map.utils.helpers import exif_datetime_to_iso

logger = logging.getLogger("photo_map.resolve.exif")

GPS_IFD = 0x8825
EXIF_IFD = 0x8769

GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4

TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867
TAG_DATETIME_DIGITIZED = 36868


class ExifReadError(PermanentError):
    """Raised when image bytes cannot be decoded for EXIF tags."""

    default_stage = "read_exif"
    default_code = "EXIF_READ_FAILED"


def _to_float(value: Any) -> float:
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        return float(numerator) / float(denominator)
    return float(value)


def dms_to_decimal(dms: Any, ref: str | bytes | None) -> float | None:
    """Convert degrees/minutes/seconds to signed decimal degrees.

    Accepts a ``(deg, min, sec)`` sequence of rationals, numbers or
    ``(num, den)`` pairs, or a plain number.  ``S`` and ``W`` references
    give negative values.  Returns ``None`` for unusable input.
    """
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    ref = (ref or "").strip().upper()
    try:
        if isinstance(dms, (list, tuple)):
            parts = [_to_float(part) for part in dms]
            if not parts:
                return None
            parts += [0.0] * (3 - len(parts))
            degrees, minutes, seconds = parts[:3]
            value = degrees + minutes / 60.0 + seconds / 3600.0
        else:
            value = _to_float(dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if value != value:  # NaN from 0/0 rationals
        return None
    return -value if ref in ("S", "W") else value


def read_exif_location(data: bytes) -> Location | None:
    """Extract GPS position and capture time from image bytes.

    Returns:
        A complete ``Location`` when both coordinates are tagged, else
        ``None``.

    Raises:
        ExifReadError: If Pillow cannot decode the image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            exif = image.getexif()
            gps = dict(exif.get_ifd(GPS_IFD))
            exif_ifd = dict(exif.get_ifd(EXIF_IFD))
            base_datetime = exif.get(TAG_DATETIME)
    except (OSError, ValueError, SyntaxError) as exc:
        msg = f"Cannot read EXIF tags: {exc}"
        raise ExifReadError(msg) from exc

    if GPS_LATITUDE not in gps or GPS_LONGITUDE not in gps:
        return None

    lat = dms_to_decimal(gps.get(GPS_LATITUDE), gps.get(GPS_LATITUDE_REF))
    lon = dms_to_decimal(gps.get(GPS_LONGITUDE), gps.get(GPS_LONGITUDE_REF))
    if lat is None or lon is None:
        logger.debug("EXIF GPS tags present but unusable | gps=%s", gps)
        return None

    taken_at = (
        exif_ifd.get(TAG_DATETIME_ORIGINAL)
        or exif_ifd.get(TAG_DATETIME_DIGITIZED)
        or base_datetime
    )
    return Location(lat=lat, lon=lon, taken_at=exif_datetime_to_iso(taken_at))
