"""
EXIF Ingestion
==============

Reads GPS position and capture time from uploaded images and turns them
into the PhotoMetadata stored with each photo.

How GPS is stored in EXIF:
-------------------------
Coordinates live in the GPS IFD as three rationals (degrees, minutes,
seconds) plus a hemisphere reference letter:

    1: 'N'                                # GPSLatitudeRef
    2: ((40, 1), (42, 1), (4608, 100))    # GPSLatitude  = 40° 42' 46.08"
    3: 'W'                                # GPSLongitudeRef
    4: ((74, 1), (0, 1), (2160, 100))     # GPSLongitude = 74° 0' 21.6"

which converts to decimal degrees as ``degrees + minutes/60 + seconds/3600``,
negated for S and W: ``(40.7128, -74.006)``.

Cameras and phones do not always write the W reference, which is why the
metadata is passed through the coordinate correction before it is stored.
"""

import io
import logging
import math
import re
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from PIL import Image

from photoblog.core.coordinates import correct_pair, format_coordinates, is_number

logger = logging.getLogger(__name__)

# IFD pointers and tag IDs (EXIF 2.3)
EXIF_IFD = 0x8769
GPS_IFD = 0x8825
TAG_DATETIME = 0x0132
TAG_DATETIME_ORIGINAL = 0x9003

GPS_LAT_REF = 1
GPS_LAT = 2
GPS_LON_REF = 3
GPS_LON = 4

EXIF_DATETIME_FORMATS = ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S")

_DMS_PATTERN = re.compile(
    r"""^\s*
    (?P<deg>\d+(?:\.\d+)?)\s*(?:deg|°)\s*
    (?:(?P<min>\d+(?:\.\d+)?)\s*'\s*)?
    (?:(?P<sec>\d+(?:\.\d+)?)\s*(?:"|'')?\s*)?
    (?P<ref>[NSEW])?\s*$""",
    re.IGNORECASE | re.VERBOSE,
)


def _rational_to_float(value: Any) -> float:
    """Convert an EXIF rational (IFDRational or ``(num, den)``) to float."""
    if isinstance(value, (tuple, list)):
        numerator, denominator = value
        return numerator / denominator if denominator else 0.0
    result = float(value)
    return 0.0 if math.isnan(result) else result


def dms_to_decimal(dms: Sequence[Any]) -> float:
    """Convert degrees/minutes/seconds to decimal degrees.

    Args:
        dms: Three rationals, as read from a GPS IFD.

    Returns:
        Unsigned decimal degrees. Malformed input yields 0.0.

    Example:
        40° 42' 46.08" = 40 + 42/60 + 46.08/3600 = 40.7128
    """
    try:
        degrees, minutes, seconds = (_rational_to_float(part) for part in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return 0.0
    return degrees + (minutes / 60) + (seconds / 3600)


def _normalize_ref(ref: Any) -> str:
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    return str(ref or "").strip("\x00 ").upper()


def apply_reference(value: float, ref: Any) -> float:
    """Negate a decimal coordinate for the southern or western hemisphere."""
    if _normalize_ref(ref) in ("S", "W"):
        return -abs(value)
    return value


def parse_dms_string(text: Optional[str], ref: Optional[str] = None) -> Optional[float]:
    """Parse a coordinate typed or reported as text.

    Accepts decimal degrees (``"-74.006"``) and DMS strings such as
    ``48 deg 32' 32.56" N`` or ``48°32'32.56"N``. The hemisphere letter may
    be embedded in the text or passed as ``ref``.

    Returns:
        Signed decimal degrees, or None if the text is not a coordinate.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None

    try:
        return apply_reference(float(text), ref)
    except ValueError:
        pass

    match = _DMS_PATTERN.match(text)
    if not match:
        return None

    decimal = (
        float(match.group("deg"))
        + float(match.group("min") or 0) / 60
        + float(match.group("sec") or 0) / 3600
    )
    return apply_reference(decimal, match.group("ref") or ref)


def extract_gps(image: Image.Image) -> Optional[Tuple[float, float]]:
    """Read the GPS position of an image.

    Returns:
        ``(latitude, longitude)`` in signed decimal degrees, or None when the
        image has no complete GPS fix.
    """
    try:
        gps_info = image.getexif().get_ifd(GPS_IFD)
    except Exception as e:
        logger.warning(f"Failed to read GPS data: {e}")
        return None

    if not gps_info or GPS_LAT not in gps_info or GPS_LON not in gps_info:
        return None

    latitude = apply_reference(dms_to_decimal(gps_info[GPS_LAT]), gps_info.get(GPS_LAT_REF))
    longitude = apply_reference(dms_to_decimal(gps_info[GPS_LON]), gps_info.get(GPS_LON_REF))
    logger.debug(
        f"GPS from EXIF: lat={latitude} ({gps_info.get(GPS_LAT_REF)!r}), "
        f"lng={longitude} ({gps_info.get(GPS_LON_REF)!r})"
    )
    return latitude, longitude


def parse_exif_datetime(value: Any) -> Optional[datetime]:
    """Parse an EXIF ``YYYY:MM:DD HH:MM:SS`` timestamp."""
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not value:
        return None

    text = str(value).strip("\x00 ")
    for fmt in EXIF_DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    logger.debug(f"Unparseable EXIF datetime: {text!r}")
    return None


def extract_captured_at(image: Image.Image) -> Optional[datetime]:
    """Read when an image was taken, preferring DateTimeOriginal."""
    try:
        exif = image.getexif()
        value = exif.get_ifd(EXIF_IFD).get(TAG_DATETIME_ORIGINAL) or exif.get(TAG_DATETIME)
    except Exception as e:
        logger.warning(f"Failed to read EXIF datetime: {e}")
        return None
    return parse_exif_datetime(value)


def read_image_details(content: bytes) -> Tuple[Optional[Tuple[float, float]], Optional[datetime]]:
    """Open image bytes and return ``(gps, captured_at)``."""
    with Image.open(io.BytesIO(content)) as image:
        return extract_gps(image), extract_captured_at(image)


def build_photo_metadata(
    latitude: Optional[float],
    longitude: Optional[float],
    original_location: Optional[str],
) -> Dict[str, Any]:
    """Assemble PhotoMetadata for a new photo and correct its coordinates.

    Args:
        latitude: Decimal latitude, if known.
        longitude: Decimal longitude, if known.
        original_location: Place name typed by the uploader.

    Returns:
        ``{"latitude", "longitude", "originalLocation", "coordinates"}`` with
        the longitude sign already corrected.
    """
    latitude, corrected_longitude = correct_pair(latitude, longitude)
    if corrected_longitude != longitude:
        logger.info(f"Corrected longitude on ingestion: {longitude} -> {corrected_longitude}")

    has_fix = is_number(latitude) and is_number(corrected_longitude)
    return {
        "latitude": latitude,
        "longitude": corrected_longitude,
        "originalLocation": original_location,
        "coordinates": format_coordinates(latitude, corrected_longitude) if has_fix else None,
    }
