"""GPS coordinate sign correction.

Photos taken in the continental USA are sometimes stored with a positive
longitude. This module holds the single rule that repairs them and the
adapters every call site uses to apply it, whatever shape the coordinates
arrive in: a metadata mapping, a ``(latitude, longitude)`` pair, or a
``"lat,lng"`` string.
"""

import logging
import math
import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

# Latitude band treated as "probably the continental USA".
USA_LATITUDE_MIN = 24.0
USA_LATITUDE_MAX = 50.0

_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")

CoordinateValue = Union[Mapping[str, Any], Tuple[float, float], str]


def needs_correction(latitude: float, longitude: float) -> bool:
    """Whether the pair has a positive longitude inside the USA latitude band."""
    return USA_LATITUDE_MIN <= latitude <= USA_LATITUDE_MAX and longitude > 0


def normalize(latitude: float, longitude: float) -> Tuple[float, float]:
    """Flip a positive longitude inside the USA latitude band.

    Args:
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.

    Returns:
        ``(latitude, -longitude)`` when ``24 <= latitude <= 50`` and
        ``longitude > 0``, otherwise the input pair unchanged.
    """
    if needs_correction(latitude, longitude):
        logger.debug(f"Flipping longitude {longitude} to {-longitude} (lat={latitude})")
        return latitude, -longitude
    return latitude, longitude


def is_number(value: Any) -> bool:
    """Return True for real ints and floats (bools excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_float(text: str) -> float:
    """Parse the leading number of ``text``, ``Infinity`` included.

    Returns NaN when ``text`` does not start with a number.
    """
    match = _LEADING_FLOAT.match(text)
    if not match:
        return math.nan
    return float(match.group(1))


def format_number(value: float) -> str:
    """Render a coordinate the way it appears in a ``"lat,lng"`` string."""
    if isinstance(value, float) and math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def format_coordinates(latitude: float, longitude: float) -> str:
    """Join a coordinate pair into the ``"lat,lng"`` form."""
    return f"{format_number(latitude)},{format_number(longitude)}"


def parse_coordinates(text: str) -> Optional[Tuple[float, float]]:
    """Split a ``"lat,lng"`` string into floats.

    Returns:
        The pair, or None when either component is not a number.
    """
    parts = text.split(",")
    latitude = parse_float(parts[0])
    longitude = parse_float(parts[1]) if len(parts) > 1 else math.nan
    if math.isnan(latitude) or math.isnan(longitude):
        return None
    return latitude, longitude


def correct_pair(
    latitude: Optional[float],
    longitude: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """Correct a pair of scalars, passing it through when either is missing."""
    if not (is_number(latitude) and is_number(longitude)):
        return latitude, longitude
    return normalize(latitude, longitude)


def correct_coordinate_string(text: str) -> str:
    """Correct a ``"lat,lng"`` string.

    Malformed strings and strings that need no change are returned as is.
    """
    pair = parse_coordinates(text)
    if pair is None or not needs_correction(*pair):
        return text
    return format_coordinates(*normalize(*pair))


def correct_metadata(metadata: Mapping[str, Any]) -> Mapping[str, Any]:
    """Correct the coordinates held in a photo metadata mapping.

    When both ``latitude`` and ``longitude`` are numbers they are normalized
    and, if the longitude flips, ``coordinates`` is rebuilt from the corrected
    pair. A mapping holding only a ``coordinates`` string has that string
    corrected instead. Every other key is copied untouched.

    Args:
        metadata: Photo metadata. Never modified.

    Returns:
        A new dict when something changed, otherwise ``metadata`` itself.
    """
    latitude = metadata.get("latitude")
    longitude = metadata.get("longitude")

    if is_number(latitude) and is_number(longitude):
        if not needs_correction(latitude, longitude):
            return metadata
        new_latitude, new_longitude = normalize(latitude, longitude)
        result = dict(metadata)
        result["latitude"] = new_latitude
        result["longitude"] = new_longitude
        if "coordinates" in result and result["coordinates"] is not None:
            result["coordinates"] = format_coordinates(new_latitude, new_longitude)
        return result

    coordinates = metadata.get("coordinates")
    if latitude is None and longitude is None and isinstance(coordinates, str):
        corrected = correct_coordinate_string(coordinates)
        if corrected != coordinates:
            result = dict(metadata)
            result["coordinates"] = corrected
            return result

    return metadata


def correct_coordinates(value: CoordinateValue) -> CoordinateValue:
    """Correct coordinates and return them in the shape they were given.

    Accepts a metadata mapping, a ``(latitude, longitude)`` sequence or a
    ``"lat,lng"`` string. Anything else is returned unchanged.
    """
    if isinstance(value, str):
        return correct_coordinate_string(value)
    if isinstance(value, Mapping):
        return correct_metadata(value)
    if isinstance(value, (tuple, list)) and len(value) == 2:
        latitude, longitude = value
        if not (is_number(latitude) and is_number(longitude)):
            return value
        if not needs_correction(latitude, longitude):
            return value
        return type(value)(normalize(latitude, longitude))
    return value


def map_coordinates(metadata: Optional[Mapping[str, Any]]) -> str:
    """Corrected ``"lat,lng"`` for a map link, or ``""`` if unknown.

    The ``coordinates`` string wins over separate fields, matching how the
    gallery has always linked photos to a map.
    """
    if not metadata:
        return ""

    coordinates = metadata.get("coordinates")
    if coordinates:
        pair = parse_coordinates(str(coordinates))
        if pair is None:
            return str(coordinates)
        return format_coordinates(*normalize(*pair))

    latitude = metadata.get("latitude")
    longitude = metadata.get("longitude")
    if is_number(latitude) and is_number(longitude):
        return format_coordinates(*normalize(latitude, longitude))
    return ""


def correct_collection(records: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Correct the metadata of every photo-like record in a collection.

    Records without metadata, or whose metadata lacks a numeric latitude and
    longitude, are passed through as the same object.

    Args:
        records: Photo-like mappings, each optionally carrying ``metadata``.

    Returns:
        A list of the same length and order as ``records``.
    """
    corrected: List[Mapping[str, Any]] = []
    for record in records:
        metadata = record.get("metadata") if isinstance(record, Mapping) else None
        if not isinstance(metadata, Mapping) or not (
            is_number(metadata.get("latitude")) and is_number(metadata.get("longitude"))
        ):
            corrected.append(record)
            continue

        new_metadata = correct_metadata(metadata)
        if new_metadata is metadata:
            corrected.append(record)
        else:
            corrected.append({**record, "metadata": new_metadata})
    return corrected


def count_changed(
    before: Sequence[Mapping[str, Any]],
    after: Sequence[Mapping[str, Any]],
) -> int:
    """Count records whose metadata longitude differs between two collections."""
    return len(changed_indexes(before, after))


def changed_indexes(
    before: Sequence[Mapping[str, Any]],
    after: Sequence[Mapping[str, Any]],
) -> List[int]:
    """Positions whose corrected longitude differs from the original one."""
    return [
        index
        for index, (original, corrected) in enumerate(zip(before, after))
        if original is not corrected and _longitude_of(original) != _longitude_of(corrected)
    ]


def _longitude_of(record: Any) -> Any:
    if not isinstance(record, Mapping):
        return None
    metadata = record.get("metadata")
    if not isinstance(metadata, Mapping):
        return None
    return metadata.get("longitude")
