"""Encoded polyline codec used for importing recorded paths.

Coordinates are exchanged in (lon, lat) order; the encoded form stores
latitude first, as in the classic algorithm. Decoding is strict: a string
that ends in the middle of a value, contains characters outside the
encoding alphabet, or carries a latitude without its longitude raises
``PolylineDecodeError`` instead of returning partial coordinates.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import polyline

from .config import POLYLINE_PRECISION
from .errors import PolylineDecodeError
from .geo_math import bounding_box, centroid, path_length_m
from .models import ImportedPath, LonLat

_CHAR_OFFSET = 63
_CONTINUATION_BIT = 0x20
_MAX_CHAR = _CHAR_OFFSET + 0x3F

__all__ = [
    "decode",
    "encode",
    "centroid",
    "bounding_box",
    "import_path",
    "validate_encoded",
]


def validate_encoded(encoded: str) -> int:
    """Check the chunk structure of ``encoded`` and return the point count."""

    values = 0
    open_chunk = False
    for position, char in enumerate(encoded):
        code = ord(char)
        if code < _CHAR_OFFSET or code > _MAX_CHAR:
            raise PolylineDecodeError(
                f"Invalid polyline character {char!r} at position {position}"
            )
        open_chunk = (code - _CHAR_OFFSET) >= _CONTINUATION_BIT
        if not open_chunk:
            values += 1
    if open_chunk:
        raise PolylineDecodeError("Polyline ends in the middle of a value")
    if values % 2:
        raise PolylineDecodeError("Polyline ends after a latitude without longitude")
    return values // 2


def decode(encoded: str, precision: int = POLYLINE_PRECISION) -> List[LonLat]:
    """Decode an encoded polyline into a list of (lon, lat) tuples."""

    if not encoded:
        return []
    expected = validate_encoded(encoded)
    try:
        decoded = polyline.decode(encoded, precision, geojson=True)
    except (ValueError, TypeError, IndexError) as exc:
        raise PolylineDecodeError("Unable to decode polyline") from exc
    if len(decoded) != expected:
        raise PolylineDecodeError(
            f"Decoded {len(decoded)} points but the polyline holds {expected}"
        )
    return [(float(lon), float(lat)) for lon, lat in decoded]


def encode(coordinates: Sequence[LonLat], precision: int = POLYLINE_PRECISION) -> str:
    """Encode (lon, lat) pairs into a polyline string."""

    if not coordinates:
        return ""
    return polyline.encode(
        [(float(lon), float(lat)) for lon, lat in coordinates],
        precision,
        geojson=True,
    )


def import_path(encoded: str, name: Optional[str] = None) -> ImportedPath:
    """Decode a recorded path and attach its centroid, bounds and length."""

    points = tuple(decode(encoded))
    return ImportedPath(
        coordinates=points,
        centroid=centroid(points),
        bounds=bounding_box(points),
        distance_m=path_length_m(points),
        name=name,
        encoded=encoded or None,
    )
