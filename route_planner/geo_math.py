"""Great-circle distance and simple reductions over (lon, lat) coordinates."""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .models import BoundingBox, LonLat

EARTH_RADIUS_M = 6371e3

CoordArray = NDArray[np.float64]


def haversine_m(a: LonLat, b: LonLat) -> float:
    """Return the great-circle distance in metres between two (lon, lat) points."""

    lon1, lat1 = a
    lon2, lat2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_to_many(origin: LonLat, points: Iterable[Sequence[float]]) -> CoordArray:
    """Vectorised distance (metres) from ``origin`` to every point."""

    array = as_coord_array(points)
    if len(array) == 0:
        return np.empty(0, dtype=float)
    lon1, lat1 = np.radians(origin[0]), np.radians(origin[1])
    lon2 = np.radians(array[:, 0])
    lat2 = np.radians(array[:, 1])
    h = (
        np.sin((lat2 - lat1) / 2) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def segment_lengths(points: Iterable[Sequence[float]]) -> CoordArray:
    """Distances (metres) between consecutive points."""

    array = as_coord_array(points)
    if len(array) < 2:
        return np.empty(0, dtype=float)
    lon = np.radians(array[:, 0])
    lat = np.radians(array[:, 1])
    d_lat = np.diff(lat)
    d_lon = np.diff(lon)
    h = (
        np.sin(d_lat / 2) ** 2
        + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def cumulative_distances(points: Iterable[Sequence[float]]) -> List[float]:
    """Along-path distance (metres) from the first point to each point."""

    array = as_coord_array(points)
    if len(array) == 0:
        return []
    lengths = segment_lengths(array)
    return [0.0] + np.cumsum(lengths).astype(float).tolist()


def path_length_m(points: Iterable[Sequence[float]]) -> float:
    return float(np.sum(segment_lengths(points)))


def nearest_vertex(point: LonLat, path: Sequence[LonLat]) -> Tuple[int, float]:
    """Return ``(index, distance_m)`` of the path vertex closest to ``point``.

    Linear scan over every vertex; ties resolve to the earliest vertex.
    """

    if not path:
        raise ValueError("Cannot search an empty path")
    distances = haversine_to_many(point, path)
    index = int(np.argmin(distances))
    return index, float(distances[index])


def centroid(points: Sequence[LonLat]) -> LonLat:
    """Arithmetic mean of the coordinates; ``(0, 0)`` when empty."""

    if not points:
        return (0.0, 0.0)
    array = as_coord_array(points)
    mean = array.mean(axis=0)
    return (float(mean[0]), float(mean[1]))


def bounding_box(points: Sequence[LonLat]) -> BoundingBox:
    """South-west / north-east corners; degenerate ``(0, 0)`` box when empty."""

    if not points:
        return BoundingBox((0.0, 0.0), (0.0, 0.0))
    array = as_coord_array(points)
    lo = array.min(axis=0)
    hi = array.max(axis=0)
    return BoundingBox((float(lo[0]), float(lo[1])), (float(hi[0]), float(hi[1])))


def validate_lon_lat(coordinates: Sequence[float]) -> LonLat:
    """Return a typed (lon, lat) pair or raise ``ValueError``."""

    if len(coordinates) != 2:
        raise ValueError("Expected a (lon, lat) pair")
    lon, lat = float(coordinates[0]), float(coordinates[1])
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise ValueError("Coordinates must be finite numbers")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"Longitude out of range: {lon}")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude out of range: {lat}")
    return lon, lat


def as_coord_array(points: Iterable[Sequence[float]]) -> CoordArray:
    """Convert an arbitrary iterable of 2D coordinates into a float64 array."""

    array = np.asarray(list(points), dtype=float)
    if array.size == 0:
        return np.empty((0, 2), dtype=float)
    if array.ndim != 2 or array.shape[1] != 2:
        raise ValueError("Expected a sequence of 2D coordinates")
    return array
