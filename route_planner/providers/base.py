"""Abstract directions and elevation provider interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Sequence

from ..models import LatLon, LonLat

__all__ = ["DirectionsProvider", "ElevationProvider"]


class DirectionsProvider(ABC):
    """Turns ordered waypoints into a routable path."""

    name = "directions"

    @abstractmethod
    async def fetch_route(
        self, coordinates: Sequence[LonLat], profile: str
    ) -> Mapping[str, Any]:
        """Return one route object.

        Shape: ``{distance, duration, geometry: LineString, legs: [{steps:
        [{geometry, name, ref?, maneuver: {type, modifier?}, intersections?:
        [{classes?}]}]}]}`` with distance in metres and duration in seconds.
        """


class ElevationProvider(ABC):
    """Looks up terrain elevation for (lat, lon) locations."""

    name = "elevation"

    @abstractmethod
    async def lookup(self, locations: Sequence[LatLon]) -> List[float]:
        """Return one elevation (metres) per location, in request order."""
