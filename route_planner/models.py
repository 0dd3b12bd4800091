"""Dataclasses describing waypoints, generated paths and derived route data."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

LonLat = Tuple[float, float]
LatLon = Tuple[float, float]
PathGeometry = Tuple[LonLat, ...]


class SurfaceType(str, Enum):
    PAVED = "paved"
    UNPAVED = "unpaved"
    PATH = "path"
    FERRY = "ferry"
    DEFAULT = "default"


class ChangeOrigin(str, Enum):
    """Who caused a waypoint change."""

    USER = "user"
    SNAP = "snap"


class ChangeKind(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    MOVE = "move"
    CLEAR = "clear"
    SNAP = "snap"


class BuildMode(str, Enum):
    """Whether map clicks add waypoints."""

    IDLE = "idle"
    BUILDING = "building"


@dataclass(frozen=True, slots=True)
class Waypoint:
    id: str
    coordinates: LonLat
    name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class WaypointChange:
    """Event emitted by the waypoint store after every geometry mutation."""

    kind: ChangeKind
    waypoints: Tuple[Waypoint, ...]
    origin: ChangeOrigin = ChangeOrigin.USER
    generation_id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class RouteStats:
    distance_km: float
    duration_min: int
    waypoint_count: int
    elevation_gain_m: Optional[float] = None
    elevation_loss_m: Optional[float] = None
    max_elevation_m: Optional[float] = None
    min_elevation_m: Optional[float] = None

    @classmethod
    def empty(cls) -> "RouteStats":
        return cls(distance_km=0.0, duration_min=0, waypoint_count=0)


@dataclass(frozen=True, slots=True)
class ElevationPoint:
    distance_m: float
    elevation_m: float


@dataclass(frozen=True, slots=True)
class ElevationSummary:
    gain_m: float
    loss_m: float
    max_m: float
    min_m: float


@dataclass(frozen=True, slots=True)
class SurfaceSegment:
    surface: SurfaceType
    coordinates: PathGeometry
    name: str
    distance_m: float


@dataclass(frozen=True, slots=True)
class SurfaceSegments:
    """Per-type segment lists; every surface type is always present."""

    by_type: Mapping[SurfaceType, Tuple[SurfaceSegment, ...]]

    @classmethod
    def from_buckets(
        cls, buckets: Mapping[SurfaceType, Sequence[SurfaceSegment]]
    ) -> "SurfaceSegments":
        return cls(
            MappingProxyType(
                {surface: tuple(buckets.get(surface, ())) for surface in SurfaceType}
            )
        )

    @classmethod
    def empty(cls) -> "SurfaceSegments":
        return cls.from_buckets({})

    def __getitem__(self, surface: SurfaceType) -> Tuple[SurfaceSegment, ...]:
        return self.by_type.get(surface, ())

    def all_segments(self) -> List[SurfaceSegment]:
        return [seg for surface in SurfaceType for seg in self[surface]]

    def counts(self) -> Dict[str, int]:
        return {surface.value: len(self[surface]) for surface in SurfaceType}


@dataclass(frozen=True, slots=True)
class RouteStep:
    """One provider step with the hints used for surface classification."""

    geometry: PathGeometry
    name: str = ""
    ref: Optional[str] = None
    distance_m: float = 0.0
    duration_s: float = 0.0
    maneuver_type: Optional[str] = None
    maneuver_modifier: Optional[str] = None
    classes: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True, slots=True)
class GenerationCycle:
    """Parsed result of one directions call, tagged with its sequence number."""

    generation_id: int
    waypoints: Tuple[Waypoint, ...]
    geometry: PathGeometry
    distance_m: float
    duration_s: float
    steps: Tuple[RouteStep, ...] = ()
    has_step_detail: bool = False


@dataclass(frozen=True, slots=True)
class BoundingBox:
    south_west: LonLat
    north_east: LonLat


@dataclass(frozen=True, slots=True)
class ImportedPath:
    """Decoded representation of a previously recorded, encoded path."""

    coordinates: PathGeometry
    centroid: LonLat
    bounds: BoundingBox
    distance_m: float
    name: Optional[str] = None
    encoded: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RouteSnapshot:
    """Read-only route state as of the most recently completed generation."""

    generation_id: Optional[int]
    waypoints: Tuple[Waypoint, ...]
    geometry: PathGeometry
    stats: RouteStats
    surfaces: SurfaceSegments
    elevation_profile: Tuple[ElevationPoint, ...]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls, waypoints: Tuple[Waypoint, ...] = ()) -> "RouteSnapshot":
        return cls(
            generation_id=None,
            waypoints=waypoints,
            geometry=(),
            stats=RouteStats.empty(),
            surfaces=SurfaceSegments.empty(),
            elevation_profile=(),
        )

    @property
    def has_path(self) -> bool:
        return bool(self.geometry)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly export of the route."""

        return {
            "generation_id": self.generation_id,
            "waypoints": [
                {
                    "id": wp.id,
                    "name": wp.name,
                    "coordinates": list(wp.coordinates),
                }
                for wp in self.waypoints
            ],
            "route": {
                "type": "LineString",
                "coordinates": [list(pt) for pt in self.geometry],
            },
            "stats": {
                "distance": self.stats.distance_km,
                "duration": self.stats.duration_min,
                "waypointCount": self.stats.waypoint_count,
                "elevationGain": self.stats.elevation_gain_m,
                "elevationLoss": self.stats.elevation_loss_m,
                "maxElevation": self.stats.max_elevation_m,
                "minElevation": self.stats.min_elevation_m,
            },
            "surfaces": self.surfaces.counts(),
            "elevation_profile": [
                {"distance": pt.distance_m, "elevation": pt.elevation_m}
                for pt in self.elevation_profile
            ],
        }
