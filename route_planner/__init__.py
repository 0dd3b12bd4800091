"""Route planner: waypoint editing, path generation and route analysis."""

from .errors import PolylineDecodeError, ProviderError, RoutePlannerError
from .models import BuildMode, RouteSnapshot, SurfaceType, Waypoint
from .route_session import RouteSession, RouteSessionConfig
from .waypoint_store import WaypointStore

__all__ = [
    "BuildMode",
    "PolylineDecodeError",
    "ProviderError",
    "RoutePlannerError",
    "RouteSession",
    "RouteSessionConfig",
    "RouteSnapshot",
    "SurfaceType",
    "Waypoint",
    "WaypointStore",
]
