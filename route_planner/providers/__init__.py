"""Directions and elevation provider clients."""

from .base import DirectionsProvider, ElevationProvider  # noqa: F401
from .http_session import create_default_session, get_default_session  # noqa: F401
from .mapbox import MapboxDirectionsProvider  # noqa: F401
from .open_elevation import OpenElevationProvider  # noqa: F401
