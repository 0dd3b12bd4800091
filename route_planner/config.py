"""Central configuration for the route planner.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Directions provider (Mapbox)
# ---------------------------------------------------------------------------
MAPBOX_BASE_URL = os.getenv("MAPBOX_BASE_URL", "https://api.mapbox.com")

# Access token pulled from the environment. Do not hardcode secrets.
MAPBOX_ACCESS_TOKEN = os.getenv("MAPBOX_ACCESS_TOKEN", "")

# Travel profiles accepted by the Directions API.
SUPPORTED_PROFILES = ("driving", "driving-traffic", "walking", "cycling")
DEFAULT_PROFILE = os.getenv("ROUTE_PLANNER_PROFILE", "cycling")


# ---------------------------------------------------------------------------
# Elevation provider (Open-Elevation compatible)
# ---------------------------------------------------------------------------
OPEN_ELEVATION_URL = os.getenv(
    "OPEN_ELEVATION_URL", "https://api.open-elevation.com/api/v1/lookup"
)

# Maximum number of path points submitted per elevation lookup.
ELEVATION_SAMPLE_CAP = _env_int("ELEVATION_SAMPLE_CAP", 100)

# In-memory cache of elevation lookups keyed by the sampled locations.
ELEVATION_CACHE_SIZE = _env_int("ELEVATION_CACHE_SIZE", 128)
ELEVATION_CACHE_TTL_SECONDS = _env_int("ELEVATION_CACHE_TTL_SECONDS", 3600)


# ---------------------------------------------------------------------------
# HTTP settings
# ---------------------------------------------------------------------------
# Request timeout in seconds.
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 15.0)

# HTTP session pool sizes for overlapping requests.
HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10

# Transport-level retries. The pipeline itself never retries; calling layers
# may opt in here. 0 disables retries.
HTTP_MAX_RETRIES = _env_int("HTTP_MAX_RETRIES", 0)


# ---------------------------------------------------------------------------
# Geometry pipeline
# ---------------------------------------------------------------------------
# Interior waypoints closer than this (metres) to a path vertex are snapped.
SNAP_THRESHOLD_M = _env_float("SNAP_THRESHOLD_M", 100.0)

# Encoded polyline precision (decimal places).
POLYLINE_PRECISION = 5


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------
# "metric" or "imperial".
DEFAULT_UNITS = os.getenv("ROUTE_PLANNER_UNITS", "metric")
USE_METRIC = DEFAULT_UNITS.strip().lower() != "imperial"

# Emit the export timestamp in UTC.
EXPORT_TIMESTAMP_UTC = _env_bool("EXPORT_TIMESTAMP_UTC", True)
