"""General utility helpers shared across modules."""

from __future__ import annotations

import json
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from .config import EXPORT_TIMESTAMP_UTC

KM_TO_MILES = 0.621371
M_TO_FEET = 3.28084


def format_duration(minutes: int) -> str:
    """Format minutes into a ``Xh YYm`` (or ``Ym``) string."""

    hours, mins = divmod(int(minutes), 60)
    if hours:
        return f"{hours}h {mins:02d}m"
    return f"{mins}m"


def km_to_miles(km: float) -> float:
    return km * KM_TO_MILES


def metres_to_feet(metres: float) -> float:
    return metres * M_TO_FEET


def format_distance(km: float, use_metric: bool = True) -> str:
    """Return distance rounded to one decimal in km or miles."""

    if use_metric:
        return f"{round(km, 1)} km"
    return f"{round(km_to_miles(km), 1)} mi"


def format_elevation(metres: float | None, use_metric: bool = True) -> str:
    if metres is None:
        return "-"
    if use_metric:
        return f"{round(metres)} m"
    return f"{round(metres_to_feet(metres))} ft"


def _normalise_value(value: Any) -> Any:
    """Convert objects to JSON-friendly representations."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if isinstance(value, set):
        return sorted(_normalise_value(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_normalise_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _normalise_value(val) for key, val in value.items()}
    return value


def json_dumps_sorted(value: Any, *, indent: int | None = None) -> str:
    """Return canonical JSON for exports and comparisons."""

    normalised = _normalise_value(value)
    if indent is None:
        return json.dumps(normalised, sort_keys=True, separators=(",", ":"))
    return json.dumps(normalised, sort_keys=True, indent=indent)


def export_payload(route: Dict[str, Any], now: datetime | None = None) -> Dict[str, Any]:
    """Attach an ISO timestamp to an exported route dictionary."""

    if now is None:
        now = datetime.now(timezone.utc) if EXPORT_TIMESTAMP_UTC else datetime.now()
    payload = dict(route)
    payload["timestamp"] = now.isoformat()
    return payload
