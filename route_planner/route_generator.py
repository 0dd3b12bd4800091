"""Directions requests, response parsing and staleness control.

Every request carries a sequence number issued when the request is
scheduled. Only the most recently issued number may produce a cycle; any
other response, successful or failed, is dropped unprocessed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_PROFILE, SUPPORTED_PROFILES
from .errors import MalformedResponseError, ProviderError
from .models import GenerationCycle, LonLat, PathGeometry, RouteStep, Waypoint
from .providers.base import DirectionsProvider

LOGGER = logging.getLogger(__name__)

__all__ = ["RouteGenerator", "ParsedRoute", "parse_route", "parse_line_string"]


@dataclass(frozen=True, slots=True)
class ParsedRoute:
    geometry: PathGeometry
    distance_m: float
    duration_s: float
    steps: Tuple[RouteStep, ...]
    has_step_detail: bool


def parse_line_string(geometry: Any, context: str = "route") -> PathGeometry:
    """Validate a GeoJSON LineString and return its coordinates."""

    if not isinstance(geometry, Mapping):
        raise MalformedResponseError(f"{context} geometry is missing")
    if geometry.get("type") != "LineString":
        raise MalformedResponseError(
            f"{context} geometry must be a LineString, got {geometry.get('type')!r}"
        )
    raw = geometry.get("coordinates")
    if not isinstance(raw, list):
        raise MalformedResponseError(f"{context} geometry has no coordinates")
    points: List[LonLat] = []
    for pair in raw:
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            raise MalformedResponseError(f"{context} geometry has a malformed position")
        try:
            lon, lat = float(pair[0]), float(pair[1])
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError(
                f"{context} geometry has a non-numeric position"
            ) from exc
        points.append((lon, lat))
    return tuple(points)


def _number(payload: Mapping[str, Any], key: str, context: str) -> float:
    value = payload.get(key)
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"{context} is missing numeric '{key}'") from exc
    if not math.isfinite(number) or number < 0:
        raise MalformedResponseError(f"{context} has an invalid '{key}': {value!r}")
    return number


def _parse_step(step: Any, index: int) -> RouteStep:
    context = f"step {index}"
    if not isinstance(step, Mapping):
        raise MalformedResponseError(f"{context} is not an object")
    geometry_payload = step.get("geometry")
    geometry: PathGeometry = ()
    if geometry_payload is not None:
        geometry = parse_line_string(geometry_payload, context)
    maneuver = step.get("maneuver") or {}
    if not isinstance(maneuver, Mapping):
        maneuver = {}
    for key in ("type", "modifier"):
        value = maneuver.get(key)
        if value is not None and not isinstance(value, str):
            raise MalformedResponseError(
                f"{context} has a non-string maneuver {key}: {value!r}"
            )
    classes: Optional[Tuple[str, ...]] = None
    intersections = step.get("intersections")
    if isinstance(intersections, list) and intersections:
        first = intersections[0]
        if isinstance(first, Mapping) and isinstance(first.get("classes"), list):
            classes = tuple(str(cls) for cls in first["classes"])
    return RouteStep(
        geometry=geometry,
        name=str(step.get("name") or ""),
        ref=(str(step["ref"]) if step.get("ref") else None),
        distance_m=_number(step, "distance", context) if step.get("distance") else 0.0,
        duration_s=_number(step, "duration", context) if step.get("duration") else 0.0,
        maneuver_type=maneuver.get("type"),
        maneuver_modifier=maneuver.get("modifier"),
        classes=classes,
    )


def parse_route(payload: Mapping[str, Any]) -> ParsedRoute:
    """Parse a provider route object into geometry, totals and steps.

    Step detail is considered present when the first leg carries a step
    list; otherwise ``has_step_detail`` is False and ``steps`` is empty.
    """

    if not isinstance(payload, Mapping):
        raise MalformedResponseError("Route payload is not an object")
    geometry = parse_line_string(payload.get("geometry"))
    if len(geometry) < 2:
        raise MalformedResponseError("Route geometry has fewer than two positions")
    distance_m = _number(payload, "distance", "route")
    duration_s = _number(payload, "duration", "route")

    legs = payload.get("legs")
    steps: List[RouteStep] = []
    has_step_detail = (
        isinstance(legs, list)
        and bool(legs)
        and isinstance(legs[0], Mapping)
        and isinstance(legs[0].get("steps"), list)
    )
    if has_step_detail:
        for leg in legs:  # type: ignore[union-attr]
            if not isinstance(leg, Mapping):
                continue
            for raw_step in leg.get("steps") or []:
                steps.append(_parse_step(raw_step, len(steps)))
    return ParsedRoute(
        geometry=geometry,
        distance_m=distance_m,
        duration_s=duration_s,
        steps=tuple(steps),
        has_step_detail=has_step_detail,
    )


class RouteGenerator:
    """Issues directions requests and discards superseded responses."""

    def __init__(
        self,
        provider: DirectionsProvider,
        profile: str = DEFAULT_PROFILE,
        logger: logging.Logger | None = None,
    ) -> None:
        if profile not in SUPPORTED_PROFILES:
            raise ValueError(
                f"Unsupported profile {profile!r}; expected one of {SUPPORTED_PROFILES}"
            )
        self._provider = provider
        self.profile = profile
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._latest = 0

    @property
    def latest_sequence(self) -> int:
        return self._latest

    def issue(self) -> int:
        """Reserve the next sequence number; it becomes the only current one."""

        self._latest += 1
        return self._latest

    def invalidate(self) -> int:
        """Make every in-flight request stale."""

        return self.issue()

    def is_current(self, sequence: int) -> bool:
        return sequence == self._latest

    async def generate(
        self,
        waypoints: Sequence[Waypoint],
        sequence: Optional[int] = None,
    ) -> Optional[GenerationCycle]:
        """Fetch and parse a route; returns ``None`` when the response is stale.

        Raises ``ProviderError`` subclasses for transport, status and payload
        failures of the current request.
        """

        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required to generate a path")
        if sequence is None:
            sequence = self.issue()
        coordinates = [wp.coordinates for wp in waypoints]
        self._log.debug(
            "Requesting %s route seq=%s for %d waypoints",
            self.profile,
            sequence,
            len(coordinates),
        )
        try:
            payload = await self._provider.fetch_route(coordinates, self.profile)
        except ProviderError as exc:
            if not self.is_current(sequence):
                self._log.debug("Dropping failed stale response seq=%s: %s", sequence, exc)
                return None
            raise
        if not self.is_current(sequence):
            self._log.debug(
                "Dropping stale response seq=%s (latest=%s)", sequence, self._latest
            )
            return None

        parsed = parse_route(payload)
        return GenerationCycle(
            generation_id=sequence,
            waypoints=tuple(waypoints),
            geometry=parsed.geometry,
            distance_m=parsed.distance_m,
            duration_s=parsed.duration_s,
            steps=parsed.steps,
            has_step_detail=parsed.has_step_detail,
        )
