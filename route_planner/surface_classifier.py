"""Partition route steps into surface-typed segments for rendering."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .models import (
    LonLat,
    RouteStep,
    SurfaceSegment,
    SurfaceSegments,
    SurfaceType,
)

LOGGER = logging.getLogger(__name__)

UNNAMED_STEP = "Unnamed"

_PATH_CLASSES = ("path", "trail", "cycleway")
_UNPAVED_CLASSES = ("track", "service")
_PAVED_CLASSES = ("trunk", "primary", "secondary")

_PATH_NAME_HINTS = ("trail", "path", "cycleway")
_UNPAVED_NAME_HINTS = ("track", "service", "unpaved")
_PAVED_NAME_HINTS = ("highway", "street", "road")

__all__ = ["classify_step", "classify_steps", "UNNAMED_STEP"]


def classify_step(step: RouteStep) -> SurfaceType:
    """Return the surface type for one step using the fixed rule cascade."""

    if (step.maneuver_modifier or "").lower() == "ferry":
        return SurfaceType.FERRY

    if step.classes is not None:
        classes = {cls.lower() for cls in step.classes}
        if classes.intersection(_PATH_CLASSES):
            return SurfaceType.PATH
        if classes.intersection(_UNPAVED_CLASSES):
            return SurfaceType.UNPAVED
        if classes.intersection(_PAVED_CLASSES):
            return SurfaceType.PAVED
        return SurfaceType.DEFAULT

    name = (step.name or "").lower()
    if any(hint in name for hint in _PATH_NAME_HINTS):
        return SurfaceType.PATH
    if any(hint in name for hint in _UNPAVED_NAME_HINTS):
        return SurfaceType.UNPAVED
    if step.ref or any(hint in name for hint in _PAVED_NAME_HINTS):
        return SurfaceType.PAVED
    return SurfaceType.DEFAULT


def classify_steps(
    steps: Sequence[RouteStep],
    geometry: Sequence[LonLat],
    *,
    has_step_detail: bool,
    route_distance_m: float = 0.0,
) -> SurfaceSegments:
    """Group step geometries by surface type.

    Without step detail the whole route becomes a single ``default``
    segment. Steps lacking geometry are skipped.
    """

    buckets: Dict[SurfaceType, List[SurfaceSegment]] = {
        surface: [] for surface in SurfaceType
    }
    if not has_step_detail:
        if geometry:
            buckets[SurfaceType.DEFAULT].append(
                SurfaceSegment(
                    surface=SurfaceType.DEFAULT,
                    coordinates=tuple(geometry),
                    name=UNNAMED_STEP,
                    distance_m=route_distance_m,
                )
            )
        return SurfaceSegments.from_buckets(buckets)

    skipped = 0
    for step in steps:
        if not step.geometry:
            skipped += 1
            continue
        surface = classify_step(step)
        buckets[surface].append(
            SurfaceSegment(
                surface=surface,
                coordinates=step.geometry,
                name=step.name or UNNAMED_STEP,
                distance_m=step.distance_m,
            )
        )
    if skipped:
        LOGGER.debug("Skipped %d step(s) without geometry", skipped)
    return SurfaceSegments.from_buckets(buckets)
