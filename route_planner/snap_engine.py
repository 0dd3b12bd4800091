"""Move interior waypoints onto the generated path."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, Optional, Sequence

from .config import SNAP_THRESHOLD_M
from .geo_math import nearest_vertex
from .models import LonLat, Waypoint
from .waypoint_store import WaypointStore

LOGGER = logging.getLogger(__name__)

__all__ = ["SnapEngine", "SnapResult", "compute_snap_moves"]


@dataclass(slots=True)
class SnapResult:
    """Outcome of one snap pass."""

    generation_id: int
    moves: Dict[str, LonLat] = field(default_factory=dict)
    distances_m: Dict[str, float] = field(default_factory=dict)
    skipped: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.moves)


def compute_snap_moves(
    path: Sequence[LonLat],
    waypoints: Sequence[Waypoint],
    threshold_m: float = SNAP_THRESHOLD_M,
) -> tuple[Dict[str, LonLat], Dict[str, float]]:
    """Return ``(moves, distances)`` for the interior waypoints.

    The first and last waypoints are never moved. A waypoint moves to its
    nearest path vertex only when that vertex is strictly closer than
    ``threshold_m``; one already sitting on the vertex produces no move.
    """

    moves: Dict[str, LonLat] = {}
    distances: Dict[str, float] = {}
    if not path or len(waypoints) < 3:
        return moves, distances
    for waypoint in waypoints[1:-1]:
        index, distance = nearest_vertex(waypoint.coordinates, path)
        distances[waypoint.id] = distance
        if distance >= threshold_m:
            continue
        vertex = (float(path[index][0]), float(path[index][1]))
        if vertex != waypoint.coordinates:
            moves[waypoint.id] = vertex
    return moves, distances


class SnapEngine:
    """Runs snap passes against a waypoint store.

    Each pass is tied to a generation id. A pass that starts while another
    is running, or that repeats an already-snapped generation, is skipped.
    """

    def __init__(
        self,
        store: WaypointStore,
        threshold_m: float = SNAP_THRESHOLD_M,
        logger: logging.Logger | None = None,
    ) -> None:
        if threshold_m < 0:
            raise ValueError("threshold_m must be >= 0")
        self._store = store
        self.threshold_m = threshold_m
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._in_flight = False
        self._last_generation: Optional[int] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def snap(self, generation_id: int, path: Sequence[LonLat]) -> SnapResult:
        if self._in_flight:
            self._log.debug(
                "Snap pass for generation=%s skipped; another pass is running",
                generation_id,
            )
            return SnapResult(generation_id, skipped=True)
        if self._last_generation == generation_id:
            self._log.debug("Generation=%s already snapped", generation_id)
            return SnapResult(generation_id, skipped=True)

        self._in_flight = True
        try:
            moves, distances = compute_snap_moves(
                path, self._store.waypoints, self.threshold_m
            )
            if moves:
                self._store.apply_snap(moves, generation_id)
                self._log.info(
                    "Snapped %d waypoint(s) to path for generation=%s",
                    len(moves),
                    generation_id,
                )
            self._last_generation = generation_id
            return SnapResult(generation_id, moves=moves, distances_m=distances)
        finally:
            self._in_flight = False
