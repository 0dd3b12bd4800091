"""Ordered, uniquely-identified waypoint collection."""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from .errors import WaypointNotFoundError
from .geo_math import validate_lon_lat
from .models import ChangeKind, ChangeOrigin, LonLat, Waypoint, WaypointChange

LOGGER = logging.getLogger(__name__)

ChangeListener = Callable[[WaypointChange], None]
# Called with the change kind and the resulting waypoint count before a
# user mutation is applied; raising aborts the mutation.
ChangeGuard = Callable[[ChangeKind, int], None]

__all__ = ["WaypointStore", "ChangeListener", "ChangeGuard"]


class WaypointStore:
    """Holds the route's waypoints in path order and broadcasts changes.

    Listeners receive a :class:`WaypointChange` after every geometry
    mutation. Changes written by the snap engine carry
    ``ChangeOrigin.SNAP`` and the generation id they came from, so
    listeners can tell them apart from user edits.
    """

    def __init__(self, id_prefix: str = "wp") -> None:
        self._waypoints: List[Waypoint] = []
        self._selected: Optional[str] = None
        self._ids = itertools.count(1)
        self._id_prefix = id_prefix
        self._listeners: List[ChangeListener] = []
        self._guards: List[ChangeGuard] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def waypoints(self) -> Tuple[Waypoint, ...]:
        return tuple(self._waypoints)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected

    def __len__(self) -> int:
        return len(self._waypoints)

    def get(self, waypoint_id: str) -> Waypoint:
        return self._waypoints[self._index_of(waypoint_id)]

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def add_guard(self, guard: ChangeGuard) -> Callable[[], None]:
        """Register a pre-mutation check; returns a callable that removes it."""

        self._guards.append(guard)

        def _remove() -> None:
            if guard in self._guards:
                self._guards.remove(guard)

        return _remove

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, coordinates: Sequence[float], name: Optional[str] = None) -> Waypoint:
        lon_lat = validate_lon_lat(coordinates)
        self._check(ChangeKind.ADD, len(self._waypoints) + 1)
        waypoint = Waypoint(
            id=f"{self._id_prefix}-{next(self._ids)}",
            coordinates=lon_lat,
            name=name or f"Waypoint {len(self._waypoints) + 1}",
        )
        self._waypoints.append(waypoint)
        self._selected = None
        LOGGER.debug("Added waypoint id=%s at %s", waypoint.id, lon_lat)
        self._emit(ChangeKind.ADD)
        return waypoint

    def remove(self, waypoint_id: str) -> Waypoint:
        index = self._index_of(waypoint_id)
        self._check(ChangeKind.REMOVE, len(self._waypoints) - 1)
        removed = self._waypoints.pop(index)
        if self._selected == waypoint_id:
            self._selected = None
        LOGGER.debug("Removed waypoint id=%s", waypoint_id)
        self._emit(ChangeKind.REMOVE)
        return removed

    def move(self, waypoint_id: str, coordinates: Sequence[float]) -> Waypoint:
        index = self._index_of(waypoint_id)
        lon_lat = validate_lon_lat(coordinates)
        self._check(ChangeKind.MOVE, len(self._waypoints))
        moved = replace(self._waypoints[index], coordinates=lon_lat)
        self._waypoints[index] = moved
        self._emit(ChangeKind.MOVE)
        return moved

    def select(self, waypoint_id: Optional[str]) -> None:
        """Select a waypoint (or clear the selection with ``None``).

        Selection does not alter the path and emits no change event.
        """

        if waypoint_id is not None:
            self._index_of(waypoint_id)
        self._selected = waypoint_id

    def toggle_selection(self, waypoint_id: str) -> Optional[str]:
        self.select(None if self._selected == waypoint_id else waypoint_id)
        return self._selected

    def clear(self) -> None:
        self._check(ChangeKind.CLEAR, 0)
        self._waypoints.clear()
        self._selected = None
        self._emit(ChangeKind.CLEAR)

    def apply_snap(
        self, moves: Mapping[str, LonLat], generation_id: int
    ) -> Tuple[Waypoint, ...]:
        """Apply every snap move for one generation as a single change.

        Unknown ids are skipped (the waypoint may have been removed since the
        snap pass ran). Emits one ``SNAP``-origin event when anything moved.
        """

        changed = 0
        for waypoint_id, coordinates in moves.items():
            try:
                index = self._index_of(waypoint_id)
            except WaypointNotFoundError:
                LOGGER.debug("Snap target %s no longer present; skipping", waypoint_id)
                continue
            current = self._waypoints[index]
            if current.coordinates == tuple(coordinates):
                continue
            self._waypoints[index] = replace(current, coordinates=tuple(coordinates))
            changed += 1
        if changed:
            self._emit(
                ChangeKind.SNAP,
                origin=ChangeOrigin.SNAP,
                generation_id=generation_id,
            )
        return self.waypoints

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _index_of(self, waypoint_id: str) -> int:
        for index, waypoint in enumerate(self._waypoints):
            if waypoint.id == waypoint_id:
                return index
        raise WaypointNotFoundError(f"Unknown waypoint id: {waypoint_id}")

    def _check(self, kind: ChangeKind, resulting_count: int) -> None:
        for guard in list(self._guards):
            guard(kind, resulting_count)

    def _emit(
        self,
        kind: ChangeKind,
        *,
        origin: ChangeOrigin = ChangeOrigin.USER,
        generation_id: Optional[int] = None,
    ) -> None:
        event = WaypointChange(
            kind=kind,
            waypoints=self.waypoints,
            origin=origin,
            generation_id=generation_id,
        )
        for listener in list(self._listeners):
            listener(event)
