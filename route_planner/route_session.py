"""Shared route-building engine.

One ``RouteSession`` wires the waypoint store to the directions provider,
the surface classifier, the elevation analyzer and the snap engine. Every
screen that edits a route uses the same engine with injected providers.

Execution model: all store mutations happen on the asyncio event loop.
A user change that leaves two or more waypoints issues a new sequence
number and schedules a generation task; only the task holding the latest
number may commit. Snap writes are tagged by the store and never schedule
a generation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Coroutine, Dict, Optional, Sequence, Set, Tuple

from .config import DEFAULT_PROFILE, ELEVATION_SAMPLE_CAP, SNAP_THRESHOLD_M
from .elevation_analyzer import ElevationAnalysis, ElevationAnalyzer
from .errors import PolylineDecodeError, ProviderError
from .models import (
    BuildMode,
    ChangeKind,
    ChangeOrigin,
    GenerationCycle,
    ImportedPath,
    RouteSnapshot,
    RouteStats,
    SurfaceSegments,
    Waypoint,
    WaypointChange,
)
from .notifications import Notifier, log_notifier, notification_for_error
from .polyline_codec import import_path
from .providers.base import DirectionsProvider, ElevationProvider
from .route_generator import RouteGenerator
from .snap_engine import SnapEngine
from .surface_classifier import classify_steps
from .utils import export_payload, json_dumps_sorted
from .waypoint_store import WaypointStore

__all__ = ["RouteSession", "RouteSessionConfig", "build_stats"]


@dataclass(slots=True)
class RouteSessionConfig:
    profile: str = DEFAULT_PROFILE
    snap_enabled: bool = True
    snap_threshold_m: float = SNAP_THRESHOLD_M
    elevation_sample_cap: int = ELEVATION_SAMPLE_CAP
    notifier: Notifier = field(default=log_notifier)
    logger: logging.Logger | None = None


def build_stats(
    cycle: GenerationCycle, analysis: Optional[ElevationAnalysis]
) -> RouteStats:
    """Derive route statistics for one cycle in a single step."""

    summary = analysis.summary if analysis is not None else None
    return RouteStats(
        distance_km=round(cycle.distance_m / 1000.0, 2),
        duration_min=int(round(cycle.duration_s / 60.0)),
        waypoint_count=len(cycle.waypoints),
        elevation_gain_m=summary.gain_m if summary else None,
        elevation_loss_m=summary.loss_m if summary else None,
        max_elevation_m=summary.max_m if summary else None,
        min_elevation_m=summary.min_m if summary else None,
    )


class RouteSession:
    def __init__(
        self,
        directions: DirectionsProvider,
        elevation: ElevationProvider | None = None,
        config: RouteSessionConfig | None = None,
        store: WaypointStore | None = None,
    ) -> None:
        self.config = config or RouteSessionConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self.store = store or WaypointStore()
        self.generator = RouteGenerator(directions, self.config.profile)
        self.elevation: ElevationAnalyzer | None = (
            ElevationAnalyzer(elevation, self.config.elevation_sample_cap)
            if elevation is not None
            else None
        )
        self.snapper = SnapEngine(self.store, self.config.snap_threshold_m)
        self._snapshot = RouteSnapshot.empty(self.store.waypoints)
        self._tasks: Set[asyncio.Task[None]] = set()
        self._unsubscribe = self.store.subscribe(self._on_waypoints_changed)
        self._remove_guard = self.store.add_guard(self._require_loop)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> RouteSnapshot:
        return self._snapshot

    @property
    def waypoints(self) -> Tuple[Waypoint, ...]:
        return self.store.waypoints

    @property
    def pending(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Editing entry points
    # ------------------------------------------------------------------
    def handle_map_click(
        self, coordinates: Sequence[float], mode: BuildMode
    ) -> Optional[Waypoint]:
        """Add a waypoint for a map click when ``mode`` is ``BUILDING``."""

        if mode is not BuildMode.BUILDING:
            self._log.debug("Ignoring map click outside building mode")
            return None
        return self.store.add(coordinates)

    def import_path(self, encoded: str, name: str | None = None) -> ImportedPath:
        """Decode a recorded path; decode errors are notified and re-raised."""

        try:
            return import_path(encoded, name=name)
        except PolylineDecodeError as exc:
            self._log.warning("Failed to import path %s: %s", name or "", exc)
            self.config.notifier(notification_for_error(exc))
            raise

    async def regenerate(self) -> RouteSnapshot:
        """Run a generation for the current waypoints and wait for it."""

        waypoints = self.store.waypoints
        if len(waypoints) < 2:
            self._reset(waypoints)
            return self._snapshot
        await self._run_cycle(waypoints, self.generator.issue())
        return self._snapshot

    async def settle(self) -> RouteSnapshot:
        """Wait until every scheduled generation has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks))
        return self._snapshot

    def close(self) -> None:
        self._unsubscribe()
        self._remove_guard()
        for task in list(self._tasks):
            task.cancel()

    def export(self, now: datetime | None = None) -> Dict[str, Any]:
        return export_payload(self._snapshot.to_dict(), now=now)

    def export_json(self, now: datetime | None = None) -> str:
        return json_dumps_sorted(self.export(now=now), indent=2)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _on_waypoints_changed(self, change: WaypointChange) -> None:
        if change.origin is ChangeOrigin.SNAP:
            self._log.debug(
                "Skipping regeneration for snap write (generation=%s)",
                change.generation_id,
            )
            self._snapshot = replace(self._snapshot, waypoints=change.waypoints)
            return
        if len(change.waypoints) < 2:
            self._reset(change.waypoints)
            return
        sequence = self.generator.issue()
        self._schedule(self._run_cycle(change.waypoints, sequence))

    def _require_loop(self, kind: ChangeKind, resulting_count: int) -> None:
        if resulting_count < 2:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError(
                f"RouteSession edits must run inside the asyncio event loop ({kind.value})"
            ) from None

    def _reset(self, waypoints: Tuple[Waypoint, ...]) -> None:
        self.generator.invalidate()
        self._snapshot = RouteSnapshot.empty(waypoints)
        self._log.debug("Cleared path; %d waypoint(s) remain", len(waypoints))

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise RuntimeError(
                "RouteSession edits must run inside the asyncio event loop"
            ) from None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_cycle(self, waypoints: Tuple[Waypoint, ...], sequence: int) -> None:
        try:
            cycle = await self.generator.generate(waypoints, sequence)
        except ProviderError as exc:
            self._log.warning("Route generation seq=%s failed: %s", sequence, exc)
            self.config.notifier(notification_for_error(exc, stage="route"))
            return
        if cycle is None:
            return

        elevation_task = asyncio.ensure_future(self._analyze_elevation(cycle))
        surfaces = classify_steps(
            cycle.steps,
            cycle.geometry,
            has_step_detail=cycle.has_step_detail,
            route_distance_m=cycle.distance_m,
        )
        analysis, elevation_error = await elevation_task

        if not self.generator.is_current(sequence):
            self._log.debug("Discarding cycle seq=%s superseded during analysis", sequence)
            return
        self._commit(cycle, surfaces, analysis)
        if elevation_error is not None:
            self.config.notifier(notification_for_error(elevation_error, stage="elevation"))
        if self.config.snap_enabled:
            self.snapper.snap(cycle.generation_id, cycle.geometry)

    async def _analyze_elevation(
        self, cycle: GenerationCycle
    ) -> Tuple[Optional[ElevationAnalysis], Optional[ProviderError]]:
        if self.elevation is None:
            return None, None
        try:
            return await self.elevation.analyze(cycle.geometry), None
        except ProviderError as exc:
            if self.generator.is_current(cycle.generation_id):
                self._log.warning(
                    "Elevation lookup for seq=%s failed: %s", cycle.generation_id, exc
                )
            return None, exc

    def _commit(
        self,
        cycle: GenerationCycle,
        surfaces: SurfaceSegments,
        analysis: Optional[ElevationAnalysis],
    ) -> None:
        stats = build_stats(cycle, analysis)
        self._snapshot = RouteSnapshot(
            generation_id=cycle.generation_id,
            waypoints=self.store.waypoints,
            geometry=cycle.geometry,
            stats=stats,
            surfaces=surfaces,
            elevation_profile=analysis.profile if analysis is not None else (),
            metadata={
                "profile": self.generator.profile,
                "elevation_available": analysis is not None,
            },
        )
        self._log.info(
            "Committed route seq=%s: %.2f km, %d min, %d waypoints, surfaces=%s",
            cycle.generation_id,
            stats.distance_km,
            stats.duration_min,
            stats.waypoint_count,
            surfaces.counts(),
        )
