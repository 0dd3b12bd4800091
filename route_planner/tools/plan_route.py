#!/usr/bin/env python3
"""Plan a route between waypoints and print (or save) its summary.

Environment requirements:
- ``MAPBOX_ACCESS_TOKEN`` must be set (or stored in ``.env``).
- ``OPEN_ELEVATION_URL`` optionally points at a self-hosted elevation service.

Usage examples:

    # Summarise a cycling route through three waypoints
    python -m route_planner.tools.plan_route \
        --waypoint=-122.42,37.77 --waypoint=-122.41,37.78 \
        --waypoint=-122.40,37.79

    # Walking route in imperial units, exported as JSON
    python -m route_planner.tools.plan_route --profile walking --units imperial \
        --waypoint=-0.1276,51.5072 --waypoint=-0.1180,51.5100 \
        --output route.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from ..config import DEFAULT_PROFILE, SUPPORTED_PROFILES, USE_METRIC
from ..geo_math import validate_lon_lat
from ..models import BuildMode, LonLat, RouteSnapshot, SurfaceType
from ..notifications import Notification
from ..providers import MapboxDirectionsProvider, OpenElevationProvider
from ..route_session import RouteSession, RouteSessionConfig
from ..utils import (
    export_payload,
    format_distance,
    format_duration,
    format_elevation,
    json_dumps_sorted,
)

LOGGER = logging.getLogger("plan_route")


def _parse_waypoint(value: str) -> LonLat:
    parts = value.split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected LON,LAT but got {value!r}")
    try:
        return validate_lon_lat((float(parts[0]), float(parts[1])))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a route through waypoints and summarise it"
    )
    parser.add_argument(
        "--waypoint",
        dest="waypoints",
        action="append",
        type=_parse_waypoint,
        required=True,
        metavar="LON,LAT",
        help="Waypoint in path order (repeat for each waypoint)",
    )
    parser.add_argument(
        "--profile",
        choices=SUPPORTED_PROFILES,
        default=DEFAULT_PROFILE,
        help=f"Travel profile (default: {DEFAULT_PROFILE})",
    )
    parser.add_argument(
        "--no-elevation",
        action="store_true",
        help="Skip the elevation lookup",
    )
    parser.add_argument(
        "--no-snap",
        action="store_true",
        help="Leave interior waypoints where they were placed",
    )
    parser.add_argument(
        "--units",
        choices=("metric", "imperial"),
        default="metric" if USE_METRIC else "imperial",
        help="Display units (default from ROUTE_PLANNER_UNITS)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the route export as JSON instead of printing a summary",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def format_summary(snapshot: RouteSnapshot, use_metric: bool = True) -> str:
    stats = snapshot.stats
    lines = [
        f"Distance:   {format_distance(stats.distance_km, use_metric)}",
        f"Duration:   {format_duration(stats.duration_min)}",
        f"Waypoints:  {stats.waypoint_count}",
    ]
    if stats.elevation_gain_m is not None:
        lines.extend(
            [
                f"Gain:       {format_elevation(stats.elevation_gain_m, use_metric)}",
                f"Loss:       {format_elevation(stats.elevation_loss_m, use_metric)}",
                f"Max:        {format_elevation(stats.max_elevation_m, use_metric)}",
                f"Min:        {format_elevation(stats.min_elevation_m, use_metric)}",
            ]
        )
    counts = snapshot.surfaces.counts()
    surfaces = ", ".join(
        f"{surface.value}={counts[surface.value]}"
        for surface in SurfaceType
        if counts[surface.value]
    )
    lines.append(f"Surfaces:   {surfaces or '-'}")
    return "\n".join(lines)


async def plan(args: argparse.Namespace) -> RouteSnapshot:
    """Build a session, add every waypoint and wait for the final route."""

    notifications: List[Notification] = []
    directions = MapboxDirectionsProvider()
    elevation = None if args.no_elevation else OpenElevationProvider()
    config = RouteSessionConfig(
        profile=args.profile,
        snap_enabled=not args.no_snap,
        notifier=notifications.append,
    )
    session = RouteSession(directions, elevation, config)
    try:
        for coordinates in args.waypoints:
            session.handle_map_click(coordinates, BuildMode.BUILDING)
        snapshot = await session.settle()
    finally:
        session.close()
    for note in notifications:
        LOGGER.warning("%s: %s", note.title, note.detail or note.description)
    return snapshot


def _setup_logging(verbose: bool) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.verbose)
    if len(args.waypoints) < 2:
        LOGGER.error("At least two waypoints are required")
        return 2

    snapshot = asyncio.run(plan(args))
    if not snapshot.has_path:
        LOGGER.error("No route could be generated")
        return 1

    if args.output:
        payload = export_payload(snapshot.to_dict())
        args.output.write_text(json_dumps_sorted(payload, indent=2), encoding="utf-8")
        LOGGER.info("Route written to %s", args.output)
    else:
        print(format_summary(snapshot, use_metric=args.units == "metric"))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI glue
    sys.exit(main())
