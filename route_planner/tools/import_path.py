#!/usr/bin/env python3
"""Decode a recorded encoded polyline and print its geometry as JSON.

Usage examples:

    python -m route_planner.tools.import_path "_p~iF~ps|U_ulLnnqC_mqNvxq`@"

    # Read the polyline from stdin and keep only the summary fields
    echo "_p~iF~ps|U_ulLnnqC" | python -m route_planner.tools.import_path --summary
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Sequence

from ..errors import PolylineDecodeError
from ..models import ImportedPath
from ..polyline_codec import import_path
from ..utils import json_dumps_sorted

LOGGER = logging.getLogger("import_path")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Decode an encoded polyline into (lon, lat) coordinates"
    )
    parser.add_argument(
        "polyline",
        nargs="?",
        help="Encoded polyline (read from stdin when omitted)",
    )
    parser.add_argument("--name", help="Optional label attached to the output")
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Omit the coordinate list from the output",
    )
    return parser.parse_args(argv)


def imported_to_dict(path: ImportedPath, include_coordinates: bool = True) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": path.name,
        "points": len(path.coordinates),
        "distance_m": round(path.distance_m, 1),
        "centroid": list(path.centroid),
        "bounds": {
            "south_west": list(path.bounds.south_west),
            "north_east": list(path.bounds.north_east),
        },
    }
    if include_coordinates:
        payload["coordinates"] = [list(pt) for pt in path.coordinates]
    return payload


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    encoded = args.polyline if args.polyline is not None else sys.stdin.read()
    encoded = encoded.strip()
    try:
        path = import_path(encoded, name=args.name)
    except PolylineDecodeError as exc:
        LOGGER.error("Could not decode polyline: %s", exc)
        return 1
    print(json_dumps_sorted(imported_to_dict(path, not args.summary), indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI glue
    sys.exit(main())
