"""Global pytest fixtures & helpers.

Adds project root to path and provides fake providers plus route payload
factories shared by the pipeline tests.
"""
from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from route_planner.providers.base import DirectionsProvider, ElevationProvider


# --- Factory helpers -------------------------------------------------
def line(coords):
    return {"type": "LineString", "coordinates": [list(c) for c in coords]}


def make_step(coords, name="", ref=None, modifier=None, classes=None, distance=100.0):
    step: Dict[str, Any] = {
        "geometry": line(coords),
        "name": name,
        "distance": distance,
        "duration": distance / 5.0,
        "maneuver": {"type": "turn"},
    }
    if ref:
        step["ref"] = ref
    if modifier:
        step["maneuver"]["modifier"] = modifier
    if classes is not None:
        step["intersections"] = [{"classes": list(classes)}]
    return step


def make_route(coords, distance=1234.0, duration=600.0, steps=None):
    route: Dict[str, Any] = {
        "geometry": line(coords),
        "distance": distance,
        "duration": duration,
    }
    if steps is not None:
        route["legs"] = [{"steps": steps}]
    else:
        route["legs"] = [{}]
    return route


def path_through(waypoints):
    """Straight path visiting each waypoint exactly (one vertex per waypoint)."""

    return make_route(
        waypoints,
        steps=[make_step(waypoints, name="Main Street")],
    )


class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code=200, data=None, headers=None, url="https://fake"):
        self.status_code = status_code
        self._data = data if data is not None else {}
        self.headers = headers or {}
        self.url = url

    def json(self):
        if isinstance(self._data, str):
            raise ValueError("not json")
        return self._data

    @property
    def text(self):
        if isinstance(self._data, str):
            return self._data
        try:
            return json.dumps(self._data)
        except Exception:
            return str(self._data)


class FakeDirections(DirectionsProvider):
    """Scripted directions provider.

    ``responder`` receives the requested coordinates and returns a route
    dict or raises. When ``gates`` holds an event for a call index, that
    call waits on it before answering, which lets tests reorder responses.
    """

    name = "fake-directions"

    def __init__(self, responder: Optional[Callable[[List[Any]], Any]] = None):
        self.responder = responder or (lambda coords: path_through(coords))
        self.calls: List[List[Any]] = []
        self.gates: Dict[int, asyncio.Event] = {}

    async def fetch_route(self, coordinates: Sequence[Any], profile: str):
        index = len(self.calls)
        self.calls.append(list(coordinates))
        gate = self.gates.get(index)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        result = self.responder(list(coordinates))
        if isinstance(result, BaseException):
            raise result
        return result


class FakeElevation(ElevationProvider):
    name = "fake-elevation"

    def __init__(self, values=None, error: Optional[BaseException] = None):
        self.values = values
        self.error = error
        self.calls: List[List[Any]] = []

    async def lookup(self, locations):
        self.calls.append(list(locations))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.values is not None:
            return list(self.values)[: len(locations)]
        return [100.0 + i for i in range(len(locations))]


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def fake_directions():
    return FakeDirections()


@pytest.fixture
def fake_elevation():
    return FakeElevation()


@pytest.fixture
def notifications():
    return []
