import asyncio
import json
import math
from datetime import datetime, timezone

import pytest

from conftest import FakeDirections, FakeElevation, make_route, path_through
from route_planner.errors import (
    PolylineDecodeError,
    ProviderHTTPError,
    ProviderTransportError,
)
from route_planner.geo_math import EARTH_RADIUS_M
from route_planner.models import BuildMode, RouteStats
from route_planner.route_session import RouteSession, RouteSessionConfig

METRES_PER_DEGREE = math.pi / 180 * EARTH_RADIUS_M
A = (0.0, 0.0)
B = (0.01, 0.0)
C = (0.02, 0.0)


async def spin(predicate, limit=200):
    for _ in range(limit):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def make_session(directions=None, elevation=None, notifications=None, **config):
    config.setdefault("notifier", (notifications if notifications is not None else []).append)
    return RouteSession(
        directions or FakeDirections(),
        elevation,
        RouteSessionConfig(**config),
    )


def test_single_waypoint_yields_empty_state(fake_directions):
    async def scenario():
        session = make_session(fake_directions)
        session.handle_map_click(A, BuildMode.BUILDING)
        return session, await session.settle()

    session, snapshot = asyncio.run(scenario())
    assert snapshot.stats == RouteStats(distance_km=0.0, duration_min=0, waypoint_count=0)
    assert snapshot.geometry == ()
    assert snapshot.elevation_profile == ()
    assert len(snapshot.waypoints) == 1
    assert fake_directions.calls == []


def test_two_waypoints_generate_route_with_stats(notifications):
    directions = FakeDirections(
        lambda coords: make_route(
            [A, (0.001, 0.0), (0.002, 0.0), B], distance=1234.0, duration=630.0
        )
    )
    elevation = FakeElevation(values=[100, 110, 105, 120])

    async def scenario():
        session = make_session(directions, elevation, notifications)
        session.handle_map_click(A, BuildMode.BUILDING)
        session.handle_map_click(B, BuildMode.BUILDING)
        return await session.settle()

    snapshot = asyncio.run(scenario())
    assert snapshot.has_path
    assert snapshot.stats.distance_km == 1.23
    assert snapshot.stats.duration_min == 10
    assert snapshot.stats.waypoint_count == 2
    assert snapshot.stats.elevation_gain_m == 25
    assert snapshot.stats.elevation_loss_m == 5
    assert snapshot.stats.max_elevation_m == 120
    assert snapshot.stats.min_elevation_m == 100
    assert len(snapshot.elevation_profile) == 4
    assert snapshot.surfaces.counts()["default"] == 1
    assert snapshot.metadata == {"profile": "cycling", "elevation_available": True}
    assert notifications == []


def test_stale_response_never_overwrites_newer_route():
    directions = FakeDirections()
    gate = asyncio.Event()
    directions.gates[0] = gate

    async def scenario():
        session = make_session(directions)
        session.store.add(A)
        session.store.add(B)  # slow request for [A, B]
        session.store.add(C)  # fast request for [A, B, C]
        await spin(lambda: session.snapshot.has_path)
        newer = session.snapshot
        gate.set()
        await session.settle()
        return newer, session.snapshot

    newer, final = asyncio.run(scenario())
    assert newer.geometry == (A, B, C)
    assert final.geometry == (A, B, C)
    assert final.generation_id == newer.generation_id
    assert final.stats.waypoint_count == 3
    assert len(directions.calls) == 2


def test_dropping_below_two_waypoints_discards_in_flight_request():
    directions = FakeDirections()
    gate = asyncio.Event()
    directions.gates[0] = gate

    async def scenario():
        session = make_session(directions)
        first = session.store.add(A)
        session.store.add(B)
        await asyncio.sleep(0)
        session.store.remove(first.id)
        gate.set()
        return await session.settle()

    snapshot = asyncio.run(scenario())
    assert not snapshot.has_path
    assert snapshot.stats == RouteStats.empty()
    assert len(snapshot.waypoints) == 1


def test_snap_write_does_not_trigger_regeneration():
    near_b = (B[0], B[1] + 40 / METRES_PER_DEGREE)

    def responder(coords):
        return make_route([coords[0], B, coords[-1]])

    directions = FakeDirections(responder)

    async def scenario():
        session = make_session(directions)
        for point in (A, near_b, C):
            session.handle_map_click(point, BuildMode.BUILDING)
        snapshot = await session.settle()
        return session, snapshot

    session, snapshot = asyncio.run(scenario())
    assert session.waypoints[1].coordinates == B
    assert session.waypoints[0].coordinates == A
    assert session.waypoints[2].coordinates == C
    assert snapshot.waypoints[1].coordinates == B
    # one request for [A, B'] and one for [A, B', C]; none after the snap
    assert len(directions.calls) == 2
    assert session.pending == 0


def test_snapping_can_be_disabled():
    near_b = (B[0], B[1] + 40 / METRES_PER_DEGREE)
    directions = FakeDirections(lambda coords: make_route([coords[0], B, coords[-1]]))

    async def scenario():
        session = make_session(directions, snap_enabled=False)
        for point in (A, near_b, C):
            session.store.add(point)
        await session.settle()
        return session

    session = asyncio.run(scenario())
    assert session.waypoints[1].coordinates == near_b


def test_provider_failure_keeps_previous_route(notifications):
    state = {"fail": False}

    def responder(coords):
        if state["fail"]:
            return ProviderTransportError("connection refused")
        return path_through(coords)

    directions = FakeDirections(responder)

    async def scenario():
        session = make_session(directions, notifications=notifications)
        session.store.add(A)
        second = session.store.add(B)
        before = await session.settle()
        state["fail"] = True
        session.store.move(second.id, C)
        after = await session.settle()
        return before, after

    before, after = asyncio.run(scenario())
    assert before.has_path
    assert after.geometry == before.geometry
    assert after.stats == before.stats
    assert after.generation_id == before.generation_id
    assert [n.code for n in notifications] == ["NETWORK_ERROR"]
    assert notifications[0].recoverable


def test_elevation_failure_commits_path_without_elevation(notifications):
    elevation = FakeElevation(error=ProviderHTTPError("server error 502", 502))

    async def scenario():
        session = make_session(FakeDirections(), elevation, notifications)
        session.store.add(A)
        session.store.add(B)
        return await session.settle()

    snapshot = asyncio.run(scenario())
    assert snapshot.has_path
    assert snapshot.stats.elevation_gain_m is None
    assert snapshot.elevation_profile == ()
    assert snapshot.metadata["elevation_available"] is False
    assert [n.code for n in notifications] == ["ELEVATION_UNAVAILABLE"]


def test_map_click_outside_building_mode_is_ignored(fake_directions):
    async def scenario():
        session = make_session(fake_directions)
        assert session.handle_map_click(A, BuildMode.IDLE) is None
        added = session.handle_map_click(A, BuildMode.BUILDING)
        return session, added

    session, added = asyncio.run(scenario())
    assert [wp.id for wp in session.waypoints] == [added.id]


def test_edits_outside_event_loop_are_rejected(fake_directions):
    session = make_session(fake_directions)
    session.store.add(A)
    with pytest.raises(RuntimeError):
        session.store.add(B)
    assert len(session.store) == 1
    assert session.snapshot.waypoints == session.store.waypoints


def test_regenerate_runs_inline(fake_directions):
    async def scenario():
        session = make_session(fake_directions)
        session.store.add(A)
        session.store.add(B)
        await session.settle()
        return await session.regenerate()

    snapshot = asyncio.run(scenario())
    assert snapshot.has_path
    assert len(fake_directions.calls) == 2


def test_import_path_failure_notifies_and_raises(fake_directions, notifications):
    session = make_session(fake_directions, notifications=notifications)
    with pytest.raises(PolylineDecodeError):
        session.import_path("_p~iF~ps|U_ul", name="broken")
    assert [n.code for n in notifications] == ["ROUTE_LOAD_ERROR"]
    imported = session.import_path("_p~iF~ps|U_ulLnnqC_mqNvxq`@")
    assert len(imported.coordinates) == 3


def test_export_json_contains_stats_and_timestamp(fake_directions):
    async def scenario():
        session = make_session(fake_directions)
        session.store.add(A)
        session.store.add(B)
        await session.settle()
        return session.export_json(now=datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc))

    payload = json.loads(asyncio.run(scenario()))
    assert payload["timestamp"] == "2026-01-02T03:04:00+00:00"
    assert payload["stats"]["distance"] == 1.23
    assert payload["stats"]["waypointCount"] == 2
    assert payload["route"]["coordinates"] == [[0.0, 0.0], [0.01, 0.0]]
    assert [wp["id"] for wp in payload["waypoints"]] == ["wp-1", "wp-2"]
    assert payload["surfaces"]["paved"] == 1


def test_close_stops_listening(fake_directions):
    async def scenario():
        session = make_session(fake_directions)
        session.close()
        session.store.add(A)
        session.store.add(B)
        await asyncio.sleep(0)
        return session

    session = asyncio.run(scenario())
    assert fake_directions.calls == []
    assert session.pending == 0


def test_edit_rejected_outside_loop_leaves_store_untouched(fake_directions):
    session = make_session(fake_directions)
    first = session.store.add(A)

    async def add_second():
        return session.store.add(B)

    second_id = asyncio.run(add_second()).id
    with pytest.raises(RuntimeError):
        session.store.move(second_id, C)
    assert session.store.get(second_id).coordinates == B
    session.store.remove(first.id)
    assert len(session.store) == 1
    session.close()
    session.store.add(C)
    assert len(session.store) == 2


def test_malformed_step_is_notified_and_keeps_previous_route(notifications):
    state = {"bad": False}

    def responder(coords):
        route = path_through(coords)
        if state["bad"]:
            route["legs"][0]["steps"][0]["maneuver"]["modifier"] = 7
        return route

    async def scenario():
        session = make_session(FakeDirections(responder), notifications=notifications)
        session.store.add(A)
        second = session.store.add(B)
        before = await session.settle()
        state["bad"] = True
        session.store.move(second.id, C)
        after = await session.settle()
        return before, after

    before, after = asyncio.run(scenario())
    assert before.has_path
    assert after.geometry == before.geometry
    assert [n.code for n in notifications] == ["ROUTE_GENERATION_FAILED"]
