import json

import pytest

from conftest import FakeDirections, FakeElevation, make_route
from route_planner.tools import import_path as import_tool
from route_planner.tools import plan_route

REFERENCE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


@pytest.fixture
def fake_providers(monkeypatch):
    directions = FakeDirections(
        lambda coords: make_route(
            [coords[0], (1.005, 51.0), coords[-1]], distance=15000.0, duration=3900.0
        )
    )
    elevation = FakeElevation(values=[10.0, 25.0, 20.0])
    monkeypatch.setattr(plan_route, "MapboxDirectionsProvider", lambda: directions)
    monkeypatch.setattr(plan_route, "OpenElevationProvider", lambda: elevation)
    return directions, elevation


def test_plan_route_prints_summary(fake_providers, capsys):
    code = plan_route.main(["--waypoint", "1.0,51.0", "--waypoint", "1.01,51.0"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Distance:   15.0 km" in out
    assert "Duration:   1h 05m" in out
    assert "Gain:       15 m" in out
    assert "Surfaces:   default=1" in out


def test_plan_route_without_elevation_in_imperial(fake_providers, capsys):
    _, elevation = fake_providers
    code = plan_route.main(
        ["--waypoint=1.0,51.0", "--waypoint=1.01,51.0", "--no-elevation", "--units", "imperial"]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "9.3 mi" in out
    assert "Gain" not in out
    assert elevation.calls == []


def test_plan_route_writes_json_export(fake_providers, tmp_path):
    target = tmp_path / "route.json"
    code = plan_route.main(
        ["--waypoint", "1.0,51.0", "--waypoint", "1.01,51.0", "--output", str(target)]
    )
    assert code == 0
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["stats"]["distance"] == 15.0
    assert payload["stats"]["elevationGain"] == 15.0
    assert "timestamp" in payload


def test_plan_route_needs_two_waypoints(fake_providers):
    assert plan_route.main(["--waypoint", "1.0,51.0"]) == 2


def test_plan_route_reports_failed_generation(monkeypatch):
    from route_planner.errors import ProviderTransportError

    directions = FakeDirections(lambda coords: ProviderTransportError("offline"))
    monkeypatch.setattr(plan_route, "MapboxDirectionsProvider", lambda: directions)
    assert plan_route.main(["--waypoint", "1,51", "--waypoint", "2,51", "--no-elevation"]) == 1


def test_plan_route_rejects_bad_waypoint():
    with pytest.raises(SystemExit):
        plan_route.parse_args(["--waypoint", "1.0;51.0"])
    with pytest.raises(SystemExit):
        plan_route.parse_args(["--waypoint", "1.0,95.0"])


def test_import_tool_prints_json(capsys):
    assert import_tool.main([REFERENCE, "--name", "Sierra"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["name"] == "Sierra"
    assert payload["points"] == 3
    assert payload["coordinates"][0] == pytest.approx([-120.2, 38.5])


def test_import_tool_reads_stdin_and_summarises(monkeypatch, capsys):
    import io

    monkeypatch.setattr("sys.stdin", io.StringIO(REFERENCE + "\n"))
    assert import_tool.main(["--summary"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert "coordinates" not in payload
    assert payload["points"] == 3


def test_import_tool_rejects_truncated_input(capsys, caplog):
    assert import_tool.main(["_p~iF~ps|U_ul"]) == 1
    assert "Could not decode polyline" in caplog.text


def test_plan_route_units_default_follows_config(monkeypatch):
    monkeypatch.setattr(plan_route, "USE_METRIC", False)
    args = plan_route.parse_args(["--waypoint", "1,51", "--waypoint", "2,51"])
    assert args.units == "imperial"
