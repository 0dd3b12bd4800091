import logging

import pytest

from route_planner.errors import (
    MalformedResponseError,
    PolylineDecodeError,
    ProviderAuthError,
    ProviderHTTPError,
    ProviderNotFoundError,
    ProviderRateLimitError,
    ProviderTransportError,
)
from route_planner.notifications import (
    error_code,
    is_recoverable,
    log_notifier,
    notification_for_error,
)


@pytest.mark.parametrize(
    "error, stage, expected",
    [
        (ProviderTransportError("connection refused"), "route", "NETWORK_ERROR"),
        (ProviderTransportError("read timed out"), "route", "TIMEOUT_ERROR"),
        (ProviderRateLimitError("slow", 429), "route", "API_RATE_LIMIT"),
        (ProviderAuthError("denied", 401), "elevation", "AUTH_EXPIRED"),
        (ProviderHTTPError("oops", 502), "route", "API_SERVER_ERROR"),
        (ProviderHTTPError("bad", 422), "route", "API_BAD_REQUEST"),
        (ProviderHTTPError("oops", 502), "elevation", "ELEVATION_UNAVAILABLE"),
        (MalformedResponseError("no routes"), "route", "ROUTE_GENERATION_FAILED"),
        (MalformedResponseError("no results"), "elevation", "ELEVATION_UNAVAILABLE"),
        (ProviderNotFoundError("missing", 404), "route", "ROUTE_GENERATION_FAILED"),
        (PolylineDecodeError("truncated"), "route", "ROUTE_LOAD_ERROR"),
        (RuntimeError("surprise"), "route", "UNKNOWN_ERROR"),
        ("Network request failed", "route", "NETWORK_ERROR"),
        ("HTTP 500 from upstream", "route", "API_SERVER_ERROR"),
    ],
)
def test_error_code_mapping(error, stage, expected):
    assert error_code(error, stage=stage) == expected


def test_notification_carries_copy_and_detail():
    note = notification_for_error(ProviderRateLimitError("Mapbox rate limited (429)", 429))
    assert note.code == "API_RATE_LIMIT"
    assert note.title == "Too Many Requests"
    assert note.action == "Wait and retry"
    assert note.recoverable
    assert note.detail == "Mapbox rate limited (429)"


def test_recoverability():
    assert is_recoverable(ProviderTransportError("connection reset"))
    assert not is_recoverable(ProviderAuthError("denied", 403))
    assert not is_recoverable(PolylineDecodeError("bad"))


def test_log_notifier_writes_warning(caplog):
    with caplog.at_level(logging.WARNING):
        log_notifier(notification_for_error(MalformedResponseError("no routes")))
    assert "Route Generation Failed" in caplog.text
    assert "no routes" in caplog.text
