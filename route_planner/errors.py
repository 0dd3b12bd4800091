"""Central error types used across the application."""

from __future__ import annotations


class RoutePlannerError(RuntimeError):
    """Base error for route planning failures."""


class ProviderError(RoutePlannerError):
    """Base error for directions and elevation provider failures."""


class ProviderTransportError(ProviderError):
    """Raised when a provider cannot be reached (DNS, connection, timeout)."""


class ProviderHTTPError(ProviderError):
    """Raised when a provider answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderAuthError(ProviderHTTPError):
    """Raised when the provider rejects the access token (401/403)."""


class ProviderRateLimitError(ProviderHTTPError):
    """Raised when the provider reports too many requests (429)."""


class ProviderNotFoundError(ProviderHTTPError):
    """Raised when the provider endpoint or profile does not exist (404)."""


class MalformedResponseError(ProviderError):
    """Raised when a provider payload is empty or missing required fields."""


class PolylineDecodeError(RoutePlannerError, ValueError):
    """Raised when an encoded polyline is truncated or contains invalid data."""


class WaypointNotFoundError(RoutePlannerError, LookupError):
    """Raised when a waypoint id is not present in the store."""


__all__ = [
    "RoutePlannerError",
    "ProviderError",
    "ProviderTransportError",
    "ProviderHTTPError",
    "ProviderAuthError",
    "ProviderRateLimitError",
    "ProviderNotFoundError",
    "MalformedResponseError",
    "PolylineDecodeError",
    "WaypointNotFoundError",
]
