"""Mapbox Directions API client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Sequence

import requests
from requests import Session

from ..config import MAPBOX_ACCESS_TOKEN, MAPBOX_BASE_URL, REQUEST_TIMEOUT
from ..errors import MalformedResponseError, ProviderAuthError, ProviderTransportError
from ..models import LonLat
from .base import DirectionsProvider
from .http_session import get_default_session
from .response_handling import classify_response_status, parse_json_body

LOGGER = logging.getLogger(__name__)

# Request parameters needed for per-step geometry and classification hints.
DIRECTIONS_PARAMS: Dict[str, str] = {
    "steps": "true",
    "geometries": "geojson",
    "overview": "full",
}

__all__ = ["MapboxDirectionsProvider", "DIRECTIONS_PARAMS"]


class MapboxDirectionsProvider(DirectionsProvider):
    """Fetches routes from ``/directions/v5/mapbox/{profile}/{coordinates}``."""

    name = "mapbox"

    def __init__(
        self,
        access_token: str | None = None,
        *,
        base_url: str = MAPBOX_BASE_URL,
        session: Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._token = access_token if access_token is not None else MAPBOX_ACCESS_TOKEN
        self._base_url = base_url.rstrip("/")
        self._session = session or get_default_session()
        self._timeout = timeout

    def build_url(self, coordinates: Sequence[LonLat], profile: str) -> str:
        path = ";".join(f"{lon},{lat}" for lon, lat in coordinates)
        return f"{self._base_url}/directions/v5/mapbox/{profile}/{path}"

    async def fetch_route(
        self, coordinates: Sequence[LonLat], profile: str
    ) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._fetch_route_sync, list(coordinates), profile)

    def _fetch_route_sync(
        self, coordinates: Sequence[LonLat], profile: str
    ) -> Mapping[str, Any]:
        if not self._token:
            raise ProviderAuthError("Mapbox access token is not configured")
        url = self.build_url(coordinates, profile)
        params = dict(DIRECTIONS_PARAMS, access_token=self._token)
        context = f"Mapbox directions ({profile}, {len(coordinates)} waypoints)"
        LOGGER.debug("GET %s", url)
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise ProviderTransportError(f"{context} failed: {exc}") from exc

        error = classify_response_status(response, context)
        if error is not None:
            raise error

        data = parse_json_body(response, context)
        code = data.get("code")
        if code is not None and code != "Ok":
            message = data.get("message") or "no route returned"
            raise MalformedResponseError(f"{context} returned {code}: {message}")
        routes = data.get("routes")
        if not isinstance(routes, list) or not routes:
            raise MalformedResponseError(f"{context} returned no routes")
        route = routes[0]
        if not isinstance(route, dict):
            raise MalformedResponseError(f"{context} returned a malformed route")
        return route
