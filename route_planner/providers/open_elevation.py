"""Open-Elevation compatible lookup client."""

from __future__ import annotations

import asyncio
import logging
from threading import RLock
from typing import Any, List, Sequence, Tuple

import requests
from cachetools import TTLCache
from requests import Session

from ..config import (
    ELEVATION_CACHE_SIZE,
    ELEVATION_CACHE_TTL_SECONDS,
    OPEN_ELEVATION_URL,
    REQUEST_TIMEOUT,
)
from ..errors import MalformedResponseError, ProviderTransportError
from ..models import LatLon
from .base import ElevationProvider
from .http_session import get_default_session
from .response_handling import classify_response_status, parse_json_body

LOGGER = logging.getLogger(__name__)

_LocationKey = Tuple[LatLon, ...]

__all__ = ["OpenElevationProvider"]


class OpenElevationProvider(ElevationProvider):
    """POSTs ``{"locations": [{latitude, longitude}, ...]}`` to a lookup endpoint.

    Results are cached (TTL + LRU) by the exact location list, so redrawing
    an unchanged path does not query the service again.
    """

    name = "open-elevation"

    def __init__(
        self,
        url: str = OPEN_ELEVATION_URL,
        *,
        session: Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
        cache_size: int = ELEVATION_CACHE_SIZE,
        cache_ttl: float = ELEVATION_CACHE_TTL_SECONDS,
    ) -> None:
        self._url = url
        self._session = session or get_default_session()
        self._timeout = timeout
        self._cache: TTLCache[_LocationKey, List[float]] = TTLCache(
            maxsize=max(1, cache_size), ttl=max(1, cache_ttl)
        )
        self._cache_lock = RLock()

    async def lookup(self, locations: Sequence[LatLon]) -> List[float]:
        if not locations:
            return []
        key: _LocationKey = tuple((float(lat), float(lon)) for lat, lon in locations)
        with self._cache_lock:
            cached = self._cache.get(key)
        if cached is not None:
            LOGGER.debug("Elevation cache hit for %d locations", len(key))
            return list(cached)
        elevations = await asyncio.to_thread(self._lookup_sync, key)
        with self._cache_lock:
            self._cache[key] = elevations
        return list(elevations)

    def _lookup_sync(self, locations: _LocationKey) -> List[float]:
        context = f"Elevation lookup ({len(locations)} locations)"
        body = {
            "locations": [
                {"latitude": lat, "longitude": lon} for lat, lon in locations
            ]
        }
        try:
            response = self._session.post(self._url, json=body, timeout=self._timeout)
        except requests.RequestException as exc:
            raise ProviderTransportError(f"{context} failed: {exc}") from exc

        error = classify_response_status(response, context)
        if error is not None:
            raise error

        data = parse_json_body(response, context)
        results = data.get("results")
        if not isinstance(results, list):
            raise MalformedResponseError(f"{context} returned no results")
        if len(results) != len(locations):
            raise MalformedResponseError(
                f"{context} returned {len(results)} results for {len(locations)} locations"
            )
        return [_parse_elevation(item, context) for item in results]


def _parse_elevation(item: Any, context: str) -> float:
    if not isinstance(item, dict) or item.get("elevation") is None:
        raise MalformedResponseError(f"{context} result is missing 'elevation'")
    try:
        return float(item["elevation"])
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"{context} returned a non-numeric elevation") from exc
