"""Shared HTTP response helpers for provider interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

import requests

from ..errors import (
    MalformedResponseError,
    ProviderAuthError,
    ProviderHTTPError,
    ProviderNotFoundError,
    ProviderRateLimitError,
)

LOGGER = logging.getLogger(__name__)

RequestsJSONDecodeError: Type[Exception]
if hasattr(requests.exceptions, "JSONDecodeError"):
    RequestsJSONDecodeError = requests.exceptions.JSONDecodeError
else:  # pragma: no cover - fallback for old requests versions
    RequestsJSONDecodeError = ValueError


__all__ = [
    "classify_response_status",
    "extract_error",
    "parse_json_body",
]


def classify_response_status(
    response: requests.Response, context: str
) -> Optional[ProviderHTTPError]:
    """Return the typed error for a non-success status, or ``None`` when ok."""

    status = response.status_code
    if 200 <= status < 300:
        return None
    detail = extract_error(response)

    def with_detail(message: str) -> str:
        return f"{message} | {detail}" if detail else message

    if status == 429:
        message = with_detail(f"{context} rate limited (429)")
        LOGGER.warning(message)
        return ProviderRateLimitError(message, status)

    if status in (401, 403):
        message = with_detail(f"{context} unauthorized ({status})")
        LOGGER.warning(message)
        return ProviderAuthError(message, status)

    if status == 404:
        message = with_detail(f"{context} not found (404)")
        LOGGER.info(message)
        return ProviderNotFoundError(message, status)

    if 500 <= status < 600:
        message = with_detail(f"{context} server error {status}")
        LOGGER.warning(message)
        return ProviderHTTPError(message, status)

    message = with_detail(f"{context} request failed (status {status})")
    LOGGER.error(message)
    return ProviderHTTPError(message, status)


def parse_json_body(response: requests.Response, context: str) -> Dict[str, Any]:
    """Return the JSON object body or raise ``MalformedResponseError``."""

    data = _safe_json(response)
    if not isinstance(data, dict):
        raise MalformedResponseError(f"{context} returned a non-JSON-object body")
    return data


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with provider error info (message + code) if present."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if data is None:
        return _extract_error_text(resp)
    if not isinstance(data, dict):
        return None
    parts = _collect_error_parts(data)
    return " | ".join(parts) if parts else None


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return resp.json()
    except (
        ValueError,
        RequestsJSONDecodeError,
    ) as exc:
        LOGGER.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    """Build error snippets from Mapbox / Open-Elevation error bodies."""

    parts: List[str] = []
    for key in ("message", "error"):
        value = data.get(key)
        if value:
            parts.append(str(value))
    code = data.get("code")
    if code and str(code).lower() != "ok":
        parts.append(f"code:{code}")
    return parts
