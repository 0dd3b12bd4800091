"""User-facing notifications for pipeline failures."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .errors import (
    MalformedResponseError,
    PolylineDecodeError,
    ProviderAuthError,
    ProviderHTTPError,
    ProviderNotFoundError,
    ProviderRateLimitError,
    ProviderTransportError,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notification:
    code: str
    title: str
    description: str
    action: Optional[str] = None
    recoverable: bool = False
    detail: Optional[str] = None


Notifier = Callable[[Notification], None]

_MESSAGES: Dict[str, tuple[str, str, Optional[str]]] = {
    "NETWORK_ERROR": (
        "Connection Problem",
        "We're having trouble reaching the routing service. Check your "
        "internet connection and try again.",
        "Retry",
    ),
    "TIMEOUT_ERROR": (
        "Request Timed Out",
        "The request is taking longer than expected. This might be due to "
        "slow internet or server issues.",
        "Try Again",
    ),
    "AUTH_EXPIRED": (
        "Map Configuration Error",
        "The routing service rejected our credentials. Try refreshing.",
        "Refresh",
    ),
    "API_RATE_LIMIT": (
        "Too Many Requests",
        "You're making requests too quickly. Wait a moment and try again.",
        "Wait and retry",
    ),
    "API_SERVER_ERROR": (
        "Server Error",
        "The routing service is experiencing issues. Try again later.",
        "Try again later",
    ),
    "API_BAD_REQUEST": (
        "Invalid Request",
        "There was a problem with the route request. Check your waypoints "
        "and try again.",
        "Check and retry",
    ),
    "ROUTE_GENERATION_FAILED": (
        "Route Generation Failed",
        "We couldn't generate a route between those points. Try adjusting "
        "your waypoints or check if the locations are accessible.",
        "Adjust waypoints",
    ),
    "ELEVATION_UNAVAILABLE": (
        "Elevation Unavailable",
        "The route was generated but elevation data could not be loaded.",
        "Try again later",
    ),
    "ROUTE_LOAD_ERROR": (
        "Load Failed",
        "We couldn't load that route. The recorded path looks corrupted.",
        "Try another route",
    ),
    "UNKNOWN_ERROR": (
        "Something Went Wrong",
        "An unexpected error occurred. Please try again.",
        "Try again",
    ),
}

RECOVERABLE_CODES = frozenset(
    {
        "NETWORK_ERROR",
        "TIMEOUT_ERROR",
        "API_RATE_LIMIT",
        "ROUTE_GENERATION_FAILED",
        "ELEVATION_UNAVAILABLE",
    }
)

__all__ = [
    "Notification",
    "Notifier",
    "error_code",
    "is_recoverable",
    "log_notifier",
    "notification_for_error",
]


def error_code(error: BaseException | str, *, stage: str = "route") -> str:
    """Map an exception (or message) to a notification code."""

    if isinstance(error, PolylineDecodeError):
        return "ROUTE_LOAD_ERROR"
    if isinstance(error, ProviderTransportError):
        text = str(error).lower()
        return "TIMEOUT_ERROR" if "timed out" in text or "timeout" in text else "NETWORK_ERROR"
    if isinstance(error, ProviderRateLimitError):
        return "API_RATE_LIMIT"
    if isinstance(error, ProviderAuthError):
        return "AUTH_EXPIRED"
    if stage == "elevation" and isinstance(
        error, (ProviderHTTPError, MalformedResponseError)
    ):
        return "ELEVATION_UNAVAILABLE"
    if isinstance(error, (MalformedResponseError, ProviderNotFoundError)):
        return "ROUTE_GENERATION_FAILED"
    if isinstance(error, ProviderHTTPError):
        status = error.status_code or 0
        if status >= 500:
            return "API_SERVER_ERROR"
        if 400 <= status < 500:
            return "API_BAD_REQUEST"
        return "ROUTE_GENERATION_FAILED"
    return _code_from_message(str(error))


def _code_from_message(message: str) -> str:
    text = message.lower()
    if "timeout" in text or "timed out" in text:
        return "TIMEOUT_ERROR"
    if "network" in text or "connection" in text:
        return "NETWORK_ERROR"
    if "429" in text or "rate limit" in text:
        return "API_RATE_LIMIT"
    if "401" in text or "403" in text or "unauthorized" in text:
        return "AUTH_EXPIRED"
    if "500" in text or "server error" in text:
        return "API_SERVER_ERROR"
    if "route" in text and "generat" in text:
        return "ROUTE_GENERATION_FAILED"
    return "UNKNOWN_ERROR"


def notification_for_error(
    error: BaseException | str, *, stage: str = "route"
) -> Notification:
    code = error_code(error, stage=stage)
    title, description, action = _MESSAGES.get(code, _MESSAGES["UNKNOWN_ERROR"])
    return Notification(
        code=code,
        title=title,
        description=description,
        action=action,
        recoverable=code in RECOVERABLE_CODES,
        detail=str(error) or None,
    )


def is_recoverable(error: BaseException | str) -> bool:
    return error_code(error) in RECOVERABLE_CODES


def log_notifier(notification: Notification) -> None:
    """Default notifier: write the notification to the log."""

    LOGGER.warning(
        "%s: %s (%s)",
        notification.title,
        notification.description,
        notification.detail or notification.code,
    )
