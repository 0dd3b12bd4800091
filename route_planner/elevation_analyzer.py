"""Elevation profile sampling and aggregate statistics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .config import ELEVATION_SAMPLE_CAP
from .errors import MalformedResponseError
from .geo_math import cumulative_distances
from .models import ElevationPoint, ElevationSummary, LonLat
from .providers.base import ElevationProvider

LOGGER = logging.getLogger(__name__)

__all__ = [
    "ElevationAnalysis",
    "ElevationAnalyzer",
    "build_profile",
    "sample_path",
    "summarize_elevation",
]


@dataclass(frozen=True, slots=True)
class ElevationAnalysis:
    profile: Tuple[ElevationPoint, ...]
    summary: ElevationSummary

    @classmethod
    def empty(cls) -> "ElevationAnalysis":
        return cls(profile=(), summary=summarize_elevation(()))


def sample_path(path: Sequence[LonLat], cap: int = ELEVATION_SAMPLE_CAP) -> List[LonLat]:
    """Downsample to at most ``cap`` points with a fixed stride.

    ``stride = max(1, len(path) // cap)``; the strided points are truncated
    to ``cap`` when the division leaves a remainder. For ``cap < n < 2 * cap``
    the stride is 1, so only the first ``cap`` points are kept and the tail
    of the path is not sampled.
    """

    if cap < 1:
        raise ValueError("cap must be >= 1")
    stride = max(1, len(path) // cap)
    return list(path[::stride][:cap])


def build_profile(
    samples: Sequence[LonLat], elevations: Sequence[float]
) -> List[ElevationPoint]:
    """Pair each elevation with the cumulative distance along the samples."""

    if len(samples) != len(elevations):
        raise MalformedResponseError(
            f"Got {len(elevations)} elevations for {len(samples)} sampled points"
        )
    distances = cumulative_distances(samples)
    return [
        ElevationPoint(distance_m=dist, elevation_m=float(elev))
        for dist, elev in zip(distances, elevations)
    ]


def summarize_elevation(profile: Sequence[ElevationPoint]) -> ElevationSummary:
    """Compute gain, loss and extrema; an empty profile yields zeros."""

    if not profile:
        return ElevationSummary(gain_m=0.0, loss_m=0.0, max_m=0.0, min_m=0.0)
    values = np.asarray([pt.elevation_m for pt in profile], dtype=float)
    deltas = np.diff(values)
    return ElevationSummary(
        gain_m=float(deltas[deltas > 0].sum()),
        loss_m=float(np.abs(deltas[deltas < 0]).sum()),
        max_m=float(values.max()),
        min_m=float(values.min()),
    )


class ElevationAnalyzer:
    def __init__(
        self,
        provider: ElevationProvider,
        sample_cap: int = ELEVATION_SAMPLE_CAP,
        logger: logging.Logger | None = None,
    ) -> None:
        if sample_cap < 1:
            raise ValueError("sample_cap must be >= 1")
        self._provider = provider
        self.sample_cap = sample_cap
        self._log = logger or logging.getLogger(self.__class__.__name__)

    async def analyze(self, path: Sequence[LonLat]) -> ElevationAnalysis:
        """Sample ``path``, look up elevations and summarise them.

        Provider failures propagate as ``ProviderError`` subclasses.
        """

        samples = sample_path(path, self.sample_cap)
        if not samples:
            return ElevationAnalysis.empty()
        locations = [(lat, lon) for lon, lat in samples]
        elevations = await self._provider.lookup(locations)
        profile = build_profile(samples, elevations)
        summary = summarize_elevation(profile)
        self._log.debug(
            "Elevation profile: %d samples from %d points, gain=%.1f loss=%.1f",
            len(profile),
            len(path),
            summary.gain_m,
            summary.loss_m,
        )
        return ElevationAnalysis(profile=tuple(profile), summary=summary)
