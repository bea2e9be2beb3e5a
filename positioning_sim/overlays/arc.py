"""Great-circle arcs between geographic points.

Paths that cross the antimeridian are flagged, not split, and no care is
taken near the poles; renderers that need either must handle it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from ..config import ARC_SEGMENTS
from ..core.node import WGS84


@dataclass(frozen=True)
class ArcGeometry:
    """Ordered ``(lat°, lon°)`` polyline approximating a great circle."""

    points: tuple[tuple[float, float], ...]

    @property
    def crosses_antimeridian(self) -> bool:
        return _jumps_antimeridian([lon for _, lon in self.points])


def _jumps_antimeridian(longitudes: list[float]) -> bool:
    return any(abs(b - a) > 180.0 for a, b in zip(longitudes, longitudes[1:]))


def _unit_vector(p: WGS84) -> np.ndarray:
    cos_lat = math.cos(p.latitude)
    return np.array([
        cos_lat * math.cos(p.longitude),
        cos_lat * math.sin(p.longitude),
        math.sin(p.latitude),
    ])


def great_circle_arc(start: WGS84, end: WGS84, segments: int = ARC_SEGMENTS) -> ArcGeometry:
    """Discretize the shorter great-circle path from *start* to *end*.

    Returns ``segments + 1`` points including both endpoints.  Altitude is
    ignored.  Raises ``ValueError`` for antipodal endpoints, where the
    great circle is undefined.
    """
    if segments < 1:
        raise ValueError("segments must be positive")
    a, b = _unit_vector(start), _unit_vector(end)
    omega = math.acos(float(np.clip(np.dot(a, b), -1.0, 1.0)))
    sin_omega = math.sin(omega)
    if omega > 1e-12 and sin_omega < 1e-12:
        raise ValueError("antipodal endpoints have no unique great circle")

    points = []
    for f in np.linspace(0.0, 1.0, segments + 1):
        if omega <= 1e-12:
            v = a
        else:
            v = (math.sin((1.0 - f) * omega) * a + math.sin(f * omega) * b) / sin_omega
        lat = math.degrees(math.atan2(v[2], math.hypot(v[0], v[1])))
        lon = math.degrees(math.atan2(v[1], v[0]))
        points.append((lat, lon))
    return ArcGeometry(points=tuple(points))
