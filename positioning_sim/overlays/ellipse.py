"""1σ confidence ellipses from east/north axis-variance pairs."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..config import ELLIPSE_POINTS
from ..core.geodesy import en_offset_to_degrees
from ..core.node import WGS84, Node


@dataclass(frozen=True)
class EllipseGeometry:
    """Ellipse on the map.

    ``center`` is ``(lat°, lon°)``; ``radii`` are the semi-major and
    semi-minor lengths in metres; ``tilt`` is the major axis direction in
    degrees, counter-clockwise from east.
    """

    center: tuple[float, float]
    radii: tuple[float, float]
    tilt: float

    def outline(self, n_points: int = ELLIPSE_POINTS) -> list[tuple[float, float]]:
        """Sample the boundary as closed ``(lat°, lon°)`` points.

        Offsets are laid out in the local east/north tangent plane, which
        is only accurate while the radii are small against the Earth.
        """
        if n_points < 3:
            raise ValueError("an outline needs at least 3 points")
        a, b = self.radii
        tilt = math.radians(self.tilt)
        cos_t, sin_t = math.cos(tilt), math.sin(tilt)
        lat0, lon0 = self.center
        points = []
        for t in np.linspace(0.0, 2.0 * math.pi, n_points, endpoint=False):
            u, v = a * math.cos(t), b * math.sin(t)
            east = u * cos_t - v * sin_t
            north = u * sin_t + v * cos_t
            dlat, dlon = en_offset_to_degrees(lat0, east, north)
            points.append((lat0 + dlat, lon0 + dlon))
        points.append(points[0])
        return points


def ellipse_from_axes(
    center: WGS84,
    major_axis: Sequence[float],
    major_variance: float,
    minor_variance: float,
) -> EllipseGeometry:
    """Build the 1-standard-deviation ellipse for an axis/variance pair."""
    if major_variance < 0 or minor_variance < 0:
        raise ValueError("variances must be non-negative")
    radii = (math.sqrt(major_variance), math.sqrt(minor_variance))
    tilt = math.degrees(math.atan2(major_axis[1], major_axis[0]))
    return EllipseGeometry(center=center.to_degrees(), radii=radii, tilt=tilt)


def confidence_ellipse(node: Node) -> EllipseGeometry:
    """1σ ellipse around the node's Kalman estimate."""
    return ellipse_from_axes(
        node.kf_estimated_wgs84,
        node.kf_en_variance_semimajor_axis,
        node.kf_en_variance_semimajor_axis_length,
        node.kf_en_variance_semiminor_axis_length,
    )
