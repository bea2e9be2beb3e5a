"""WGS84 ellipsoid conversions between geographic and ECEF coordinates."""

from __future__ import annotations

import math

import numpy as np

from .node import WGS84

SEMI_MAJOR_AXIS = 6_378_137.0
FLATTENING = 1.0 / 298.257223563
ECCENTRICITY_SQ = FLATTENING * (2.0 - FLATTENING)
SEMI_MINOR_AXIS = SEMI_MAJOR_AXIS * (1.0 - FLATTENING)

# Mean radius used for local tangent-plane offsets on render primitives.
MEAN_EARTH_RADIUS = 6_371_008.8


def wgs84_to_ecef(position: WGS84) -> np.ndarray:
    """Geographic (radians, metres) to ECEF (metres)."""
    lat, lon, alt = position.latitude, position.longitude, position.altitude
    sin_lat = math.sin(lat)
    n = SEMI_MAJOR_AXIS / math.sqrt(1.0 - ECCENTRICITY_SQ * sin_lat ** 2)
    return np.array([
        (n + alt) * math.cos(lat) * math.cos(lon),
        (n + alt) * math.cos(lat) * math.sin(lon),
        (n * (1.0 - ECCENTRICITY_SQ) + alt) * sin_lat,
    ])


def ecef_to_wgs84(xyz: np.ndarray) -> WGS84:
    """ECEF (metres) to geographic using Bowring's closed-form latitude."""
    x, y, z = (float(v) for v in xyz)
    p = math.hypot(x, y)
    lon = math.atan2(y, x)
    ep_sq = (SEMI_MAJOR_AXIS ** 2 - SEMI_MINOR_AXIS ** 2) / SEMI_MINOR_AXIS ** 2
    theta = math.atan2(z * SEMI_MAJOR_AXIS, p * SEMI_MINOR_AXIS)
    lat = math.atan2(
        z + ep_sq * SEMI_MINOR_AXIS * math.sin(theta) ** 3,
        p - ECCENTRICITY_SQ * SEMI_MAJOR_AXIS * math.cos(theta) ** 3,
    )
    sin_lat = math.sin(lat)
    n = SEMI_MAJOR_AXIS / math.sqrt(1.0 - ECCENTRICITY_SQ * sin_lat ** 2)
    if abs(math.cos(lat)) > 1e-12:
        alt = p / math.cos(lat) - n
    else:
        alt = abs(z) - SEMI_MINOR_AXIS
    return WGS84(latitude=lat, longitude=lon, altitude=alt)


def en_offset_to_degrees(lat_deg: float, east_m: float, north_m: float) -> tuple[float, float]:
    """Convert a small east/north offset (m) at *lat_deg* to ``(dlat°, dlon°)``.

    Spherical tangent-plane approximation; diverges near the poles.
    """
    dlat = math.degrees(north_m / MEAN_EARTH_RADIUS)
    cos_lat = math.cos(math.radians(lat_deg))
    dlon = math.degrees(east_m / (MEAN_EARTH_RADIUS * cos_lat)) if cos_lat > 1e-12 else 0.0
    return dlat, dlon
