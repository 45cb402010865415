# SPDX-License-Identifier: Apache-2.0
"""WGS84 conversions between geodetic coordinates and Earth-fixed Cartesian."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

WGS84_A = 6378137.0
WGS84_B = 6356752.3142451793
_E2 = 1.0 - (WGS84_B * WGS84_B) / (WGS84_A * WGS84_A)
_RADII_SQUARED = np.array([WGS84_A * WGS84_A, WGS84_A * WGS84_A, WGS84_B * WGS84_B])


class Cartesian3(NamedTuple):
    x: float
    y: float
    z: float


class Cartographic(NamedTuple):
    """Geodetic position; longitude/latitude in radians, height in meters."""

    longitude: float
    latitude: float
    height: float


def cartesian_from_radians(longitude, latitude, height=0.0) -> np.ndarray:
    """Return Earth-fixed XYZ (meters) for radian inputs.

    Scalars yield shape ``(3,)``; arrays of length N yield ``(N, 3)``.
    """

    lon = np.asarray(longitude, dtype=float)
    lat = np.asarray(latitude, dtype=float)
    h = np.asarray(height, dtype=float)
    cos_lat = np.cos(lat)
    normal = np.stack([cos_lat * np.cos(lon), cos_lat * np.sin(lon), np.sin(lat)], axis=-1)
    normal = normal / np.linalg.norm(normal, axis=-1, keepdims=True)
    k = normal * _RADII_SQUARED
    gamma = np.sqrt(np.sum(normal * k, axis=-1, keepdims=True))
    return k / gamma + normal * h[..., np.newaxis]


def cartesian_from_degrees(longitude, latitude, height=0.0) -> np.ndarray:
    """Degree-input variant of :func:`cartesian_from_radians`."""

    return cartesian_from_radians(np.radians(longitude), np.radians(latitude), height)


def cartographic_from_cartesian(x: float, y: float, z: float, *, iterations: int = 8) -> Cartographic:
    """Invert a single Earth-fixed position to geodetic radians/meters."""

    p = float(np.hypot(x, y))
    lon = float(np.arctan2(y, x))
    if p == 0.0:
        lat = float(np.copysign(np.pi / 2.0, z))
        return Cartographic(lon, lat, abs(z) - WGS84_B)
    lat = float(np.arctan2(z, p * (1.0 - _E2)))
    height = 0.0
    for _ in range(iterations):
        sin_lat = np.sin(lat)
        n = WGS84_A / np.sqrt(1.0 - _E2 * sin_lat * sin_lat)
        height = float(p / np.cos(lat) - n)
        lat = float(np.arctan2(z, p * (1.0 - _E2 * n / (n + height))))
    return Cartographic(lon, lat, height)
