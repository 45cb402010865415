# SPDX-License-Identifier: Apache-2.0
"""Compact camera view strings: ``lon,lat[,height,heading,pitch,roll]``.

Longitude, latitude, heading, pitch and roll are in degrees, height in
meters. Missing orientation leaves the engine default (looking straight
down).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from .config import DEFAULT_VIEW_HEIGHT
from .engine import Camera, Orientation
from .geodesy import Cartesian3, cartesian_from_degrees

_SEPARATORS = re.compile(r"[ ,]+")
_DECIMAL = re.compile(r"[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")
_PREFIXED = re.compile(r"0([xXoObB])([0-9a-fA-F]+)")
_RADIX = {"x": 16, "o": 8, "b": 2}


@dataclass(frozen=True, slots=True)
class CameraPose:
    """Camera position in degrees/meters; orientation angles in radians."""

    longitude: float
    latitude: float
    height: float = DEFAULT_VIEW_HEIGHT
    heading: float | None = None
    pitch: float | None = None
    roll: float | None = None

    @property
    def destination(self) -> Cartesian3:
        return Cartesian3(*(float(v) for v in cartesian_from_degrees(self.longitude, self.latitude, self.height)))

    @property
    def orientation(self) -> Orientation:
        return Orientation(heading=self.heading, pitch=self.pitch, roll=self.roll)


def parse_number(token: str) -> float | None:
    """Numeric value of ``token`` the way a JS unary ``+`` reads it, else ``None``.

    Blank text is 0. Unsigned ``0x``/``0o``/``0b`` literals and signed
    ``Infinity`` are accepted; digits are ASCII only and NaN is not a number.
    """

    text = token.strip()
    if not text:
        return 0.0
    prefixed = _PREFIXED.fullmatch(text)
    if prefixed:
        try:
            value = int(prefixed.group(2), _RADIX[prefixed.group(1).lower()])
        except ValueError:
            return None
        try:
            return float(value)
        except OverflowError:
            return math.inf
    if not _DECIMAL.fullmatch(text):
        return None
    if text.lstrip("+-") == "Infinity":
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def parse_view(view: str | None, *, default_height: float = DEFAULT_VIEW_HEIGHT) -> CameraPose | None:
    """Parse a view string; fewer than two tokens means no view."""

    if view is None:
        return None
    tokens = _SEPARATORS.split(view)
    if len(tokens) < 2:
        return None

    def _token(index: int) -> float | None:
        return parse_number(tokens[index]) if len(tokens) > index else None

    def _angle(index: int) -> float | None:
        value = _token(index)
        return math.radians(value) if value is not None else None

    longitude = _token(0)
    latitude = _token(1)
    height = _token(2)
    return CameraPose(
        longitude=longitude if longitude is not None else 0.0,
        latitude=latitude if latitude is not None else 0.0,
        height=height if height is not None else default_height,
        heading=_angle(3),
        pitch=_angle(4),
        roll=_angle(5),
    )


def format_number(value: float) -> str:
    """Shortest text for ``value``; integral values drop the fraction."""

    if math.isfinite(value) and value == int(value) and abs(value) < 1e21:
        return str(int(value))
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(value)


def format_view(pose: CameraPose) -> str:
    """Inverse of :func:`parse_view`; orientation only when heading is set."""

    text = ",".join(format_number(v) for v in (pose.longitude, pose.latitude, pose.height))
    if pose.heading is not None:
        angles = (pose.heading, pose.pitch, pose.roll)
        text += "," + ",".join(
            format_number(math.degrees(a)) if a is not None else "NaN" for a in angles
        )
    return text


def apply_view(pose: CameraPose, camera: Camera) -> None:
    camera.set_view(destination=pose.destination, orientation=pose.orientation)


def sample_pose(camera: Camera) -> CameraPose:
    """Read the live camera back into degrees/meters."""

    position = camera.position_cartographic
    heading = camera.heading
    return CameraPose(
        longitude=math.degrees(position.longitude),
        latitude=math.degrees(position.latitude),
        height=position.height,
        heading=heading,
        pitch=camera.pitch if heading is not None else None,
        roll=camera.roll if heading is not None else None,
    )
