# SPDX-License-Identifier: Apache-2.0
"""Synthesize a time-tagged satellite track from waypoints as CZML."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from .geodesy import cartesian_from_degrees
from .utils.iso8601 import format_utc, seconds_difference, to_datetime

LOGGER = logging.getLogger(__name__)

CZML_VERSION = "1.0"
INTERPOLATION_ALGORITHM = "LAGRANGE"
INTERPOLATION_DEGREE = 5
REFERENCE_FRAME = "INERTIAL"

SATELLITE_IMAGE = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAABAAAAAQCAYAAAAf8/9hAAAAAXNSR0IArs4c6QAAAARnQU1BAACxjwv8YQUAAAAJcEhZcwAADsMAAA7DAcdvqGQAAADJSURBVDhPnZHRDcMgEEMZjVEYpaNklIzSEfLfD4qNnXAJSFWfhO7w2Zc0Tf9QG2rXrEzSUeZLOGm47WoH95x3Hl3jEgilvDgsOQUTqsNl68ezEwn1vae6lceSEEYvvWNT/Rxc4CXQNGadho1NXoJ+9iaqc2xi2xbt23PJCDIB6TQjOC6Bho/sDy3fBQT8PrVhibU7yBFcEPaRxOoeTwbwByCOYf9VGp1BYI1BA+EeHhmfzKbBoJEQwn1yzUZtyspIQUha85MpkNIXB7GizqDEECsAAAAASUVORK5CYII="
)


@dataclass(frozen=True, slots=True)
class Waypoint:
    time: datetime
    longitude: float
    latitude: float
    height: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Waypoint":
        when = to_datetime(data.get("time"))
        if when is None:
            raise ValueError(f"waypoint time is not an ISO-8601 timestamp: {data.get('time')!r}")
        return cls(
            time=when,
            longitude=float(data["longitude"]),
            latitude=float(data["latitude"]),
            height=float(data.get("height", 0.0)),
        )


SAMPLE_WAYPOINTS: tuple[Waypoint, ...] = tuple(
    Waypoint.from_mapping(item)
    for item in (
        {"time": "2023-01-01T00:00:00Z", "longitude": 30, "latitude": 10, "height": 1000},
        {"time": "2023-01-01T01:00:00Z", "longitude": 31, "latitude": 11, "height": 1000},
        {"time": "2023-01-01T02:00:00Z", "longitude": 32, "latitude": 10, "height": 1000},
        {"time": "2023-01-01T03:00:00Z", "longitude": 33, "latitude": 11, "height": 1000},
    )
)


@dataclass(frozen=True, slots=True)
class Track:
    """Sampled positions as flat ``(seconds, x, y, z)`` quadruples from ``epoch``."""

    epoch: datetime
    cartesian: tuple[float, ...]
    availability: tuple[datetime, datetime]
    entity_id: str = "satellite"
    name: str = "My Satellite"
    document_name: str = "Satellite Track"
    presentation: Mapping[str, Any] = field(default_factory=dict)

    @property
    def sample_count(self) -> int:
        return len(self.cartesian) // 4

    @property
    def times(self) -> tuple[float, ...]:
        return self.cartesian[0::4]

    @property
    def availability_interval(self) -> str:
        start, stop = self.availability
        return f"{format_utc(start)}/{format_utc(stop)}"

    def document_packet(self) -> dict[str, Any]:
        return {"id": "document", "name": self.document_name, "version": CZML_VERSION}

    def entity_packet(self) -> dict[str, Any]:
        packet: dict[str, Any] = {
            "id": self.entity_id,
            "name": self.name,
            "position": {
                "interpolationAlgorithm": INTERPOLATION_ALGORITHM,
                "interpolationDegree": INTERPOLATION_DEGREE,
                "referenceFrame": REFERENCE_FRAME,
                "epoch": format_utc(self.epoch),
                "cartesian": list(self.cartesian),
            },
            "availability": self.availability_interval,
        }
        packet.update(self.presentation)
        return packet

    def to_czml(self) -> list[dict[str, Any]]:
        return [self.document_packet(), self.entity_packet()]


def default_presentation() -> dict[str, Any]:
    """Billboard marker and outlined path used for the satellite."""

    return {
        "billboard": {
            "eyeOffset": {"cartesian": [0, 0, 0]},
            "horizontalOrigin": "CENTER",
            "image": SATELLITE_IMAGE,
            "pixelOffset": {"cartesian2": [0, 0]},
            "scale": 1.5,
            "show": True,
            "verticalOrigin": "CENTER",
        },
        "path": {
            "material": {
                "polylineOutline": {
                    "color": {"rgba": [255, 0, 0, 255]},
                    "width": 2,
                },
            },
            "width": 5,
            "show": True,
        },
    }


class TrackSynthesizer:
    def __init__(
        self,
        *,
        entity_id: str = "satellite",
        name: str = "My Satellite",
        document_name: str = "Satellite Track",
    ) -> None:
        self.entity_id = entity_id
        self.name = name
        self.document_name = document_name

    def synthesize(self, waypoints: Iterable[Waypoint]) -> Track:
        points: Sequence[Waypoint] = tuple(waypoints)
        if not points:
            raise ValueError("at least one waypoint is required")
        epoch = points[0].time
        offsets: list[float] = []
        for prev, cur in zip((None, *points[:-1]), points):
            if prev is not None and cur.time < prev.time:
                raise ValueError(
                    f"waypoint times must be non-decreasing: {format_utc(cur.time)} after {format_utc(prev.time)}"
                )
            offsets.append(seconds_difference(cur.time, epoch))

        xyz = cartesian_from_degrees(
            [p.longitude for p in points],
            [p.latitude for p in points],
            [p.height for p in points],
        )
        samples = np.column_stack([np.asarray(offsets, dtype=float), xyz])
        track = Track(
            epoch=epoch,
            cartesian=tuple(float(v) for v in samples.ravel()),
            availability=(points[0].time, points[-1].time),
            entity_id=self.entity_id,
            name=self.name,
            document_name=self.document_name,
            presentation=default_presentation(),
        )
        LOGGER.debug("Synthesized track %s with %d samples", track.entity_id, track.sample_count)
        return track


def synthesize_track(waypoints: Iterable[Waypoint] = SAMPLE_WAYPOINTS) -> Track:
    return TrackSynthesizer().synthesize(waypoints)
