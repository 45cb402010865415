# SPDX-License-Identifier: Apache-2.0
"""ISO-8601 helpers for track timestamps.

Time differences are computed on the TAI scale the way the globe engine's
Julian dates do, so an inserted UTC leap second counts as an elapsed second.
"""

from __future__ import annotations

from bisect import bisect_right
from datetime import datetime, timezone
from typing import Any

# (UTC instant from which TAI-UTC applies, TAI-UTC in seconds)
_LEAP_SECONDS: tuple[tuple[datetime, int], ...] = tuple(
    (datetime(y, m, 1, tzinfo=timezone.utc), offset)
    for y, m, offset in (
        (1972, 1, 10),
        (1972, 7, 11),
        (1973, 1, 12),
        (1974, 1, 13),
        (1975, 1, 14),
        (1976, 1, 15),
        (1977, 1, 16),
        (1978, 1, 17),
        (1979, 1, 18),
        (1980, 1, 19),
        (1981, 7, 20),
        (1982, 7, 21),
        (1983, 7, 22),
        (1985, 7, 23),
        (1988, 1, 24),
        (1990, 1, 25),
        (1991, 1, 26),
        (1992, 7, 27),
        (1993, 7, 28),
        (1994, 7, 29),
        (1996, 1, 30),
        (1997, 7, 31),
        (1999, 1, 32),
        (2006, 1, 33),
        (2009, 1, 34),
        (2012, 7, 35),
        (2015, 7, 36),
        (2017, 1, 37),
    )
)
_LEAP_STARTS = [start for start, _ in _LEAP_SECONDS]


def to_datetime(value: Any) -> datetime | None:
    """Coerce ``value`` into a timezone-aware UTC ``datetime`` where possible.

    Accepts ``datetime`` objects (naive assumed UTC) and ISO strings with an
    optional ``Z`` suffix. Returns ``None`` when the input is empty or cannot
    be interpreted as a timestamp.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        token = value.strip()
        if not token:
            return None
        if token.endswith(("Z", "z")):
            token = token[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(token)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc(dt: datetime) -> str:
    """Render ``dt`` as an ISO-8601 UTC string with a ``Z`` suffix."""

    dt = to_datetime(dt)
    if dt.microsecond:
        text = dt.strftime("%Y-%m-%dT%H:%M:%S.%f").rstrip("0")
    else:
        text = dt.strftime("%Y-%m-%dT%H:%M:%S")
    return text + "Z"


def tai_minus_utc(dt: datetime) -> int:
    """Return TAI-UTC (whole seconds) in effect at ``dt``; 0 before 1972."""

    idx = bisect_right(_LEAP_STARTS, to_datetime(dt))
    if idx == 0:
        return 0
    return _LEAP_SECONDS[idx - 1][1]


def seconds_difference(end: datetime, start: datetime) -> float:
    """Return ``end - start`` in elapsed SI seconds, leap seconds included."""

    end = to_datetime(end)
    start = to_datetime(start)
    delta = (end - start).total_seconds()
    return delta + (tai_minus_utc(end) - tai_minus_utc(start))
