# SPDX-License-Identifier: Apache-2.0
"""Startup orchestration and view-state persistence for a 3D globe viewer."""

from __future__ import annotations

from .bootstrap import BootstrapResult, ViewerBootstrap
from .options import OptionBag, parse_query, to_query
from .sources import SourceLoader, resolve_format
from .track import SAMPLE_WAYPOINTS, Track, TrackSynthesizer, Waypoint, synthesize_track
from .view import CameraPose, format_view, parse_view

__version__ = "0.1.0"

__all__ = [
    "BootstrapResult",
    "CameraPose",
    "OptionBag",
    "SAMPLE_WAYPOINTS",
    "SourceLoader",
    "Track",
    "TrackSynthesizer",
    "ViewerBootstrap",
    "Waypoint",
    "format_view",
    "parse_query",
    "parse_view",
    "resolve_format",
    "synthesize_track",
    "to_query",
]
