# SPDX-License-Identifier: Apache-2.0
"""Load an external dataset into the viewer and decide how to frame it."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Any

from .config import ViewerOptions
from .engine import DataSource, FormatLoaders, Viewer
from .errors import (
    LOAD_ERROR_MESSAGE,
    ErrorReporter,
    ReferenceFailure,
    load_error_title,
    missing_entity_message,
)
from .utils.cli_helpers import sanitize_for_log

LOGGER = logging.getLogger(__name__)

CZML = "czml"
GEOJSON = "geojson"
KML = "kml"
GPX = "gpx"

UNKNOWN_FORMAT = "Unknown format."

_EXTENSION_FORMATS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\.czml$", re.IGNORECASE), CZML),
    (re.compile(r"\.(geojson|json|topojson)$", re.IGNORECASE), GEOJSON),
    (re.compile(r"\.(kml|kmz)$", re.IGNORECASE), KML),
    (re.compile(r"\.gpx$", re.IGNORECASE), GPX),
)


def resolve_format(source: str, explicit: str | None = None) -> str | None:
    """Return the dataset format for ``source``, or ``None`` when unknown.

    An explicit format is returned verbatim, without checking it.
    """

    if explicit is not None:
        return explicit
    for pattern, fmt in _EXTENSION_FORMATS:
        if pattern.search(source):
            return fmt
    return None


class PostLoadAction(str, enum.Enum):
    TRACK = "track"
    FLY_TO = "fly_to"
    MISSING_ENTITY = "missing_entity"
    NONE = "none"


@dataclass(slots=True)
class LoadResult:
    source: str
    format: str | None = None
    data_source: DataSource | None = None
    error: Any = None
    action: PostLoadAction = PostLoadAction.NONE

    @property
    def ok(self) -> bool:
        return self.data_source is not None


class SourceLoader:
    """Resolve, load and attach a dataset, reporting every failure once.

    Failures never propagate: the returned :class:`LoadResult` carries the
    error and the report is already on the viewer's error panel.
    """

    def __init__(self, viewer: Viewer, loaders: FormatLoaders, reporter: ErrorReporter) -> None:
        self._viewer = viewer
        self._loaders = loaders
        self._reporter = reporter

    def _loader_context(self, fmt: str) -> dict[str, Any]:
        if fmt == KML:
            return {
                "camera": self._viewer.camera,
                "canvas": self._viewer.canvas,
                "screen_overlay_container": self._viewer.container,
            }
        return {}

    async def load(self, source: str, fmt: str | None) -> LoadResult:
        result = LoadResult(source=source, format=fmt)
        loader = self._loaders.get(fmt) if fmt is not None else None
        if loader is None:
            LOGGER.info("No loader for %s (format %r)", sanitize_for_log(source), fmt)
            result.error = UNKNOWN_FORMAT
            self._reporter.report_load_error(source, UNKNOWN_FORMAT)
            return result

        LOGGER.info("Loading %s as %s", sanitize_for_log(source), fmt)
        try:
            pending = loader(source, **self._loader_context(fmt))
            result.data_source = await self._viewer.data_sources.add(pending)
        except Exception as exc:
            result.error = exc
            self._reporter.report_load_error(source, exc)
        return result

    def frame(self, result: LoadResult, options: ViewerOptions) -> PostLoadAction:
        """Track ``lookAt`` or fly to the freshly loaded dataset."""

        data_source = result.data_source
        if data_source is None:
            return PostLoadAction.NONE
        look_at = options.look_at
        if look_at is not None:
            entity = data_source.entities.get_by_id(look_at)
            if entity is not None:
                self._viewer.tracked_entity = entity
                return PostLoadAction.TRACK
            failure = ReferenceFailure(
                load_error_title(result.source), LOAD_ERROR_MESSAGE, missing_entity_message(look_at)
            )
            result.error = failure
            self._reporter.report_failure(failure)
            return PostLoadAction.MISSING_ENTITY
        if options.view is None and options.fly_to_enabled:
            self._viewer.fly_to(data_source)
            return PostLoadAction.FLY_TO
        return PostLoadAction.NONE

    async def load_and_frame(self, options: ViewerOptions) -> LoadResult | None:
        """Run the whole source step for ``options``; ``None`` without a source."""

        source = options.source
        if source is None:
            return None
        result = await self.load(source, resolve_format(source, options.source_type))
        if result.ok:
            try:
                result.action = self.frame(result, options)
            except Exception as exc:
                result.error = exc
                self._reporter.report_load_error(source, exc)
        return result
