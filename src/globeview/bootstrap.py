# SPDX-License-Identifier: Apache-2.0
"""Startup pipeline for the globe viewer page.

Steps run strictly in order; each one that touches the camera waits for the
optional dataset load to settle first::

    parse options -> construct viewer -> extensions/debug
      -> await load + lookAt/flyTo -> stats -> theme -> view
      -> camera persistence -> await track injection -> hide loading indicator

Only viewer construction is fatal. Every later failure is reported on the
error panel and startup carries on.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable

from .config import RuntimeSettings, ViewerConstruction, ViewerOptions
from .engine import (
    DRAG_DROP_MIXIN,
    INSPECTOR_MIXIN,
    DataSource,
    FormatLoaders,
    Page,
    Viewer,
    ViewerFactory,
)
from .errors import ConfigFailure, ConstructionFailure, ErrorReporter, format_error
from .options import OptionBag, parse_query
from .persist import CameraPersister, Scheduler
from .sources import LoadResult, SourceLoader
from .track import SAMPLE_WAYPOINTS, Track, TrackSynthesizer, Waypoint
from .view import CameraPose, apply_view, parse_view

LOGGER = logging.getLogger(__name__)

LIGHTER_THEME = "lighter"
LIGHTER_BODY_CLASS = "cesium-lighter"


@dataclass(slots=True)
class BootstrapResult:
    viewer: Viewer
    options: OptionBag
    settings: ViewerOptions
    reporter: ErrorReporter
    load: LoadResult | None = None
    pose: CameraPose | None = None
    persister: CameraPersister | None = None
    track: Track | None = None
    track_source: DataSource | None = None
    steps: list[str] = field(default_factory=list)


class ViewerBootstrap:
    def __init__(
        self,
        page: Page,
        viewer_factory: ViewerFactory,
        loaders: FormatLoaders,
        *,
        runtime: RuntimeSettings | None = None,
        waypoints: Iterable[Waypoint] = SAMPLE_WAYPOINTS,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.page = page
        self.viewer_factory = viewer_factory
        self.loaders = loaders
        self.runtime = runtime or RuntimeSettings.from_env()
        self.waypoints = tuple(waypoints)
        self.scheduler = scheduler

    async def run(self) -> BootstrapResult | None:
        """Start the viewer; ``None`` when it could not be constructed."""

        bag = parse_query(self.page.location.search)
        options = ViewerOptions.from_bag(bag)
        construction = ViewerConstruction.from_options(options)

        try:
            viewer = self.viewer_factory(construction)
        except Exception as exc:
            self._abort(ConstructionFailure("Viewer construction failed", detail=format_error(exc)))
            return None

        reporter = ErrorReporter(viewer)
        result = BootstrapResult(viewer=viewer, options=bag, settings=options, reporter=reporter)
        self._install_extensions(result)

        result.load = await SourceLoader(viewer, self.loaders, reporter).load_and_frame(options)
        result.steps.append("source")

        if options.stats_enabled:
            viewer.show_frames_per_second = True
            result.steps.append("stats")

        self._apply_theme(result)
        self._apply_view(result)
        self._install_persister(result)
        await self._inject_track(result)

        self.page.hide_loading_indicator()
        result.steps.append("ready")
        return result

    def _abort(self, failure: ConstructionFailure) -> None:
        self.page.hide_loading_indicator()
        message = failure.report.detail or failure.report.title
        LOGGER.error("%s", message)
        if not self.page.has_error_panel():
            self.page.alert(message)

    def _install_extensions(self, result: BootstrapResult) -> None:
        viewer = result.viewer
        options = result.settings
        viewer.extend(DRAG_DROP_MIXIN)
        if options.inspector_enabled:
            viewer.extend(INSPECTOR_MIXIN)
        viewer.drop_error.add_event_listener(
            lambda _viewer, name, error: result.reporter.report_load_error(name, error)
        )
        if options.debug_enabled:
            flags = viewer.context_flags
            flags.validate_shader_program = True
            flags.validate_framebuffer = True
            flags.log_shader_compilation = True
            flags.throw_on_webgl_error = True
            result.steps.append("debug")

    def _apply_theme(self, result: BootstrapResult) -> None:
        theme = result.settings.theme
        if not theme:
            return
        if theme == LIGHTER_THEME:
            self.page.add_body_class(LIGHTER_BODY_CLASS)
            result.viewer.apply_theme_changes()
            result.steps.append("theme")
        else:
            result.reporter.report_failure(ConfigFailure(f"Unknown theme: {theme}"))

    def _apply_view(self, result: BootstrapResult) -> None:
        pose = parse_view(result.settings.view, default_height=self.runtime.default_view_height)
        if pose is None:
            return
        apply_view(pose, result.viewer.camera)
        result.pose = pose
        result.steps.append("view")

    def _install_persister(self, result: BootstrapResult) -> None:
        if not result.settings.save_camera_enabled:
            return
        persister = CameraPersister(
            result.viewer.camera,
            result.options,
            self.page.location,
            delay=self.runtime.save_camera_delay,
            scheduler=self.scheduler,
        )
        persister.install()
        result.persister = persister
        result.steps.append("persist")

    async def _inject_track(self, result: BootstrapResult) -> None:
        try:
            track = TrackSynthesizer().synthesize(self.waypoints)
            packets = track.to_czml()
            LOGGER.debug("CZML: %s", json.dumps(packets, indent=2))
            viewer = result.viewer
            result.track_source = await viewer.data_sources.add(viewer.create_czml_data_source(packets))
        except Exception as exc:
            result.reporter.report_load_error("track", exc)
            return
        result.track = track
        result.steps.append("track")
