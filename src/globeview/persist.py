# SPDX-License-Identifier: Apache-2.0
"""Debounced write-back of the camera view into the page URL."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

from .config import DEFAULT_SAVE_CAMERA_DELAY_MS
from .engine import Camera, Location
from .options import OptionBag
from .view import format_view, sample_pose

LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with ``call_later``; an asyncio event loop qualifies."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class CameraPersister:
    """Persist the camera view at most once per quiet window.

    Each camera change restarts a single timer. When it fires, the current
    pose is written to ``options["view"]`` and the whole option bag replaces
    the page URL's query (history does not grow).
    """

    def __init__(
        self,
        camera: Camera,
        options: OptionBag,
        location: Location,
        *,
        delay: float = DEFAULT_SAVE_CAMERA_DELAY_MS / 1000.0,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._camera = camera
        self._options = options
        self._location = location
        self._delay = delay
        self._scheduler = scheduler
        self._pending: TimerHandle | None = None
        self._remove_listener: Callable[[], None] | None = None
        self.writes = 0

    @property
    def installed(self) -> bool:
        return self._remove_listener is not None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def install(self) -> None:
        if self._remove_listener is not None:
            return
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()
        self._remove_listener = self._camera.changed.add_event_listener(self._on_changed)
        LOGGER.debug("Camera persistence installed (delay %.3fs)", self._delay)

    def uninstall(self) -> None:
        """Stop listening and drop any pending write."""

        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self._cancel_pending()

    def _on_changed(self, *_args: Any) -> None:
        self._cancel_pending()
        self._pending = self._scheduler.call_later(self._delay, self._fire)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self) -> None:
        self._pending = None
        self.save()

    def save(self) -> str:
        """Write the current camera view now; returns the new query string."""

        view = format_view(sample_pose(self._camera))
        self._options["view"] = view
        query = self._options.to_query()
        self._location.replace_state(f"?{query}")
        self.writes += 1
        LOGGER.debug("Saved camera view %s", view)
        return query
