# SPDX-License-Identifier: Apache-2.0
"""Interfaces of the rendering engine and page the startup code drives.

The engine (viewer, camera, datasets, format loaders) and the hosting page
are external collaborators; only the surface used here is described.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol, Union

from .config import ViewerConstruction
from .geodesy import Cartographic

DRAG_DROP_MIXIN = "dragDrop"
INSPECTOR_MIXIN = "inspector"


class Event:
    """Minimal listener list; ``add_event_listener`` returns a remover."""

    def __init__(self) -> None:
        self._listeners: list[Callable[..., Any]] = []

    def add_event_listener(self, listener: Callable[..., Any]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    @property
    def number_of_listeners(self) -> int:
        return len(self._listeners)

    def raise_event(self, *args: Any) -> None:
        for listener in list(self._listeners):
            listener(*args)


@dataclass(slots=True)
class Orientation:
    """Heading/pitch/roll in radians; ``None`` selects the engine default."""

    heading: float | None = None
    pitch: float | None = None
    roll: float | None = None


@dataclass(slots=True)
class RenderContextFlags:
    validate_shader_program: bool = False
    validate_framebuffer: bool = False
    log_shader_compilation: bool = False
    throw_on_webgl_error: bool = False


class Entity(Protocol):
    id: str


class EntityCollection(Protocol):
    def get_by_id(self, entity_id: str) -> Entity | None: ...


class DataSource(Protocol):
    name: str
    entities: EntityCollection


class DataSourceCollection(Protocol):
    async def add(self, source: Union[DataSource, Awaitable[DataSource]]) -> DataSource: ...


class Camera(Protocol):
    changed: Event
    position_cartographic: Cartographic
    heading: float | None
    pitch: float | None
    roll: float | None

    def set_view(self, *, destination: Any, orientation: Orientation) -> None: ...


class Viewer(Protocol):
    camera: Camera
    data_sources: DataSourceCollection
    tracked_entity: Entity | None
    drop_error: Event
    context_flags: RenderContextFlags
    show_frames_per_second: bool
    container: Any
    canvas: Any

    def extend(self, mixin: str) -> None: ...

    def fly_to(self, target: DataSource) -> Any: ...

    def show_error_panel(self, title: str, message: str, error: Any = None) -> None: ...

    def apply_theme_changes(self) -> None: ...

    def create_czml_data_source(self, packets: list[dict[str, Any]]) -> DataSource: ...


class Location(Protocol):
    search: str

    def replace_state(self, url: str) -> None: ...


class Page(Protocol):
    """The hosting document: loading spinner, body classes, alerts, URL."""

    location: Location

    def hide_loading_indicator(self) -> None: ...

    def has_error_panel(self) -> bool: ...

    def alert(self, message: str) -> None: ...

    def add_body_class(self, name: str) -> None: ...


ViewerFactory = Callable[[ViewerConstruction], Viewer]
FormatLoader = Callable[..., Awaitable[DataSource]]
FormatLoaders = Mapping[str, FormatLoader]
