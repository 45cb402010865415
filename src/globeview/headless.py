# SPDX-License-Identifier: Apache-2.0
"""In-memory engine and page used by the CLI and tests.

Nothing is rendered. The camera keeps its pose, datasets keep entity ids,
and the page records URL replacements, alerts and body classes. Only local
CZML and GeoJSON files can be loaded.
"""

from __future__ import annotations

import inspect
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Union
from urllib.parse import unquote, urlparse

from .config import ViewerConstruction
from .engine import Event, Orientation, RenderContextFlags
from .geodesy import Cartesian3, Cartographic, cartesian_from_degrees, cartographic_from_cartesian
from .sources import CZML, GEOJSON

LOGGER = logging.getLogger(__name__)

_DEFAULT_HEIGHT = 20_000_000.0


@dataclass(slots=True)
class HeadlessEntity:
    id: str
    name: str | None = None


class HeadlessEntityCollection:
    def __init__(self, entities: list[HeadlessEntity] | None = None) -> None:
        self._by_id = {e.id: e for e in entities or []}

    def __len__(self) -> int:
        return len(self._by_id)

    @property
    def ids(self) -> list[str]:
        return list(self._by_id)

    def add(self, entity: HeadlessEntity) -> None:
        self._by_id[entity.id] = entity

    def get_by_id(self, entity_id: str) -> HeadlessEntity | None:
        return self._by_id.get(entity_id)


@dataclass(slots=True)
class HeadlessDataSource:
    name: str
    entities: HeadlessEntityCollection = field(default_factory=HeadlessEntityCollection)
    packets: list[dict[str, Any]] = field(default_factory=list)


class HeadlessDataSourceCollection:
    def __init__(self) -> None:
        self.items: list[HeadlessDataSource] = []

    def __len__(self) -> int:
        return len(self.items)

    async def add(self, source: Union[HeadlessDataSource, Awaitable[HeadlessDataSource]]) -> HeadlessDataSource:
        if inspect.isawaitable(source):
            source = await source
        if not isinstance(source, HeadlessDataSource):
            raise TypeError(f"not a data source: {type(source).__name__}")
        self.items.append(source)
        return source


class HeadlessCamera:
    """Camera that remembers the last view it was given."""

    def __init__(self) -> None:
        self.changed = Event()
        self.position_cartographic = Cartographic(0.0, 0.0, _DEFAULT_HEIGHT)
        self.heading: float | None = 0.0
        self.pitch: float | None = -math.pi / 2.0
        self.roll: float | None = 0.0

    def set_view(self, *, destination: Cartesian3, orientation: Orientation | None = None) -> None:
        orientation = orientation or Orientation()
        self.position_cartographic = cartographic_from_cartesian(*destination)
        self.heading = orientation.heading if orientation.heading is not None else 0.0
        self.pitch = orientation.pitch if orientation.pitch is not None else -math.pi / 2.0
        self.roll = orientation.roll if orientation.roll is not None else 0.0
        self.changed.raise_event(self)

    def move_to_degrees(self, longitude: float, latitude: float, height: float) -> None:
        """Simulate user navigation to a new position, keeping orientation."""

        destination = Cartesian3(*(float(v) for v in cartesian_from_degrees(longitude, latitude, height)))
        self.set_view(
            destination=destination,
            orientation=Orientation(self.heading, self.pitch, self.roll),
        )


class HeadlessViewer:
    def __init__(self, construction: ViewerConstruction | None = None) -> None:
        self.construction = construction or ViewerConstruction()
        self.camera = HeadlessCamera()
        self.data_sources = HeadlessDataSourceCollection()
        self.tracked_entity: HeadlessEntity | None = None
        self.drop_error = Event()
        self.context_flags = RenderContextFlags()
        self.show_frames_per_second = False
        self.container = "cesiumContainer"
        self.canvas = "canvas"
        self.mixins: list[str] = []
        self.flown_to: list[HeadlessDataSource] = []
        self.error_panels: list[tuple[str, str, Any]] = []
        self.theme_refreshes = 0

    def extend(self, mixin: str) -> None:
        self.mixins.append(mixin)

    def fly_to(self, target: HeadlessDataSource) -> bool:
        self.flown_to.append(target)
        return True

    def show_error_panel(self, title: str, message: str, error: Any = None) -> None:
        self.error_panels.append((title, message, error))

    def apply_theme_changes(self) -> None:
        self.theme_refreshes += 1

    def create_czml_data_source(self, packets: list[dict[str, Any]]) -> HeadlessDataSource:
        return _czml_data_source(packets, name=_document_name(packets) or "czml")


class HistoryLocation:
    """Address bar whose ``replace_state`` overwrites the current entry."""

    def __init__(self, search: str = "") -> None:
        self.search = search
        self.history_length = 1
        self.replacements: list[str] = []

    def replace_state(self, url: str) -> None:
        self.search = url if url.startswith("?") else f"?{url}"
        self.replacements.append(self.search)


class HeadlessPage:
    def __init__(self, search: str = "", *, error_panel: bool = False) -> None:
        self.location = HistoryLocation(search)
        self.loading_indicator_visible = True
        self.body_classes: set[str] = set()
        self.alerts: list[str] = []
        self._error_panel = error_panel

    def hide_loading_indicator(self) -> None:
        self.loading_indicator_visible = False

    def has_error_panel(self) -> bool:
        return self._error_panel

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def add_body_class(self, name: str) -> None:
        self.body_classes.add(name)


def headless_viewer_factory(construction: ViewerConstruction) -> HeadlessViewer:
    return HeadlessViewer(construction)


def _local_path(url: str) -> Path:
    parsed = urlparse(url)
    if parsed.scheme in ("", "file"):
        return Path(unquote(parsed.path) if parsed.scheme == "file" else url)
    raise ValueError(f"headless loader only reads local files, got {parsed.scheme}:// URL")


def _read_json(url: str) -> Any:
    with _local_path(url).open("r", encoding="utf-8") as f:
        return json.load(f)


def _document_name(packets: list[dict[str, Any]]) -> str | None:
    for packet in packets:
        if packet.get("id") == "document":
            return packet.get("name")
    return None


def _czml_data_source(packets: list[dict[str, Any]], *, name: str) -> HeadlessDataSource:
    if not isinstance(packets, list) or not packets or packets[0].get("id") != "document":
        raise ValueError("CZML must be a list starting with a document packet")
    entities = HeadlessEntityCollection()
    for packet in packets[1:]:
        if "id" in packet:
            entities.add(HeadlessEntity(id=str(packet["id"]), name=packet.get("name")))
    return HeadlessDataSource(name=name, entities=entities, packets=list(packets))


async def load_czml(url: str, **_context: Any) -> HeadlessDataSource:
    LOGGER.debug("Reading CZML from %s", url)
    packets = _read_json(url)
    return _czml_data_source(packets, name=_document_name(packets) or Path(url).name)


async def load_geojson(url: str, **_context: Any) -> HeadlessDataSource:
    LOGGER.debug("Reading GeoJSON from %s", url)
    data = _read_json(url)
    if not isinstance(data, dict) or "type" not in data:
        raise ValueError("GeoJSON object must have a 'type' member")
    features = data.get("features") if data["type"] == "FeatureCollection" else [data]
    entities = HeadlessEntityCollection()
    for index, feature in enumerate(features or []):
        entity_id = feature.get("id")
        entities.add(HeadlessEntity(id=str(entity_id) if entity_id is not None else f"feature-{index}"))
    return HeadlessDataSource(name=Path(url).name, entities=entities)


def default_loaders() -> dict[str, Any]:
    return {CZML: load_czml, GEOJSON: load_geojson}
