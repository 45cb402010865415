# SPDX-License-Identifier: Apache-2.0
"""Typed views over the startup options plus environment-driven settings."""

from __future__ import annotations

import logging
import os
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .options import is_not_false, is_truthy

LOGGER = logging.getLogger(__name__)

DEFAULT_SAVE_CAMERA_DELAY_MS = 1000
DEFAULT_VIEW_HEIGHT = 300.0


class ViewerOptions(BaseModel):
    """Recognized startup options, still as strings.

    Unknown keys are ignored; repeated keys resolve to their last value.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    source: str | None = None
    source_type: str | None = Field(default=None, alias="sourceType")
    fly_to: str | None = Field(default=None, alias="flyTo")
    tms_imagery_url: str | None = Field(default=None, alias="tmsImageryUrl")
    look_at: str | None = Field(default=None, alias="lookAt")
    stats: str | None = None
    inspector: str | None = None
    debug: str | None = None
    theme: str | None = None
    scene3d_only: str | None = Field(default=None, alias="scene3DOnly")
    view: str | None = None
    save_camera: str | None = Field(default=None, alias="saveCamera")

    @field_validator("*", mode="before")
    @classmethod
    def _last_occurrence(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[-1] if value else None
        return value

    @classmethod
    def from_bag(cls, bag: Mapping[str, Any]) -> "ViewerOptions":
        return cls.model_validate(dict(bag))

    @property
    def fly_to_enabled(self) -> bool:
        return is_not_false(self.fly_to)

    @property
    def save_camera_enabled(self) -> bool:
        return is_not_false(self.save_camera)

    @property
    def stats_enabled(self) -> bool:
        return is_truthy(self.stats)

    @property
    def inspector_enabled(self) -> bool:
        return is_truthy(self.inspector)

    @property
    def debug_enabled(self) -> bool:
        return is_truthy(self.debug)

    @property
    def scene3d_only_enabled(self) -> bool | None:
        if self.scene3d_only is None:
            return None
        return is_truthy(self.scene3d_only)


class BaseLayerConfig(BaseModel):
    kind: Literal["tms"] = "tms"
    url: str


class TerrainConfig(BaseModel):
    kind: Literal["world"] = "world"
    request_water_mask: bool = True
    request_vertex_normals: bool = True


class ViewerConstruction(BaseModel):
    """Arguments handed to the engine's viewer constructor."""

    base_layer: BaseLayerConfig | None = None
    base_layer_picker: bool = True
    scene3d_only: bool | None = None
    request_render_mode: bool = True
    terrain: TerrainConfig = Field(default_factory=TerrainConfig)
    selected_terrain_index: int | None = None

    @classmethod
    def from_options(cls, options: ViewerOptions) -> "ViewerConstruction":
        base_layer = None
        if options.tms_imagery_url is not None:
            base_layer = BaseLayerConfig(url=options.tms_imagery_url)
        has_picker = base_layer is None
        return cls(
            base_layer=base_layer,
            base_layer_picker=has_picker,
            scene3d_only=options.scene3d_only_enabled,
            selected_terrain_index=1 if has_picker else None,
        )


class RuntimeSettings(BaseModel):
    """Process-level knobs read from ``GLOBEVIEW_*`` environment variables."""

    save_camera_delay_ms: int = DEFAULT_SAVE_CAMERA_DELAY_MS
    default_view_height: float = DEFAULT_VIEW_HEIGHT

    @property
    def save_camera_delay(self) -> float:
        return self.save_camera_delay_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RuntimeSettings":
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        delay = _env_number(env, "GLOBEVIEW_SAVE_CAMERA_DELAY_MS", int)
        if delay is not None and delay >= 0:
            values["save_camera_delay_ms"] = delay
        height = _env_number(env, "GLOBEVIEW_DEFAULT_VIEW_HEIGHT", float)
        if height is not None:
            values["default_view_height"] = height
        return cls(**values)


def _env_number(env: Mapping[str, str], name: str, kind: type) -> Any:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return kind(raw.strip())
    except ValueError:
        LOGGER.warning("Ignoring malformed %s=%r", name, raw)
        return None
