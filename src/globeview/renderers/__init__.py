# SPDX-License-Identifier: Apache-2.0
"""Static viewer bundles for browser engines, looked up by target name."""

from __future__ import annotations

from typing import Any

from .cesium_viewer import CesiumViewerRenderer, ViewerBundle

RENDERERS: dict[str, type[CesiumViewerRenderer]] = {
    CesiumViewerRenderer.slug: CesiumViewerRenderer,
}


def targets() -> list[str]:
    return sorted(RENDERERS)


def create(target: str, **options: Any) -> CesiumViewerRenderer:
    try:
        renderer_cls = RENDERERS[target]
    except KeyError as exc:
        raise KeyError(f"unknown bundle target: {target}") from exc
    return renderer_cls(**options)


__all__ = [
    "CesiumViewerRenderer",
    "RENDERERS",
    "ViewerBundle",
    "create",
    "targets",
]
