# SPDX-License-Identifier: Apache-2.0
"""CesiumJS viewer page with startup options resolved ahead of time.

The bundle references Cesium via the jsDelivr CDN. ``assets/config.json``
carries the resolved options, the initial camera pose and the track CZML;
the same object is inlined into ``index.html`` so the page also works from
``file://`` where ``fetch`` is unavailable.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from textwrap import dedent
from typing import Any, Sequence

from ..config import RuntimeSettings, ViewerConstruction, ViewerOptions
from ..options import parse_query
from ..sources import resolve_format
from ..track import SAMPLE_WAYPOINTS, TrackSynthesizer, Waypoint
from ..view import parse_view

LOGGER = logging.getLogger(__name__)

CESIUM_VERSION = "1.114.0"
_CDN = f"https://cdn.jsdelivr.net/npm/cesium@{CESIUM_VERSION}/Build/Cesium"

# Characters that could end an inline <script> or open a comment/entity in it.
_SCRIPT_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"}


@dataclass(slots=True)
class ViewerBundle:
    output_dir: Path
    index_html: Path
    script: Path
    config: Path

    @property
    def assets(self) -> tuple[Path, Path]:
        return (self.script, self.config)


class CesiumViewerRenderer:
    """Write ``index.html`` plus ``assets/`` for one startup query string."""

    slug = "cesium-viewer"

    def __init__(
        self,
        *,
        query: str = "",
        waypoints: Sequence[Waypoint] = SAMPLE_WAYPOINTS,
        runtime: RuntimeSettings | None = None,
    ) -> None:
        self.query = query
        self.waypoints = tuple(waypoints)
        self.runtime = runtime

    def build(self, *, output_dir: Path) -> ViewerBundle:
        output_dir = Path(output_dir)
        assets_dir = output_dir / "assets"
        assets_dir.mkdir(parents=True, exist_ok=True)

        bundle = ViewerBundle(
            output_dir=output_dir,
            index_html=output_dir / "index.html",
            script=assets_dir / "viewer.js",
            config=assets_dir / "config.json",
        )
        config = self.resolved_config()
        bundle.config.write_text(json.dumps(config, indent=2) + "\n", encoding="utf-8")
        bundle.index_html.write_text(self._render_index_html(config), encoding="utf-8")
        bundle.script.write_text(_PAGE_SCRIPT, encoding="utf-8")
        LOGGER.debug("Wrote %s bundle to %s", self.slug, output_dir)
        return bundle

    def resolved_config(self) -> dict[str, Any]:
        """Resolve :attr:`query` into what the page script consumes."""

        runtime = self.runtime or RuntimeSettings.from_env()
        bag = parse_query(self.query)
        options = ViewerOptions.from_bag(bag)
        construction = ViewerConstruction.from_options(options)

        source = None
        if options.source is not None:
            source = {
                "url": options.source,
                "format": resolve_format(options.source, options.source_type),
                "lookAt": options.look_at,
                "flyTo": options.view is None and options.fly_to_enabled,
            }

        pose = parse_view(options.view, default_height=runtime.default_view_height)
        camera = None
        if pose is not None:
            camera = {
                "longitude": pose.longitude,
                "latitude": pose.latitude,
                "height": pose.height,
                "heading": _degrees_or_none(pose.heading),
                "pitch": _degrees_or_none(pose.pitch),
                "roll": _degrees_or_none(pose.roll),
            }

        return {
            "options": dict(bag),
            "viewer": construction.model_dump(mode="json"),
            "source": source,
            "camera": camera,
            "stats": options.stats_enabled,
            "inspector": options.inspector_enabled,
            "debug": options.debug_enabled,
            "theme": options.theme or None,
            "saveCamera": options.save_camera_enabled,
            "saveCameraDelayMs": runtime.save_camera_delay_ms,
            "track": TrackSynthesizer().synthesize(self.waypoints).to_czml(),
        }

    def _render_index_html(self, config: dict[str, Any]) -> str:
        config_json = script_safe_json(config)
        body_class = ' class="cesium-lighter"' if config.get("theme") == "lighter" else ""
        return (
            dedent(
                f"""
            <!DOCTYPE html>
            <html lang=\"en\">
              <head>
                <meta charset=\"utf-8\" />
                <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
                <title>Globe Viewer</title>
                <link rel=\"stylesheet\" href=\"{_CDN}/Widgets/widgets.css\" />
                <style>
                  html, body, #cesiumContainer {{ margin: 0; padding: 0; width: 100%; height: 100%; overflow: hidden; }}
                  #loadingIndicator {{ position: absolute; top: 50%; left: 50%; color: #fff; font-family: system-ui, sans-serif; }}
                </style>
              </head>
              <body{body_class}>
                <div id=\"cesiumContainer\"></div>
                <div id=\"loadingIndicator\">Loading...</div>
                <script>
                  window.GLOBEVIEW_CONFIG = {config_json};
                </script>
                <script src=\"{_CDN}/Cesium.js\"></script>
                <script src=\"assets/viewer.js\"></script>
              </body>
            </html>
            """
            ).strip()
            + "\n"
        )


def script_safe_json(value: Any) -> str:
    """JSON text that can sit inside an inline ``<script>`` element."""

    text = json.dumps(value)
    for char, escape in _SCRIPT_ESCAPES.items():
        text = text.replace(char, escape)
    return text


def _degrees_or_none(value: float | None) -> float | None:
    return math.degrees(value) if value is not None else None


_PAGE_SCRIPT = (
    dedent(
        """
    (async function () {
      const config = window.GLOBEVIEW_CONFIG || {};
      const options = Object.assign({}, config.options);
      const construction = config.viewer || {};
      const loading = document.getElementById("loadingIndicator");

      let baseLayer;
      if (construction.base_layer) {
        baseLayer = Cesium.ImageryLayer.fromProviderAsync(
          Cesium.TileMapServiceImageryProvider.fromUrl(construction.base_layer.url),
        );
      }
      const terrainOptions = construction.terrain || {};
      const terrain = Cesium.Terrain.fromWorldTerrain({
        requestWaterMask: terrainOptions.request_water_mask,
        requestVertexNormals: terrainOptions.request_vertex_normals,
      });

      let viewer;
      try {
        viewer = new Cesium.Viewer("cesiumContainer", {
          baseLayer: baseLayer,
          baseLayerPicker: construction.base_layer_picker,
          scene3DOnly: Boolean(construction.scene3d_only),
          requestRenderMode: construction.request_render_mode,
          terrain: terrain,
        });
        if (Number.isInteger(construction.selected_terrain_index)) {
          const viewModel = viewer.baseLayerPicker.viewModel;
          viewModel.selectedTerrain = viewModel.terrainProviderViewModels[construction.selected_terrain_index];
        }
      } catch (exception) {
        loading.style.display = "none";
        const message = Cesium.formatError(exception);
        console.error(message);
        if (!document.querySelector(".cesium-widget-errorPanel")) {
          window.alert(message);
        }
        return;
      }

      viewer.extend(Cesium.viewerDragDropMixin);
      if (config.inspector) {
        viewer.extend(Cesium.viewerCesiumInspectorMixin);
      }

      const showLoadError = (name, error) => {
        viewer.cesiumWidget.showErrorPanel(
          `An error occurred while loading the file: ${name}`,
          "An error occurred while loading the file, which may indicate that it is invalid.  A detailed error report is below:",
          error,
        );
      };
      viewer.dropError.addEventListener((viewerArg, name, error) => showLoadError(name, error));

      if (config.debug) {
        const context = viewer.scene.context;
        context.validateShaderProgram = true;
        context.validateFramebuffer = true;
        context.logShaderCompilation = true;
        context.throwOnWebGLError = true;
      }

      const loaders = {
        czml: (url) => Cesium.CzmlDataSource.load(url),
        geojson: (url) => Cesium.GeoJsonDataSource.load(url),
        kml: (url) => Cesium.KmlDataSource.load(url, {
          camera: viewer.scene.camera,
          canvas: viewer.scene.canvas,
          screenOverlayContainer: viewer.container,
        }),
        gpx: (url) => Cesium.GpxDataSource.load(url),
      };

      const source = config.source;
      if (source) {
        const load = loaders[source.format];
        if (!load) {
          showLoadError(source.url, "Unknown format.");
        } else {
          try {
            const dataSource = await viewer.dataSources.add(load(source.url));
            if (source.lookAt !== null && source.lookAt !== undefined) {
              const entity = dataSource.entities.getById(source.lookAt);
              if (entity) {
                viewer.trackedEntity = entity;
              } else {
                showLoadError(source.url, `No entity with id "${source.lookAt}" exists in the provided data source.`);
              }
            } else if (source.flyTo) {
              viewer.flyTo(dataSource);
            }
          } catch (error) {
            showLoadError(source.url, error);
          }
        }
      }

      if (config.stats) {
        viewer.scene.debugShowFramesPerSecond = true;
      }

      if (config.theme) {
        if (config.theme === "lighter") {
          document.body.classList.add("cesium-lighter");
          viewer.animation.applyThemeChanges();
        } else {
          viewer.cesiumWidget.showErrorPanel(`Unknown theme: ${config.theme}`, "");
        }
      }

      const camera = viewer.camera;
      const pose = config.camera;
      if (pose) {
        const toRadians = (value) => (value === null ? undefined : Cesium.Math.toRadians(value));
        camera.setView({
          destination: Cesium.Cartesian3.fromDegrees(pose.longitude, pose.latitude, pose.height),
          orientation: {
            heading: toRadians(pose.heading),
            pitch: toRadians(pose.pitch),
            roll: toRadians(pose.roll),
          },
        });
      }

      if (config.saveCamera) {
        const formatView = () => {
          const position = camera.positionCartographic;
          let text = `${Cesium.Math.toDegrees(position.longitude)},${Cesium.Math.toDegrees(position.latitude)},${position.height}`;
          if (Cesium.defined(camera.heading)) {
            text += `,${Cesium.Math.toDegrees(camera.heading)},${Cesium.Math.toDegrees(camera.pitch)},${Cesium.Math.toDegrees(camera.roll)}`;
          }
          return text;
        };
        let timeout;
        camera.changed.addEventListener(() => {
          window.clearTimeout(timeout);
          timeout = window.setTimeout(() => {
            options.view = formatView();
            history.replaceState(undefined, "", `?${Cesium.objectToQuery(options)}`);
          }, config.saveCameraDelayMs);
        });
      }

      try {
        const track = new Cesium.CzmlDataSource();
        await track.load(config.track);
        await viewer.dataSources.add(track);
      } catch (error) {
        showLoadError("track", error);
      }
      loading.style.display = "none";
    })().catch((error) => {
      console.error("Globe viewer bootstrap failed", error);
      const loading = document.getElementById("loadingIndicator");
      if (loading) {
        loading.style.display = "none";
      }
    });
    """
    ).strip()
    + "\n"
)
