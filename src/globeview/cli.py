# SPDX-License-Identifier: Apache-2.0
"""``globeview`` command line: resolve options, emit CZML, run headless, export bundles."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from .bootstrap import ViewerBootstrap
from .config import RuntimeSettings, ViewerConstruction, ViewerOptions
from .headless import HeadlessPage, default_loaders, headless_viewer_factory
from .options import parse_query
from .renderers import create, targets
from .sources import resolve_format
from .track import SAMPLE_WAYPOINTS, TrackSynthesizer, Waypoint
from .utils.cli_helpers import VERBOSITY_ENV, configure_logging_from_env
from .utils.io_utils import open_input, open_output
from .view import format_view, parse_view, sample_pose


def _configure(ns: argparse.Namespace) -> None:
    if getattr(ns, "verbose", False):
        os.environ[VERBOSITY_ENV] = "debug"
    elif getattr(ns, "quiet", False):
        os.environ[VERBOSITY_ENV] = "quiet"
    configure_logging_from_env()


def _write_json(payload: Any, output: str = "-") -> None:
    data = (json.dumps(payload, indent=2) + "\n").encode("utf-8")
    with open_output(output) as f:
        f.write(data)


def _load_waypoints(path: str | None) -> tuple[Waypoint, ...]:
    if not path:
        return SAMPLE_WAYPOINTS
    with open_input(path) as f:
        items = json.loads(f.read().decode("utf-8"))
    return tuple(Waypoint.from_mapping(item) for item in items)


def _lon_lat_height(text: str) -> tuple[float, float, float]:
    parts = text.split(",")
    try:
        lon, lat, height = (float(v) for v in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected 'lon,lat,height', got {text!r}") from None
    return lon, lat, height


def _cmd_options(ns: argparse.Namespace) -> int:
    options = ViewerOptions.from_bag(parse_query(ns.query))
    pose = parse_view(options.view, default_height=RuntimeSettings.from_env().default_view_height)
    _write_json(
        {
            "options": options.model_dump(by_alias=True, exclude_none=True),
            "format": resolve_format(options.source, options.source_type) if options.source else None,
            "view": format_view(pose) if pose else None,
            "viewer": ViewerConstruction.from_options(options).model_dump(mode="json"),
        }
    )
    return 0


def _cmd_track(ns: argparse.Namespace) -> int:
    try:
        waypoints = _load_waypoints(ns.waypoints)
        track = TrackSynthesizer(entity_id=ns.entity_id, name=ns.name).synthesize(waypoints)
    except (OSError, ValueError, KeyError) as exc:
        logging.error("Cannot build track: %s", exc)
        return 2
    _write_json(track.to_czml(), ns.output)
    return 0


async def _run_headless(ns: argparse.Namespace) -> int:
    page = HeadlessPage(ns.query)
    runtime = RuntimeSettings.from_env()
    bootstrap = ViewerBootstrap(
        page,
        headless_viewer_factory,
        default_loaders(),
        runtime=runtime,
        waypoints=_load_waypoints(ns.waypoints),
    )
    result = await bootstrap.run()
    if result is None:
        _write_json({"error": page.alerts[-1] if page.alerts else "viewer construction failed"})
        return 1
    if ns.move:
        lon, lat, height = ns.move
        result.viewer.camera.move_to_degrees(lon, lat, height)
        if result.persister is not None:
            await asyncio.sleep(runtime.save_camera_delay + 0.05)
    if ns.settle:
        await asyncio.sleep(ns.settle)
    viewer = result.viewer
    _write_json(
        {
            "url": page.location.search,
            "steps": result.steps,
            "errors": [r.model_dump() for r in result.reporter.reports],
            "dataSources": [ds.name for ds in viewer.data_sources.items],
            "trackedEntity": viewer.tracked_entity.id if viewer.tracked_entity else None,
            "flewTo": [ds.name for ds in viewer.flown_to],
            "camera": format_view(sample_pose(viewer.camera)),
            "bodyClasses": sorted(page.body_classes),
        }
    )
    if result.persister is not None:
        result.persister.uninstall()
    return 0


def _cmd_run(ns: argparse.Namespace) -> int:
    return asyncio.run(_run_headless(ns))


def _cmd_bundle(ns: argparse.Namespace) -> int:
    renderer = create(ns.target, query=ns.query, waypoints=_load_waypoints(ns.waypoints))
    bundle = renderer.build(output_dir=Path(ns.output))
    logging.info("Generated viewer bundle at %s", bundle.index_html)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="globeview", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Errors only")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("options", help="Show how a startup query string resolves")
    p.add_argument("query", help="Query string, e.g. 'source=a.czml&view=30,10'")
    p.set_defaults(func=_cmd_options)

    p = sub.add_parser("track", help="Emit the satellite track as CZML")
    p.add_argument("--waypoints", help="JSON list of {time, longitude, latitude, height} ('-' for stdin)")
    p.add_argument("--output", default="-", help="Output file ('-' for stdout)")
    p.add_argument("--entity-id", default="satellite")
    p.add_argument("--name", default="My Satellite")
    p.set_defaults(func=_cmd_track)

    p = sub.add_parser("run", help="Run the startup pipeline against the headless engine")
    p.add_argument("query", nargs="?", default="")
    p.add_argument("--waypoints")
    p.add_argument(
        "--move", type=_lon_lat_height, help="Simulate navigation to 'lon,lat,height' after startup"
    )
    p.add_argument("--settle", type=float, default=0.0, help="Seconds to wait before reporting")
    p.set_defaults(func=_cmd_run)

    p = sub.add_parser("bundle", help="Write a static CesiumJS viewer page")
    p.add_argument("query", nargs="?", default="")
    p.add_argument("--output", required=True, help="Output directory")
    p.add_argument("--target", default="cesium-viewer", choices=targets())
    p.add_argument("--waypoints")
    p.set_defaults(func=_cmd_bundle)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(sys.argv[1:] if argv is None else argv)
    _configure(ns)
    return ns.func(ns)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
