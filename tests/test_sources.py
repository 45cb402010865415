# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import asyncio

import pytest

from globeview.config import ViewerOptions
from globeview.errors import ErrorReporter
from globeview.headless import (
    HeadlessDataSource,
    HeadlessEntity,
    HeadlessEntityCollection,
    HeadlessViewer,
    default_loaders,
)
from globeview.options import parse_query
from globeview.sources import (
    PostLoadAction,
    SourceLoader,
    UNKNOWN_FORMAT,
    resolve_format,
)

from tests.helpers import testdata


@pytest.mark.parametrize(
    "source, expected",
    [
        ("x.czml", "czml"),
        ("x.KML", "kml"),
        ("x.kmz", "kml"),
        ("x.geojson", "geojson"),
        ("x.json", "geojson"),
        ("x.TopoJSON", "geojson"),
        ("http://host/track.gpx", "gpx"),
        ("x.bin", None),
        ("x.czml?v=2", None),
        ("czml", None),
    ],
)
def test_resolve_format_by_extension(source, expected) -> None:
    assert resolve_format(source) == expected


def test_explicit_format_wins_verbatim() -> None:
    assert resolve_format("x.kml", "czml") == "czml"
    assert resolve_format("x.bin", "geojson") == "geojson"
    assert resolve_format("x.kml", "shapefile") == "shapefile"


def _options(query: str) -> ViewerOptions:
    return ViewerOptions.from_bag(parse_query(query))


def _loader(viewer=None, loaders=None):
    viewer = viewer or HeadlessViewer()
    reporter = ErrorReporter(viewer)
    return viewer, reporter, SourceLoader(viewer, loaders if loaders is not None else default_loaders(), reporter)


def _source_with(*ids: str) -> HeadlessDataSource:
    return HeadlessDataSource(name="ds", entities=HeadlessEntityCollection([HeadlessEntity(i) for i in ids]))


def test_unknown_format_reports_without_loading() -> None:
    calls = []

    async def spy(url, **kwargs):
        calls.append(url)
        return _source_with()

    viewer, reporter, loader = _loader(loaders={"czml": spy})
    result = asyncio.run(loader.load_and_frame(_options("source=data.bin")))

    assert not result.ok
    assert result.error == UNKNOWN_FORMAT
    assert calls == []
    assert len(reporter.reports) == 1
    report = reporter.reports[0]
    assert report.title == "An error occurred while loading the file: data.bin"
    assert report.detail == "Unknown format."
    assert viewer.error_panels[0][0] == report.title


def test_explicit_unsupported_format_is_unknown() -> None:
    _viewer, reporter, loader = _loader()
    result = asyncio.run(loader.load_and_frame(_options("source=a.czml&sourceType=CZML")))
    assert result.format == "CZML"
    assert result.error == UNKNOWN_FORMAT
    assert reporter.reports[0].detail == "Unknown format."


def test_kml_loader_receives_engine_context() -> None:
    seen = {}

    async def load_kml(url, **kwargs):
        seen.update(kwargs)
        return _source_with()

    async def load_czml(url, **kwargs):
        seen["czml"] = kwargs
        return _source_with()

    viewer, _reporter, loader = _loader(loaders={"kml": load_kml, "czml": load_czml})
    asyncio.run(loader.load("a.kml", "kml"))
    assert seen["camera"] is viewer.camera
    assert seen["canvas"] is viewer.canvas
    assert seen["screen_overlay_container"] is viewer.container

    asyncio.run(loader.load("a.czml", "czml"))
    assert seen["czml"] == {}


def test_loaded_dataset_is_attached() -> None:
    viewer, reporter, loader = _loader()
    result = asyncio.run(loader.load(str(testdata("sample.czml")), "czml"))
    assert result.ok
    assert viewer.data_sources.items == [result.data_source]
    assert result.data_source.name == "Sample Flights"
    assert reporter.reports == []


def test_network_failure_is_reported() -> None:
    viewer, reporter, loader = _loader()
    result = asyncio.run(loader.load("missing/nothing.czml", "czml"))
    assert not result.ok
    assert isinstance(result.error, FileNotFoundError)
    assert "FileNotFoundError" in reporter.reports[0].detail
    assert len(viewer.data_sources) == 0


def test_attach_failure_is_reported_like_load_failure() -> None:
    viewer, reporter, loader = _loader()
    result = asyncio.run(loader.load(str(testdata("broken.czml")), "czml"))
    assert not result.ok
    assert "document packet" in reporter.reports[0].detail


def test_synchronous_loader_exception_is_reported() -> None:
    def explode(url, **kwargs):
        raise RuntimeError("boom")

    _viewer, reporter, loader = _loader(loaders={"gpx": explode})
    result = asyncio.run(loader.load("a.gpx", "gpx"))
    assert not result.ok
    assert "RuntimeError: boom" in reporter.reports[0].detail


def _loaded(viewer_loader, query):
    viewer, reporter, loader = viewer_loader

    async def load(url, **kwargs):
        return _source_with("e1", "e2")

    loader = SourceLoader(viewer, {"czml": load}, reporter)
    return asyncio.run(loader.load_and_frame(_options(query)))


def test_look_at_tracks_entity_and_skips_fly_to() -> None:
    viewer, reporter, loader = parts = _loader()
    result = _loaded(parts, "source=a.czml&lookAt=e2")
    assert result.action is PostLoadAction.TRACK
    assert viewer.tracked_entity.id == "e2"
    assert viewer.flown_to == []
    assert reporter.reports == []


def test_missing_look_at_entity_is_reported() -> None:
    viewer, reporter, _loader_ = parts = _loader()
    result = _loaded(parts, "source=a.czml&lookAt=nope")
    assert result.action is PostLoadAction.MISSING_ENTITY
    assert viewer.tracked_entity is None
    assert viewer.flown_to == []
    assert len(reporter.reports) == 1
    report = reporter.reports[0]
    assert report.kind == "reference"
    assert report.title == "An error occurred while loading the file: a.czml"
    assert report.detail == 'No entity with id "nope" exists in the provided data source.'


def test_look_at_is_independent_of_view() -> None:
    viewer, _reporter, _loader_ = parts = _loader()
    result = _loaded(parts, "source=a.czml&lookAt=e1&view=1,2")
    assert result.action is PostLoadAction.TRACK
    assert viewer.tracked_entity.id == "e1"


def test_fly_to_by_default() -> None:
    viewer, _reporter, _loader_ = parts = _loader()
    result = _loaded(parts, "source=a.czml")
    assert result.action is PostLoadAction.FLY_TO
    assert viewer.flown_to == [result.data_source]


@pytest.mark.parametrize("query", ["source=a.czml&flyTo=false", "source=a.czml&view=1,2"])
def test_no_camera_action(query) -> None:
    viewer, _reporter, _loader_ = parts = _loader()
    result = _loaded(parts, query)
    assert result.action is PostLoadAction.NONE
    assert viewer.flown_to == []
    assert viewer.tracked_entity is None


def test_fly_to_other_false_spellings_still_fly() -> None:
    viewer, _reporter, _loader_ = parts = _loader()
    _loaded(parts, "source=a.czml&flyTo=False")
    assert len(viewer.flown_to) == 1


def test_no_source_is_a_no_op() -> None:
    _viewer, reporter, loader = _loader()
    assert asyncio.run(loader.load_and_frame(_options("view=1,2"))) is None
    assert reporter.reports == []


def test_dataset_rejected_by_collection_is_reported() -> None:
    async def not_a_dataset(url, **kwargs):
        return object()

    viewer, reporter, loader = _loader(loaders={"geojson": not_a_dataset})
    result = asyncio.run(loader.load("a.geojson", "geojson"))
    assert not result.ok
    assert isinstance(result.error, TypeError)
    assert len(reporter.reports) == 1
    assert len(viewer.data_sources) == 0
