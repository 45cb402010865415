# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json
import subprocess
import sys

import pytest

from globeview.cli import main
from globeview.options import parse_query

from tests.helpers import testdata


@pytest.mark.cli()
def test_options_command(capsys) -> None:
    rc = main(["options", "source=a.geojson&flyTo=false&view=30,10&extra=1"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["options"] == {"source": "a.geojson", "flyTo": "false", "view": "30,10"}
    assert out["format"] == "geojson"
    assert out["view"] == "30,10,300"
    assert out["viewer"]["base_layer_picker"] is True


@pytest.mark.cli()
def test_track_command_writes_czml(tmp_path) -> None:
    out_path = tmp_path / "nested" / "track.czml"
    rc = main(["track", "--output", str(out_path)])
    assert rc == 0
    packets = json.loads(out_path.read_text(encoding="utf-8"))
    assert packets[1]["position"]["cartesian"][0::4] == [0.0, 3600.0, 7200.0, 10800.0]


@pytest.mark.cli()
def test_track_command_reads_waypoints(capsys) -> None:
    rc = main(["track", "--waypoints", str(testdata("waypoints.json")), "--entity-id", "leo"])
    assert rc == 0
    packets = json.loads(capsys.readouterr().out)
    assert packets[1]["id"] == "leo"
    assert packets[1]["availability"] == "2016-12-31T23:59:00Z/2017-01-01T00:01:00Z"


@pytest.mark.cli()
def test_track_command_rejects_bad_waypoints(tmp_path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text('[{"time": "never", "longitude": 0, "latitude": 0}]', encoding="utf-8")
    assert main(["track", "--waypoints", str(bad)]) == 2


@pytest.mark.cli()
def test_run_command_reports_summary(capsys) -> None:
    rc = main(["-q", "run", f"source={testdata('sample.czml')}&lookAt=sat-1&theme=foo"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["trackedEntity"] == "sat-1"
    assert out["flewTo"] == []
    assert out["dataSources"] == ["Sample Flights", "Satellite Track"]
    assert [e["title"] for e in out["errors"]] == ["Unknown theme: foo"]
    assert out["steps"][-1] == "ready"


@pytest.mark.cli()
def test_run_command_persists_moved_camera(capsys, monkeypatch) -> None:
    monkeypatch.setenv("GLOBEVIEW_SAVE_CAMERA_DELAY_MS", "20")
    rc = main(["-q", "run", "view=1,2", "--move", "12,34,5000"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    lon, lat, height = (float(v) for v in parse_query(out["url"])["view"].split(",")[:3])
    assert lon == pytest.approx(12.0)
    assert lat == pytest.approx(34.0)
    assert height == pytest.approx(5000.0, abs=1e-3)


@pytest.mark.cli()
@pytest.mark.parametrize("move", ["12,34", "a,b,c", "1,2,3,4"])
def test_run_command_rejects_malformed_move(move, capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["run", "--move", move])
    assert exc.value.code == 2
    assert "lon,lat,height" in capsys.readouterr().err


@pytest.mark.cli()
def test_options_command_uses_configured_default_height(capsys, monkeypatch) -> None:
    monkeypatch.setenv("GLOBEVIEW_DEFAULT_VIEW_HEIGHT", "750")
    assert main(["options", "view=1,2"]) == 0
    assert json.loads(capsys.readouterr().out)["view"] == "1,2,750"


@pytest.mark.cli()
def test_bundle_command(tmp_path) -> None:
    rc = main(["-q", "bundle", "view=30,10", "--output", str(tmp_path / "site")])
    assert rc == 0
    assert (tmp_path / "site" / "index.html").exists()
    assert (tmp_path / "site" / "assets" / "config.json").exists()


@pytest.mark.cli()
def test_module_entry_point() -> None:
    proc = subprocess.run(
        [sys.executable, "-m", "globeview", "options", "view=5,6"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 0, proc.stderr
    assert json.loads(proc.stdout)["view"] == "5,6,300"
