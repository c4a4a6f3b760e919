from pathlib import Path

import pytest

from racegpx.cli import main

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "race"

TIMED_OVERLAY = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><name>Chase Boat</name><trkseg>
    <trkpt lat="33.6" lon="-118.4"><time>2025-07-14T22:00:00Z</time></trkpt>
    <trkpt lat="33.1" lon="-119.0"><time>2025-07-15T02:00:00Z</time></trkpt>
  </trkseg></trk>
</gpx>
"""


def _run_once(out: Path, overlay: Path, run_id: str) -> list[str]:
    exit_code = main(
        [
            str(FIXTURES / "positions.json"),
            str(FIXTURES / "racesetup.json"),
            str(out),
            "--overlay",
            str(overlay),
            "--run-id",
            run_id,
        ]
    )
    assert exit_code == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    # Line 5 is the metadata generation time, the only expected difference.
    assert lines[4].startswith("    <time>")
    return lines[:4] + lines[5:]


@pytest.mark.regression
def test_output_is_byte_stable_apart_from_generation_time(tmp_path: Path):
    overlay = tmp_path / "chase.gpx"
    overlay.write_text(TIMED_OVERLAY, encoding="utf-8")

    first = _run_once(tmp_path / "first.gpx", overlay, "run-a")
    second = _run_once(tmp_path / "second.gpx", overlay, "run-b")

    assert first == second
    assert any("Overlay Track - Chase Boat" in line for line in first)
