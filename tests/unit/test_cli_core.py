import pytest

from racegpx.cli import overlay_specs, parse_args
from racegpx.common.config_loader import load_config


def test_parse_args_defaults():
    args = parse_args(["positions.json", "setup.json"])
    assert args.positions == "positions.json"
    assert args.race_setup == "setup.json"
    assert args.output is None
    assert args.overlays == []
    assert args.garmin_url is None
    assert args.list_overlays is False


def test_overlay_name_and_color_apply_to_latest_overlay():
    args = parse_args(
        [
            "positions.json",
            "setup.json",
            "--overlay-name",
            "ignored",
            "--overlay",
            "a.gpx",
            "--overlay",
            "b.gpx",
            "--overlay-name",
            "Rival",
            "--overlay-color",
            "00FF00",
            "out.gpx",
        ]
    )

    specs = overlay_specs(args, load_config())

    assert args.output == "out.gpx"
    assert [(str(s.path), s.name, s.color) for s in specs] == [
        ("a.gpx", "Overlay Track", "FF0000"),
        ("b.gpx", "Rival", "00FF00"),
    ]


def test_list_overlays_needs_no_positionals():
    args = parse_args(["--list-overlays"])
    assert args.list_overlays is True


def test_missing_positionals_exit_with_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        parse_args(["positions.json"])

    assert excinfo.value.code == 1
    assert "usage:" in capsys.readouterr().err
