"""Convert race position logs and a race roster into GPX, with optional overlay tracks."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from racegpx.common.config_loader import ConverterConfig, load_config
from racegpx.common.constants import EXIT_HARD_FAIL, EXIT_SUCCESS
from racegpx.common.errors import OutputWriteError, PipelineError
from racegpx.common.fs import write_text
from racegpx.common.ids import generate_run_id
from racegpx.common.logging import build_logger, log_event
from racegpx.overlay.listing import format_overlay_listing, list_overlay_files
from racegpx.overlay.sources import OverlaySpec, collect_overlays
from racegpx.pipeline.loader import load_positions, load_race_setup
from racegpx.pipeline.serialize import convert_to_gpx


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_HARD_FAIL, f"{self.prog}: error: {message}\n")


class _AddOverlay(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        overlays = list(getattr(namespace, self.dest) or [])
        overlays.append({"path": values, "name": None, "color": None})
        setattr(namespace, self.dest, overlays)


class _SetLastOverlay(argparse.Action):
    """``--overlay-name``/``--overlay-color`` apply to the overlay added just before."""

    def __init__(self, option_strings, dest, field: str, **kwargs):
        self.field = field
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        overlays = getattr(namespace, self.dest) or []
        if overlays:
            overlays[-1][self.field] = values


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="racegpx", description=__doc__)
    parser.add_argument("positions", nargs="?", help="position log JSON (e.g. AllPositions3.json)")
    parser.add_argument("race_setup", nargs="?", help="race roster JSON (e.g. RaceSetup.json)")
    parser.add_argument("output", nargs="?", default=None, help="output GPX file")
    parser.add_argument("--overlay", dest="overlays", action=_AddOverlay, default=[], metavar="FILE")
    parser.add_argument("--overlay-name", dest="overlays", action=_SetLastOverlay, field="name", metavar="NAME")
    parser.add_argument("--overlay-color", dest="overlays", action=_SetLastOverlay, field="color", metavar="COLOR")
    parser.add_argument("--garmin-url", default=None, metavar="URL")
    parser.add_argument("--list-overlays", action="store_true")
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--overlay-config", default=None, help="YAML file merged over --config")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--run-id", default=None)
    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)
    if not args.list_overlays and (args.positions is None or args.race_setup is None):
        parser.error("the positions and race_setup arguments are required")
    return args


def overlay_specs(args: argparse.Namespace, config: ConverterConfig) -> list[OverlaySpec]:
    return [
        OverlaySpec(
            path=Path(item["path"]),
            name=item["name"] or config.overlay_name,
            color=item["color"] or config.overlay_color,
        )
        for item in args.overlays
    ]


def print_overlay_listing(config: ConverterConfig) -> None:
    entries = list_overlay_files(config.overlay_dir)
    for line in format_overlay_listing(config.overlay_dir, entries):
        print(line)


def run_command(args: argparse.Namespace, config: ConverterConfig, logger: logging.Logger | None = None) -> int:
    run_id = args.run_id or generate_run_id()
    if logger is None:
        logger = build_logger(run_id, log_dir=Path(args.log_dir) if args.log_dir else None, level=args.log_level)

    if args.list_overlays:
        print_overlay_listing(config)
        return EXIT_SUCCESS

    output_path = Path(args.output or config.output_filename)

    log_event(logger, f"reading positions from {args.positions}", run_id=run_id, stage="load", event="LOAD", source=args.positions)
    positions = load_positions(Path(args.positions))
    log_event(logger, f"reading race setup from {args.race_setup}", run_id=run_id, stage="load", event="LOAD", source=args.race_setup)
    race_setup = load_race_setup(Path(args.race_setup))
    log_event(
        logger,
        f"converting {len(positions)} boats to GPX",
        run_id=run_id,
        stage="load",
        event="LOAD_DONE",
        status="ok",
        boats=len(positions),
    )

    overlays = collect_overlays(overlay_specs(args, config), args.garmin_url, config, logger)

    content = convert_to_gpx(
        positions,
        race_setup,
        overlays,
        creator=config.creator,
        default_title=config.default_title,
        logger=logger,
    )

    try:
        write_text(output_path, content)
    except OSError as exc:
        raise OutputWriteError(f"Cannot write {output_path}: {exc}") from exc

    log_event(
        logger,
        f"wrote {output_path}: {len(positions)} race tracks, {len(overlays)} overlay sources",
        run_id=run_id,
        stage="write",
        event="RUN_SUMMARY",
        status="ok",
        boats=len(positions),
        tracks=len(positions) + sum(len(group.tracks) for group in overlays),
        points=sum(len(record.moments) for record in positions) + sum(group.point_count for group in overlays),
        source=str(output_path),
    )
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    args.run_id = args.run_id or generate_run_id()
    logger = build_logger(args.run_id, log_dir=Path(args.log_dir) if args.log_dir else None, level=args.log_level)
    try:
        config = load_config(
            Path(args.config) if args.config else None,
            overlay_path=Path(args.overlay_config) if args.overlay_config else None,
        )
        return run_command(args, config, logger)
    except PipelineError as exc:
        log_event(logger, str(exc), level=logging.ERROR, event="RUN_FAIL", status="error", error_code=exc.error_code)
        return EXIT_HARD_FAIL
    except Exception as exc:
        log_event(logger, f"unexpected failure: {exc}", level=logging.ERROR, event="RUN_FAIL", status="error", error_code="UNEXPECTED_ERROR")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
