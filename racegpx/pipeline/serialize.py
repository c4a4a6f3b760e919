"""GPX 1.1 text rendering."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable

from racegpx.common.constants import CREATOR, DEFAULT_RACE_TITLE, GPX_NAMESPACE, GPX_VERSION
from racegpx.common.models import OutputDocument, OverlayGroup, PositionRecord, RaceSetup, Track, TrackPoint
from racegpx.common.time_utils import epoch_to_gpx_time, to_gpx_time, utc_now
from racegpx.common.xml_utils import escape_xml, format_number
from racegpx.pipeline.convert import convert_document

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def _render_point(point: TrackPoint) -> list[str]:
    lines = [
        f'      <trkpt lat="{escape_xml(format_number(point.latitude))}" '
        f'lon="{escape_xml(format_number(point.longitude))}">',
        f"        <time>{epoch_to_gpx_time(point.timestamp)}</time>",
        "        <extensions>",
    ]
    for name, value in point.extensions:
        lines.append(f"          <{name}>{escape_xml(format_number(value))}</{name}>")
    lines.append("        </extensions>")
    lines.append("      </trkpt>")
    return lines


def _render_track(track: Track) -> list[str]:
    lines = [
        "  <trk>",
        f"    <name>{escape_xml(track.name)}</name>",
        f"    <desc>{escape_xml(track.description)}</desc>",
        "    <trkseg>",
    ]
    for point in track.points:
        lines.extend(_render_point(point))
    lines.append("    </trkseg>")
    lines.append("  </trk>")
    return lines


def render_gpx(document: OutputDocument, *, creator: str = CREATOR) -> str:
    metadata = document.metadata
    lines = [
        XML_DECLARATION,
        f'<gpx version="{GPX_VERSION}" creator="{escape_xml(creator)}" xmlns="{GPX_NAMESPACE}">',
        "  <metadata>",
        f"    <name>{escape_xml(metadata.title)}</name>",
        f"    <time>{to_gpx_time(metadata.generation_time)}</time>",
        f"    <desc>{escape_xml(metadata.description)}</desc>",
        "  </metadata>",
    ]
    for track in document.tracks:
        lines.extend(_render_track(track))
    lines.append("</gpx>")
    return "\n".join(lines) + "\n"


def convert_to_gpx(
    positions: Iterable[PositionRecord],
    race_setup: RaceSetup,
    overlays: Iterable[OverlayGroup] = (),
    *,
    creator: str = CREATOR,
    default_title: str = DEFAULT_RACE_TITLE,
    clock: Callable[[], datetime] = utc_now,
    logger: logging.Logger | None = None,
) -> str:
    document = convert_document(
        positions,
        race_setup,
        overlays,
        creator=creator,
        default_title=default_title,
        clock=clock,
        logger=logger,
    )
    return render_gpx(document, creator=creator)
