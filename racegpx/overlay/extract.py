"""Extract track points from GPX overlay documents.

Elements are matched by local name, so GPX 1.0, GPX 1.1 and namespace-less
documents all work. Extraction is best effort: leading whitespace, a BOM or
junk before the document start is dropped, and when the document is not
well-formed every complete ``<trk>`` block is parsed on its own, so a bad block
only loses itself. Content that is not GPX at all yields no tracks instead of
raising.
"""

from __future__ import annotations

import re
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from racegpx.common.constants import UNKNOWN_TRACK_NAME
from racegpx.common.errors import OverlayReadError
from racegpx.common.models import OverlayPoint, OverlayTrack
from racegpx.common.time_utils import parse_iso_to_epoch
from racegpx.common.xml_utils import local_name

_DOCUMENT_START = re.compile(r"<\?xml|<(?:[\w.-]+:)?gpx\b")
_TRACK_BLOCK = re.compile(
    r"<(?:[\w.-]+:)?trk\b(?:(?!<(?:[\w.-]+:)?trk\b).)*?</(?:[\w.-]+:)?trk\s*>",
    re.DOTALL,
)
_BARE_AMPERSAND = re.compile(r"&(?!#?\w+;)")


def _safe_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if local_name(child.tag) == name:
            return child
    return None


def _track_name(trk: ET.Element) -> str:
    name_el = _child(trk, "name")
    if name_el is not None and name_el.text and name_el.text.strip():
        return name_el.text.strip()
    return UNKNOWN_TRACK_NAME


def _parse_point(trkpt: ET.Element, fallback_time: float) -> OverlayPoint | None:
    lat = _safe_float(trkpt.get("lat"))
    lon = _safe_float(trkpt.get("lon"))
    if lat is None or lon is None:
        return None

    timestamp = None
    time_el = _child(trkpt, "time")
    if time_el is not None and time_el.text:
        timestamp = parse_iso_to_epoch(time_el.text)
    return OverlayPoint(
        latitude=lat,
        longitude=lon,
        timestamp=fallback_time if timestamp is None else timestamp,
    )


def _build_track(trk: ET.Element, fallback_time: float) -> OverlayTrack | None:
    points = []
    for elem in trk.iter():
        if local_name(elem.tag) != "trkpt":
            continue
        point = _parse_point(elem, fallback_time)
        if point is not None:
            points.append(point)
    if not points:
        return None
    return OverlayTrack(name=_track_name(trk), points=tuple(points))


@dataclass(frozen=True)
class ExtractResult:
    tracks: list[OverlayTrack]
    # Parser message when the document stopped being well-formed.
    parse_error: str | None = None


def _document_text(document: str | bytes) -> str:
    """Decode and drop whatever precedes the XML declaration or the root element."""
    if isinstance(document, bytes):
        text = document.decode("utf-8-sig", errors="replace")
    else:
        text = document.lstrip("\ufeff")
    text = text.lstrip()
    start = _DOCUMENT_START.search(text)
    if start is not None:
        text = text[start.start():]
    return text


def _parse_block(block: str) -> ET.Element | None:
    for candidate in (block, _BARE_AMPERSAND.sub("&amp;", block)):
        try:
            return ET.fromstring(candidate)
        except ET.ParseError:
            continue
    return None


def _recover_tracks(text: str, fallback_time: float) -> list[OverlayTrack]:
    # Each <trk>...</trk> block is parsed on its own, so one bad block only loses itself.
    tracks = []
    for match in _TRACK_BLOCK.finditer(text):
        trk = _parse_block(match.group(0))
        if trk is None:
            continue
        track = _build_track(trk, fallback_time)
        if track is not None:
            tracks.append(track)
    return tracks


def scan_tracks(document: str | bytes, *, clock: Callable[[], float] = time.time) -> ExtractResult:
    fallback_time = clock()
    text = _document_text(document)
    parser = ET.XMLPullParser(events=("end",))
    tracks: list[OverlayTrack] = []

    def _drain() -> None:
        for _event, elem in parser.read_events():
            if local_name(elem.tag) != "trk":
                continue
            track = _build_track(elem, fallback_time)
            if track is not None:
                tracks.append(track)
            elem.clear()

    try:
        parser.feed(text)
        _drain()
        parser.close()
        _drain()
    except ET.ParseError as exc:
        return ExtractResult(tracks=_recover_tracks(text, fallback_time), parse_error=str(exc))
    return ExtractResult(tracks=tracks)


def extract_tracks(document: str | bytes, *, clock: Callable[[], float] = time.time) -> list[OverlayTrack]:
    """Return the non-empty tracks of a GPX document, in document order."""
    return scan_tracks(document, clock=clock).tracks


def read_overlay_file(path: Path, *, clock: Callable[[], float] = time.time) -> ExtractResult:
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise OverlayReadError(f"Cannot read overlay file {path}: {exc}") from exc
    return scan_tracks(payload, clock=clock)
