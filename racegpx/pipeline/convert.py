"""Join positions to the roster and build the output document."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable

from racegpx.common.constants import CREATOR, DEFAULT_RACE_TITLE, UNKNOWN_FIELD
from racegpx.common.deterministic import stable_sorted
from racegpx.common.logging import log_event
from racegpx.common.models import (
    Metadata,
    Moment,
    OutputDocument,
    OverlayGroup,
    PositionRecord,
    RaceSetup,
    TeamRecord,
    Track,
    TrackPoint,
)
from racegpx.common.time_utils import utc_now
from racegpx.common.xml_utils import format_number


@dataclass(frozen=True)
class BoatLabels:
    name: str
    owner: str
    model: str
    country: str
    sail_number: str


def join_key(value: Any) -> str:
    """Ids compare by their text form, so ``1``, ``1.0`` and ``"1"`` join."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def build_team_lookup(
    teams: Iterable[TeamRecord],
    logger: logging.Logger | None = None,
) -> dict[str, TeamRecord]:
    lookup: dict[str, TeamRecord] = {}
    for team in teams:
        key = join_key(team.team_id)
        if key in lookup and logger is not None:
            log_event(
                logger,
                f"duplicate team id {key}; last entry wins",
                level=logging.WARNING,
                stage="convert",
                event="DUPLICATE_TEAM_ID",
                status="warning",
            )
        lookup[key] = team
    return lookup


def resolve_labels(boat_id: Any, team: TeamRecord | None) -> BoatLabels:
    fallback_name = f"Boat {format_number(boat_id)}"
    if team is None:
        return BoatLabels(fallback_name, UNKNOWN_FIELD, UNKNOWN_FIELD, UNKNOWN_FIELD, "")
    return BoatLabels(
        name=team.name or fallback_name,
        owner=team.owner or UNKNOWN_FIELD,
        model=team.model or UNKNOWN_FIELD,
        country=team.country or UNKNOWN_FIELD,
        sail_number=team.sail_number or "",
    )


def describe_boat(boat_id: Any, labels: BoatLabels) -> str:
    desc = f"Boat ID: {format_number(boat_id)}, Owner: {labels.owner}, Model: {labels.model}, Country: {labels.country}"
    if labels.sail_number:
        desc += f", Sail: {labels.sail_number}"
    return desc


def moment_extensions(moment: Moment) -> tuple[tuple[str, Any], ...]:
    extensions: list[tuple[str, Any]] = [("dtf", moment.distance_to_finish)]
    if moment.elevation is not None:
        extensions.append(("ele", moment.elevation))
    if moment.lap is not None:
        extensions.append(("lap", moment.lap))
    if moment.performance_code is not None:
        extensions.append(("pc", moment.performance_code))
    return tuple(extensions)


def _coordinates_in_range(latitude: Any, longitude: Any) -> bool:
    if not all(isinstance(v, (int, float)) for v in (latitude, longitude)):
        return True
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def build_boat_track(record: PositionRecord, team: TeamRecord | None) -> Track:
    labels = resolve_labels(record.boat_id, team)
    moments = stable_sorted(record.moments, key=lambda moment: moment.timestamp)
    points = tuple(
        TrackPoint(
            latitude=moment.latitude,
            longitude=moment.longitude,
            timestamp=moment.timestamp,
            extensions=moment_extensions(moment),
        )
        for moment in moments
    )
    return Track(
        name=f"{labels.name} ({labels.owner})",
        description=describe_boat(record.boat_id, labels),
        points=points,
    )


def build_overlay_tracks(group: OverlayGroup) -> list[Track]:
    tracks = []
    for overlay_track in group.tracks:
        points = tuple(
            TrackPoint(
                latitude=point.latitude,
                longitude=point.longitude,
                timestamp=point.timestamp,
                extensions=(("overlay", "true"), ("color", group.color)),
            )
            for point in overlay_track.points
        )
        tracks.append(
            Track(
                name=f"{group.name} - {overlay_track.name}",
                description=f"Overlay track from {group.source}",
                points=points,
            )
        )
    return tracks


def convert_document(
    positions: Iterable[PositionRecord],
    race_setup: RaceSetup,
    overlays: Iterable[OverlayGroup] = (),
    *,
    creator: str = CREATOR,
    default_title: str = DEFAULT_RACE_TITLE,
    clock: Callable[[], datetime] = utc_now,
    logger: logging.Logger | None = None,
) -> OutputDocument:
    """Boat tracks in input order, then overlay tracks in group then track order."""
    lookup = build_team_lookup(race_setup.teams, logger)

    tracks: list[Track] = []
    for record in positions:
        track = build_boat_track(record, lookup.get(join_key(record.boat_id)))
        tracks.append(track)
        out_of_range = sum(
            1 for point in track.points if not _coordinates_in_range(point.latitude, point.longitude)
        )
        if out_of_range and logger is not None:
            log_event(
                logger,
                f"boat {format_number(record.boat_id)} has {out_of_range} out-of-range coordinates (kept as-is)",
                level=logging.WARNING,
                stage="convert",
                event="COORDINATES_OUT_OF_RANGE",
                status="warning",
                points=out_of_range,
            )

    for group in overlays:
        tracks.extend(build_overlay_tracks(group))

    metadata = Metadata(
        title=race_setup.title or default_title,
        generation_time=clock(),
        description=f"Converted from race data using {creator} with overlays",
    )
    if logger is not None:
        log_event(
            logger,
            "document built",
            stage="convert",
            event="CONVERT_DONE",
            status="ok",
            tracks=len(tracks),
            points=sum(len(track.points) for track in tracks),
        )
    return OutputDocument(metadata=metadata, tracks=tuple(tracks))
