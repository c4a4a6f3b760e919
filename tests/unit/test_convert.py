from __future__ import annotations

import logging
from datetime import datetime, timezone

from racegpx.common.models import (
    Moment,
    OverlayGroup,
    OverlayPoint,
    OverlayTrack,
    PositionRecord,
    RaceSetup,
    TeamRecord,
)
from racegpx.pipeline.convert import build_team_lookup, convert_document, join_key

FIXED = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _convert(positions, setup, overlays=()):
    return convert_document(positions, setup, overlays, clock=lambda: FIXED)


def test_track_per_record_in_input_order():
    positions = [
        PositionRecord(boat_id=9, moments=()),
        PositionRecord(boat_id=1, moments=()),
        PositionRecord(boat_id=9, moments=()),
    ]

    document = _convert(positions, RaceSetup())

    assert [track.name for track in document.tracks] == [
        "Boat 9 (Unknown)",
        "Boat 1 (Unknown)",
        "Boat 9 (Unknown)",
    ]


def test_moments_sorted_by_time_and_stable_on_ties():
    moments = (
        Moment(timestamp=30, latitude=3, longitude=3),
        Moment(timestamp=10, latitude=1, longitude=1),
        Moment(timestamp=20, latitude=2, longitude=2, distance_to_finish=5),
        Moment(timestamp=20, latitude=2.5, longitude=2.5, distance_to_finish=4),
    )

    document = _convert([PositionRecord(boat_id=1, moments=moments)], RaceSetup())

    points = document.tracks[0].points
    assert [point.timestamp for point in points] == [10, 20, 20, 30]
    assert [point.latitude for point in points] == [1, 2, 2.5, 3]


def test_unknown_boat_uses_fallback_labels():
    document = _convert([PositionRecord(boat_id=5)], RaceSetup(teams=(TeamRecord(team_id=6, name="Other"),)))

    track = document.tracks[0]
    assert track.name == "Boat 5 (Unknown)"
    assert track.description == "Boat ID: 5, Owner: Unknown, Model: Unknown, Country: Unknown"


def test_known_boat_with_sail_number():
    team = TeamRecord(team_id=1, name="Aimant de Fille", owner="Steven Ernest", model="J/145", country="US", sail_number="USA 1")

    document = _convert([PositionRecord(boat_id=1)], RaceSetup(teams=(team,)))

    assert document.tracks[0].name == "Aimant de Fille (Steven Ernest)"
    assert document.tracks[0].description == (
        "Boat ID: 1, Owner: Steven Ernest, Model: J/145, Country: US, Sail: USA 1"
    )


def test_empty_team_fields_fall_back_individually():
    team = TeamRecord(team_id=2, name="", owner="Kim", model=None, country="")

    document = _convert([PositionRecord(boat_id=2)], RaceSetup(teams=(team,)))

    assert document.tracks[0].name == "Boat 2 (Kim)"
    assert document.tracks[0].description == "Boat ID: 2, Owner: Kim, Model: Unknown, Country: Unknown"


def test_duplicate_team_ids_last_wins(caplog):
    logger = logging.getLogger("racegpx.test.convert")
    teams = (TeamRecord(team_id=1, name="First"), TeamRecord(team_id=1.0, name="Second"))

    with caplog.at_level(logging.WARNING, logger=logger.name):
        lookup = build_team_lookup(teams, logger)

    assert lookup["1"].name == "Second"
    assert any(getattr(record, "event", None) == "DUPLICATE_TEAM_ID" for record in caplog.records)


def test_join_key_treats_int_float_and_text_alike():
    assert join_key(1) == join_key(1.0) == join_key("1")


def test_extensions_only_for_present_fields():
    moments = (
        Moment(timestamp=1, latitude=0, longitude=0),
        Moment(timestamp=2, latitude=0, longitude=0, distance_to_finish=3.5, elevation=4, lap=2, performance_code=99),
    )

    document = _convert([PositionRecord(boat_id=1, moments=moments)], RaceSetup())

    first, second = document.tracks[0].points
    assert first.extensions == (("dtf", 0),)
    assert second.extensions == (("dtf", 3.5), ("ele", 4), ("lap", 2), ("pc", 99))


def test_out_of_range_coordinates_pass_through():
    moments = (Moment(timestamp=1, latitude=95.0, longitude=-200.0),)

    document = convert_document(
        [PositionRecord(boat_id=1, moments=moments)],
        RaceSetup(),
        clock=lambda: FIXED,
        logger=logging.getLogger("racegpx.test.range"),
    )

    point = document.tracks[0].points[0]
    assert (point.latitude, point.longitude) == (95.0, -200.0)


def test_overlay_tracks_follow_boat_tracks_in_group_order():
    garmin = OverlayGroup(
        name="Garmin Track",
        color="FF0000",
        source="Garmin",
        tracks=(OverlayTrack(name="Leg 1", points=(OverlayPoint(1.0, 2.0, 100.0),)),),
    )
    local = OverlayGroup(
        name="Rival",
        color="00FF00",
        source="rival.gpx",
        tracks=(
            OverlayTrack(name="A", points=(OverlayPoint(3.0, 4.0, 200.0),)),
            OverlayTrack(name="B", points=(OverlayPoint(5.0, 6.0, 300.0),)),
        ),
    )

    document = _convert([PositionRecord(boat_id=1)], RaceSetup(), [garmin, local])

    assert [track.name for track in document.tracks] == [
        "Boat 1 (Unknown)",
        "Garmin Track - Leg 1",
        "Rival - A",
        "Rival - B",
    ]
    overlay_point = document.tracks[2].points[0]
    assert overlay_point.extension_dict() == {"overlay": "true", "color": "00FF00"}
    assert "dtf" not in overlay_point.extension_dict()
    assert document.tracks[1].description == "Overlay track from Garmin"


def test_empty_overlay_group_contributes_nothing():
    empty = OverlayGroup(name="Nothing", color="FF0000", source="x.gpx")

    document = _convert([], RaceSetup(), [empty])

    assert document.tracks == ()


def test_metadata_title_default_and_clock():
    document = _convert([], RaceSetup(title=""))

    assert document.metadata.title == "Sailing Race"
    assert document.metadata.generation_time == FIXED


def test_integral_float_boat_id_renders_without_decimal():
    document = _convert([PositionRecord(boat_id=1.0)], RaceSetup())

    track = document.tracks[0]
    assert track.name == "Boat 1 (Unknown)"
    assert track.description == "Boat ID: 1, Owner: Unknown, Model: Unknown, Country: Unknown"
