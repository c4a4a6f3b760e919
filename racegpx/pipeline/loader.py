"""Load the position log and race roster JSON documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from racegpx.common.errors import InputError, LoadError
from racegpx.common.fs import read_json
from racegpx.common.models import Moment, PositionRecord, RaceSetup, TeamRecord

REQUIRED_MOMENT_KEYS = ("lat", "lon", "at")
OPTIONAL_MOMENT_KEYS = {
    "alt": "elevation",
    "lap": "lap",
    "pc": "performance_code",
}


def load_json(path: Path) -> Any:
    """Parse a JSON document; any read or syntax failure becomes ``LoadError``."""
    location = str(path)
    try:
        return read_json(path)
    except FileNotFoundError as exc:
        raise LoadError(f"Input file not found: {location}", location=location) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Cannot read {location}: {exc}", location=location) from exc
    except json.JSONDecodeError as exc:
        raise LoadError(f"Malformed JSON in {location}: {exc}", location=location) from exc


def _text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_moment(raw: Any, location: str, ctx: str) -> Moment:
    if not isinstance(raw, dict):
        raise InputError(f"{location}: {ctx} is not an object", location=location)
    missing = [key for key in REQUIRED_MOMENT_KEYS if raw.get(key) is None]
    if missing:
        raise InputError(f"{location}: {ctx} is missing {', '.join(missing)}", location=location)
    not_numbers = [
        key
        for key in (*REQUIRED_MOMENT_KEYS, "dtf", *OPTIONAL_MOMENT_KEYS)
        if raw.get(key) is not None and not _is_number(raw[key])
    ]
    if not_numbers:
        raise InputError(
            f"{location}: {ctx} has non-numeric {', '.join(not_numbers)}",
            location=location,
        )

    optional = {
        attr: raw[key]
        for key, attr in OPTIONAL_MOMENT_KEYS.items()
        if raw.get(key) is not None
    }
    return Moment(
        timestamp=raw["at"],
        latitude=raw["lat"],
        longitude=raw["lon"],
        distance_to_finish=raw.get("dtf") or 0,
        **optional,
    )


def parse_positions(payload: Any, location: str) -> list[PositionRecord]:
    if not isinstance(payload, list):
        raise InputError(f"{location}: position log must be a JSON array", location=location)

    records: list[PositionRecord] = []
    for idx, raw in enumerate(payload):
        if not isinstance(raw, dict):
            raise InputError(f"{location}: record [{idx}] is not an object", location=location)
        if raw.get("id") is None:
            raise InputError(f"{location}: record [{idx}] has no id", location=location)
        raw_moments = raw.get("moments")
        if not isinstance(raw_moments, list):
            raise InputError(f"{location}: record [{idx}] has no moments array", location=location)
        moments = tuple(
            _parse_moment(moment, location, f"record [{idx}] moment [{m_idx}]")
            for m_idx, moment in enumerate(raw_moments)
        )
        records.append(PositionRecord(boat_id=raw["id"], moments=moments))
    return records


def parse_race_setup(payload: Any, location: str) -> RaceSetup:
    if not isinstance(payload, dict):
        raise InputError(f"{location}: race setup must be a JSON object", location=location)

    raw_teams = payload.get("teams") or []
    if not isinstance(raw_teams, list):
        raise InputError(f"{location}: teams must be a JSON array", location=location)

    teams: list[TeamRecord] = []
    for raw in raw_teams:
        # Teams without an id can never be joined to a boat.
        if not isinstance(raw, dict) or raw.get("id") is None:
            continue
        teams.append(
            TeamRecord(
                team_id=raw["id"],
                name=_text_or_none(raw.get("name")),
                owner=_text_or_none(raw.get("owner")),
                model=_text_or_none(raw.get("model")),
                country=_text_or_none(raw.get("country")),
                sail_number=_text_or_none(raw.get("sail")),
            )
        )
    return RaceSetup(title=_text_or_none(payload.get("title")), teams=tuple(teams))


def load_positions(path: Path) -> list[PositionRecord]:
    return parse_positions(load_json(path), str(path))


def load_race_setup(path: Path) -> RaceSetup:
    return parse_race_setup(load_json(path), str(path))
