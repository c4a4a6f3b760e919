"""Data models used across the converter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

Number = Union[int, float]


@dataclass(frozen=True)
class Moment:
    timestamp: Number
    latitude: Number
    longitude: Number
    distance_to_finish: Number = 0
    elevation: Number | None = None
    lap: Number | None = None
    performance_code: Number | None = None


@dataclass(frozen=True)
class PositionRecord:
    boat_id: Any
    moments: tuple[Moment, ...] = ()


@dataclass(frozen=True)
class TeamRecord:
    team_id: Any
    name: str | None = None
    owner: str | None = None
    model: str | None = None
    country: str | None = None
    sail_number: str | None = None


@dataclass(frozen=True)
class RaceSetup:
    title: str | None = None
    teams: tuple[TeamRecord, ...] = ()


@dataclass(frozen=True)
class OverlayPoint:
    latitude: float
    longitude: float
    timestamp: float


@dataclass(frozen=True)
class OverlayTrack:
    name: str
    points: tuple[OverlayPoint, ...]


@dataclass(frozen=True)
class OverlayGroup:
    """Tracks pulled from one overlay source, rendered with one name and color."""

    name: str
    color: str
    source: str
    tracks: tuple[OverlayTrack, ...] = ()

    @property
    def point_count(self) -> int:
        return sum(len(track.points) for track in self.tracks)


@dataclass(frozen=True)
class TrackPoint:
    latitude: Number
    longitude: Number
    timestamp: Number
    # Ordered (name, value) pairs rendered inside <extensions>.
    extensions: tuple[tuple[str, Any], ...] = ()

    def extension_dict(self) -> dict[str, Any]:
        return dict(self.extensions)


@dataclass(frozen=True)
class Track:
    name: str
    description: str
    points: tuple[TrackPoint, ...] = ()


@dataclass(frozen=True)
class Metadata:
    title: str
    generation_time: datetime
    description: str


@dataclass(frozen=True)
class OutputDocument:
    metadata: Metadata
    tracks: tuple[Track, ...] = field(default_factory=tuple)
