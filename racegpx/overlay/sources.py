"""Overlay collection with fail-soft semantics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from racegpx.common.config_loader import ConverterConfig
from racegpx.common.constants import DEFAULT_OVERLAY_COLOR, DEFAULT_OVERLAY_NAME, GARMIN_SOURCE
from racegpx.common.errors import OverlayError
from racegpx.common.http import HttpClient
from racegpx.common.logging import log_event
from racegpx.common.models import OverlayGroup
from racegpx.overlay.extract import ExtractResult, read_overlay_file
from racegpx.overlay.garmin import download_garmin_track


@dataclass
class OverlaySpec:
    """One ``--overlay`` argument; name and color may be overridden after it is added."""

    path: Path
    name: str = DEFAULT_OVERLAY_NAME
    color: str = DEFAULT_OVERLAY_COLOR


def _to_group(result: ExtractResult, *, name: str, color: str, source: str, logger: logging.Logger) -> OverlayGroup:
    if result.parse_error is not None:
        log_event(
            logger,
            f"overlay {source} is not well-formed ({result.parse_error}); kept {len(result.tracks)} tracks",
            level=logging.WARNING,
            stage="overlays",
            source=source,
            event="OVERLAY_MALFORMED",
            status="warning",
            tracks=len(result.tracks),
        )
    group = OverlayGroup(name=name, color=color, source=source, tracks=tuple(result.tracks))
    log_event(
        logger,
        f"added overlay {source} with {len(group.tracks)} tracks",
        stage="overlays",
        source=source,
        event="OVERLAY_ADDED",
        status="ok",
        tracks=len(group.tracks),
        points=group.point_count,
    )
    return group


def _skip(logger: logging.Logger, source: str, exc: OverlayError) -> None:
    log_event(
        logger,
        f"skipping overlay {source}: {exc}",
        level=logging.WARNING,
        stage="overlays",
        source=source,
        event="OVERLAY_SKIPPED",
        status="error",
        error_code=exc.error_code,
    )


def collect_overlays(
    specs: Iterable[OverlaySpec],
    garmin_url: str | None,
    config: ConverterConfig,
    logger: logging.Logger,
    http_client: HttpClient | None = None,
) -> list[OverlayGroup]:
    """Garmin download first, then each overlay file in the order given."""
    groups: list[OverlayGroup] = []

    if garmin_url:
        owns_client = http_client is None
        client = http_client or HttpClient.from_config(config)
        try:
            result = download_garmin_track(garmin_url, config.garmin_download_path, client, logger)
            groups.append(
                _to_group(
                    read_overlay_file(result.path),
                    name=config.garmin_track_name,
                    color=config.garmin_color,
                    source=GARMIN_SOURCE,
                    logger=logger,
                )
            )
        except OverlayError as exc:
            _skip(logger, garmin_url, exc)
        finally:
            if owns_client:
                client.close()

    for spec in specs:
        try:
            result = read_overlay_file(spec.path)
        except OverlayError as exc:
            _skip(logger, str(spec.path), exc)
            continue
        groups.append(_to_group(result, name=spec.name, color=spec.color, source=str(spec.path), logger=logger))

    return groups
