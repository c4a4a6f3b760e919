"""Garmin share/Connect URL handling and track download."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from racegpx.common.errors import OverlayReadError
from racegpx.common.http import DownloadResult, HttpClient
from racegpx.common.logging import log_event

ACTIVITY_ID_RE = re.compile(r"activity/(\d+)")
CONNECT_DETAILS_URL = "https://connect.garmin.com/modern/proxy/activity-service-1.1/json/activity/{activity_id}/details"
MAPSHARE_HOST = "share.garmin.com"


def extract_activity_id(garmin_url: str) -> str | None:
    match = ACTIVITY_ID_RE.search(garmin_url)
    return match.group(1) if match else None


def to_download_url(garmin_url: str) -> str:
    """Garmin Connect activity links map to the activity details endpoint; anything else is fetched as-is."""
    activity_id = extract_activity_id(garmin_url)
    if activity_id:
        return CONNECT_DETAILS_URL.format(activity_id=activity_id)
    return garmin_url


def is_mapshare_url(garmin_url: str) -> bool:
    return MAPSHARE_HOST in garmin_url and "activity" not in garmin_url


def looks_like_gpx(path: Path) -> bool:
    try:
        with path.open("rb") as f:
            head = f.read(4096)
    except OSError as exc:
        raise OverlayReadError(f"Cannot read downloaded file {path}: {exc}") from exc
    return b"<?xml" in head and b"<gpx" in head


def download_garmin_track(
    garmin_url: str,
    target_path: Path,
    client: HttpClient,
    logger: logging.Logger,
) -> DownloadResult:
    """Download a Garmin track; suspicious responses are logged, not rejected."""
    if is_mapshare_url(garmin_url):
        log_event(
            logger,
            "MapShare pages rarely serve GPX directly; export the track manually if this fails",
            level=logging.WARNING,
            stage="overlays",
            source=garmin_url,
            event="GARMIN_MAPSHARE_URL",
            status="warning",
        )

    download_url = to_download_url(garmin_url)
    log_event(logger, f"downloading Garmin track from {download_url}", stage="overlays", source=download_url, event="FETCH_START")
    result = client.download(download_url, target_path)

    for hop in result.redirects:
        log_event(logger, f"redirected to {hop}", level=logging.DEBUG, stage="overlays", source=download_url, event="FETCH_REDIRECT")
    if "text/html" in result.content_type and "application/gpx+xml" not in result.content_type:
        log_event(
            logger,
            f"received HTML ({result.content_type}) instead of GPX",
            level=logging.WARNING,
            stage="overlays",
            source=result.final_url,
            event="GARMIN_HTML_RESPONSE",
            status="warning",
        )
    if not looks_like_gpx(result.path):
        log_event(
            logger,
            f"downloaded file {result.path} does not look like GPX",
            level=logging.WARNING,
            stage="overlays",
            source=result.final_url,
            event="GARMIN_NOT_GPX",
            status="warning",
        )
    log_event(logger, f"downloaded {result.path}", stage="overlays", source=result.final_url, event="FETCH_DONE", status="ok")
    return result
