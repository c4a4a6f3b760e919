from __future__ import annotations

import logging
from pathlib import Path

from racegpx.common.http import DownloadResult
from racegpx.overlay.garmin import (
    download_garmin_track,
    extract_activity_id,
    is_mapshare_url,
    looks_like_gpx,
    to_download_url,
)


def test_activity_url_maps_to_details_endpoint():
    url = "https://connect.garmin.com/modern/activity/1234567890"

    assert extract_activity_id(url) == "1234567890"
    assert to_download_url(url) == (
        "https://connect.garmin.com/modern/proxy/activity-service-1.1/json/activity/1234567890/details"
    )


def test_share_and_other_urls_unchanged():
    assert to_download_url("https://share.garmin.com/zimmer") == "https://share.garmin.com/zimmer"
    assert to_download_url("https://example.com/t.gpx") == "https://example.com/t.gpx"
    assert extract_activity_id("https://example.com/t.gpx") is None


def test_mapshare_detection():
    assert is_mapshare_url("https://share.garmin.com/zimmer")
    assert not is_mapshare_url("https://share.garmin.com/activity/1")
    assert not is_mapshare_url("https://connect.garmin.com/modern/activity/1")


def test_looks_like_gpx(tmp_path: Path):
    good = tmp_path / "good.gpx"
    good.write_text('<?xml version="1.0"?><gpx></gpx>', encoding="utf-8")
    bad = tmp_path / "bad.gpx"
    bad.write_text("<html></html>", encoding="utf-8")

    assert looks_like_gpx(good)
    assert not looks_like_gpx(bad)


class FakeClient:
    def __init__(self, content_type: str, body: bytes):
        self.content_type = content_type
        self.body = body
        self.urls: list[str] = []

    def download(self, url: str, target_path: Path) -> DownloadResult:
        self.urls.append(url)
        target_path.write_bytes(self.body)
        return DownloadResult(url, url, 200, self.content_type, target_path, [])


def test_download_warns_on_html(caplog, tmp_path: Path):
    logger = logging.getLogger("racegpx.test.garmin")
    client = FakeClient("text/html; charset=utf-8", b"<html></html>")

    with caplog.at_level(logging.INFO, logger=logger.name):
        result = download_garmin_track("https://share.garmin.com/zimmer", tmp_path / "g.gpx", client, logger)

    events = [getattr(record, "event", None) for record in caplog.records]
    assert result.path == tmp_path / "g.gpx"
    assert client.urls == ["https://share.garmin.com/zimmer"]
    assert "GARMIN_MAPSHARE_URL" in events
    assert "GARMIN_HTML_RESPONSE" in events
    assert "GARMIN_NOT_GPX" in events
