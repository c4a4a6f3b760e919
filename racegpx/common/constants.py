"""Application constants."""

USER_AGENT = "racegpx/1.0 (+race track converter)"
CREATOR = "racegpx-converter"
GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
GPX_VERSION = "1.1"

DEFAULT_RACE_TITLE = "Sailing Race"
DEFAULT_OUTPUT_FILENAME = "race_tracks_with_overlay.gpx"
DEFAULT_OVERLAY_DIR = "./data"
DEFAULT_OVERLAY_NAME = "Overlay Track"
DEFAULT_OVERLAY_COLOR = "FF0000"
UNKNOWN_TRACK_NAME = "Unknown Track"
UNKNOWN_FIELD = "Unknown"

GARMIN_TRACK_NAME = "Garmin Track"
GARMIN_SOURCE = "Garmin"
GARMIN_DOWNLOAD_FILENAME = "garmin_overlay.gpx"

EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 1
JSON_LOG_FIELDS = (
    "timestamp",
    "level",
    "run_id",
    "stage",
    "source",
    "event",
    "status",
    "boats",
    "tracks",
    "points",
    "error_code",
    "message",
)
