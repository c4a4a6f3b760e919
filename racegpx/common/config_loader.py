"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from racegpx.common import constants
from racegpx.common.errors import ConfigError
from racegpx.common.fs import read_yaml
from racegpx.common.schema import validate_converter_config

DEFAULT_CONFIG: dict[str, dict[str, Any]] = {
    "output": {
        "default_filename": constants.DEFAULT_OUTPUT_FILENAME,
        "creator": constants.CREATOR,
    },
    "race": {
        "default_title": constants.DEFAULT_RACE_TITLE,
    },
    "overlays": {
        "directory": constants.DEFAULT_OVERLAY_DIR,
        "default_name": constants.DEFAULT_OVERLAY_NAME,
        "default_color": constants.DEFAULT_OVERLAY_COLOR,
    },
    "garmin": {
        "download_filename": constants.GARMIN_DOWNLOAD_FILENAME,
        "track_name": constants.GARMIN_TRACK_NAME,
        "color": constants.DEFAULT_OVERLAY_COLOR,
    },
    "http": {
        "timeout_seconds": 30,
        "max_redirects": 10,
        "max_attempts": 1,
        "user_agent": constants.USER_AGENT,
    },
}


@dataclass(frozen=True)
class ConverterConfig:
    output_filename: str
    creator: str
    default_title: str
    overlay_dir: Path
    overlay_name: str
    overlay_color: str
    garmin_download_filename: str
    garmin_track_name: str
    garmin_color: str
    http_timeout_seconds: float
    http_max_redirects: int
    http_max_attempts: int
    user_agent: str

    @property
    def garmin_download_path(self) -> Path:
        return self.overlay_dir / self.garmin_download_filename


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _read_config_file(path: Path) -> dict:
    try:
        payload = read_yaml(path)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return payload


def _to_config(cfg: dict) -> ConverterConfig:
    return ConverterConfig(
        output_filename=cfg["output"]["default_filename"],
        creator=cfg["output"]["creator"],
        default_title=cfg["race"]["default_title"],
        overlay_dir=Path(cfg["overlays"]["directory"]),
        overlay_name=cfg["overlays"]["default_name"],
        overlay_color=cfg["overlays"]["default_color"],
        garmin_download_filename=cfg["garmin"]["download_filename"],
        garmin_track_name=cfg["garmin"]["track_name"],
        garmin_color=cfg["garmin"]["color"],
        http_timeout_seconds=float(cfg["http"]["timeout_seconds"]),
        http_max_redirects=cfg["http"]["max_redirects"],
        http_max_attempts=cfg["http"]["max_attempts"],
        user_agent=cfg["http"]["user_agent"],
    )


def load_config(
    config_path: Path | None = None,
    *,
    overlay_path: Path | None = None,
    allow_unknown: bool = False,
) -> ConverterConfig:
    """Built-in defaults, then ``config_path``, then ``overlay_path``, each deep-merged."""
    merged: dict = DEFAULT_CONFIG
    for path in (config_path, overlay_path):
        if path is None:
            continue
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        merged = _deep_merge(merged, _read_config_file(path))
    return _to_config(validate_converter_config(merged, allow_unknown=allow_unknown))
