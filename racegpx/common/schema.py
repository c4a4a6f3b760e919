"""Minimal strict schema for the YAML converter config."""

from __future__ import annotations

from racegpx.common.errors import ConfigError

SECTION_KEYS: dict[str, dict[str, type | tuple[type, ...]]] = {
    "output": {
        "default_filename": str,
        "creator": str,
    },
    "race": {
        "default_title": str,
    },
    "overlays": {
        "directory": str,
        "default_name": str,
        "default_color": str,
    },
    "garmin": {
        "download_filename": str,
        "track_name": str,
        "color": str,
    },
    "http": {
        "timeout_seconds": (int, float),
        "max_redirects": int,
        "max_attempts": int,
        "user_agent": str,
    },
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_kind(value: object, kind: type | tuple[type, ...], ctx: str) -> None:
    # bool is an int subclass; never accept it for numeric settings.
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ConfigError(f"Invalid value for {ctx}: {value!r}")


def validate_converter_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("Converter config must be a mapping")
    _assert_required_keys(cfg, set(SECTION_KEYS), "converter config")
    _assert_no_unknown_keys(cfg, set(SECTION_KEYS), "converter config", allow_unknown)

    for section, keys in SECTION_KEYS.items():
        body = cfg[section]
        if not isinstance(body, dict):
            raise ConfigError(f"Section {section} must be a mapping")
        _assert_required_keys(body, set(keys), section)
        _assert_no_unknown_keys(body, set(keys), section, allow_unknown)
        for key, kind in keys.items():
            _assert_kind(body[key], kind, f"{section}.{key}")

    http_cfg = cfg["http"]
    if http_cfg["timeout_seconds"] <= 0:
        raise ConfigError("http.timeout_seconds must be positive")
    if http_cfg["max_redirects"] < 0:
        raise ConfigError("http.max_redirects must not be negative")
    if http_cfg["max_attempts"] < 1:
        raise ConfigError("http.max_attempts must be at least 1")

    return cfg
