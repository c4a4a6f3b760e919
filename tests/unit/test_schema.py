import copy

import pytest

from racegpx.common.config_loader import DEFAULT_CONFIG
from racegpx.common.errors import ConfigError
from racegpx.common.schema import validate_converter_config


def _cfg():
    return copy.deepcopy(DEFAULT_CONFIG)


def test_defaults_are_valid():
    assert validate_converter_config(_cfg())["http"]["max_redirects"] == 10


def test_unknown_section_rejected_unless_allowed():
    cfg = _cfg()
    cfg["extras"] = {}

    with pytest.raises(ConfigError, match="Unknown keys"):
        validate_converter_config(cfg)
    assert validate_converter_config(cfg, allow_unknown=True) is cfg


def test_missing_key_rejected():
    cfg = _cfg()
    del cfg["garmin"]["color"]

    with pytest.raises(ConfigError, match="Missing keys in garmin"):
        validate_converter_config(cfg)


@pytest.mark.parametrize(
    "section,key,value",
    [
        ("http", "timeout_seconds", 0),
        ("http", "timeout_seconds", "30"),
        ("http", "max_attempts", 0),
        ("http", "max_redirects", True),
        ("overlays", "default_color", 255),
    ],
)
def test_bad_values_rejected(section, key, value):
    cfg = _cfg()
    cfg[section][key] = value

    with pytest.raises(ConfigError):
        validate_converter_config(cfg)
