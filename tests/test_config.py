from pathlib import Path

import pytest
import yaml

from adslogger.common.config import (
    TwinCATVersion,
    load_app_config,
    load_config_file,
    load_variables,
    parse_decimal_places,
    parse_threshold,
    resolve_config_path,
    write_default_config,
)
from adslogger.common.exceptions import ConfigError


def test_defaults():
    config = load_app_config({})

    assert config.plc.ams_net_id == ""
    assert config.plc.port == 851
    assert config.plc.twincat_version is TwinCATVersion.TWINCAT3
    assert config.plc.cycle_time_ms == 200
    assert config.plc.max_delay_ms == 0
    assert config.logging.path == Path("logs")
    assert config.logging.max_lines_per_file == 1000
    assert config.health.enabled
    assert config.variables == []


def test_twincat2_default_port():
    config = load_app_config({"plc": {"twincat_version": 2}})
    assert config.plc.twincat_version is TwinCATVersion.TWINCAT2
    assert config.plc.port == 801


def test_invalid_twincat_version():
    with pytest.raises(ConfigError):
        load_app_config({"plc": {"twincat_version": 4}})


@pytest.mark.parametrize("value", [0, -5, "many", None])
def test_invalid_max_lines_falls_back(value):
    config = load_app_config({"logging": {"max_lines_per_file": value}})
    assert config.logging.max_lines_per_file == 1000


def test_explicit_values():
    config = load_app_config({
        "plc": {"ams_net_id": " 5.1.2.3.1.1 ", "port": 852, "ip_address": "10.0.0.2"},
        "logging": {"path": "/var/log/plc", "max_lines_per_file": "500", "fsync": False},
        "health": {"enabled": False, "port": 9000},
    })

    assert config.plc.ams_net_id == "5.1.2.3.1.1"
    assert config.plc.port == 852
    assert config.plc.ip_address == "10.0.0.2"
    assert config.logging.path == Path("/var/log/plc")
    assert config.logging.max_lines_per_file == 500
    assert not config.logging.fsync
    assert not config.health.enabled
    assert config.health.port == 9000


@pytest.mark.parametrize("value, expected", [
    (0.5, 0.5),
    (2, 2.0),
    ("0,5", 0.5),
    ("1.25", 1.25),
    ("abc", None),
    (-1, None),
    (None, None),
])
def test_parse_threshold(value, expected):
    assert parse_threshold(value) == expected


@pytest.mark.parametrize("value, expected", [
    (2, 2),
    ("3", 3),
    (0, 0),
    (-1, None),
    ("two", None),
    (None, None),
])
def test_parse_decimal_places(value, expected):
    assert parse_decimal_places(value) == expected


def test_load_variables():
    variables = load_variables([
        "MAIN.iValue",
        {"symbol": "MAIN.rValue", "decimal_places": 2, "threshold": "0,01"},
        {"symbol_path": "GVL.xFlag"},
        {"symbol": "main.ivalue", "threshold": 5},
        {"decimal_places": 2},
        42,
    ])

    assert [v.symbol_path for v in variables] == ["MAIN.iValue", "MAIN.rValue", "GVL.xFlag"]
    assert variables[0].threshold is None
    assert variables[1].decimal_places == 2
    assert variables[1].threshold == 0.01


def test_default_config_round_trip(tmp_path):
    path = write_default_config(tmp_path / "config.yaml")
    config = load_config_file(path)

    assert config.source_path == str(path)
    assert config.plc.ams_net_id == "192.168.1.1.1.1"
    assert len(config.variables) == 5
    assert config.variables[0].symbol_path == "MAIN.rRealValue"
    assert config.variables[0].decimal_places == 2


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config_file(tmp_path / "nope.yaml")


def test_non_mapping_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(["a", "b"]), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_file(path)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("plc: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_file(path)


def test_resolve_config_path(monkeypatch):
    monkeypatch.delenv("ADSLOGGER_CONFIG", raising=False)
    assert resolve_config_path(None) == Path("config.yaml")
    assert resolve_config_path("custom.yaml") == Path("custom.yaml")

    monkeypatch.setenv("ADSLOGGER_CONFIG", "/etc/adslogger.yaml")
    assert resolve_config_path(None) == Path("/etc/adslogger.yaml")
    assert resolve_config_path("custom.yaml") == Path("custom.yaml")
