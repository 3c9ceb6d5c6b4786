"""
Configuration Dataclasses

Type-safe configuration structures for the logger.
Configuration is read from a YAML file at startup.
"""

import os
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .logging_setup import get_service_logger

logger = get_service_logger("config")

CONFIG_PATH_ENV = "ADSLOGGER_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_AMS_NET_ID = "192.168.1.1.1.1"
DEFAULT_LOG_PATH = "logs"
DEFAULT_MAX_LINES_PER_FILE = 1000
DEFAULT_HEALTH_PORT = 8086

# Sample variables written into a freshly generated configuration
SAMPLE_VARIABLES: list[dict[str, Any]] = [
    {"symbol": "MAIN.rRealValue", "decimal_places": 2, "threshold": 0.01},
    {"symbol": "MAIN.rLREALValue", "decimal_places": 3},
    {"symbol": "MAIN.iIntValue"},
    {"symbol": "MAIN.xBoolValue"},
    {"symbol": "MAIN.bByteValue", "threshold": 2},
]


class TwinCATVersion(IntEnum):
    """Supported TwinCAT runtimes"""
    TWINCAT2 = 2
    TWINCAT3 = 3

    @property
    def default_port(self) -> int:
        """First PLC runtime port of this version"""
        return 801 if self is TwinCATVersion.TWINCAT2 else 851


@dataclass
class PlcSettings:
    """ADS target settings"""
    ams_net_id: str = ""  # Empty = local AMS NetId
    port: int = 851
    ip_address: str | None = None
    twincat_version: TwinCATVersion = TwinCATVersion.TWINCAT3
    cycle_time_ms: int = 200
    max_delay_ms: int = 0


@dataclass
class LogFileSettings:
    """Rotating log file settings"""
    path: Path = field(default_factory=lambda: Path(DEFAULT_LOG_PATH))
    max_lines_per_file: int = DEFAULT_MAX_LINES_PER_FILE
    fsync: bool = True


@dataclass
class HealthSettings:
    """Health HTTP server settings"""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = DEFAULT_HEALTH_PORT


@dataclass(frozen=True)
class VariableConfig:
    """A variable to log, as configured"""
    symbol_path: str
    decimal_places: int | None = None
    threshold: float | None = None


@dataclass
class AppConfig:
    """Complete logger configuration"""
    plc: PlcSettings = field(default_factory=PlcSettings)
    logging: LogFileSettings = field(default_factory=LogFileSettings)
    health: HealthSettings = field(default_factory=HealthSettings)
    variables: list[VariableConfig] = field(default_factory=list)
    source_path: str = ""


def _positive_int(value: Any, name: str, default: int) -> int:
    """Coerce to a positive int, falling back to default with a warning"""
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = 0
    if parsed <= 0:
        logger.warning(f"Invalid {name} value {value!r} in configuration. Using default value: {default}")
        return default
    return parsed


def _non_negative_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = -1
    if parsed < 0:
        logger.warning(f"Invalid {name} value {value!r} in configuration. Using default value: {default}")
        return default
    return parsed


def parse_decimal_places(value: Any) -> int | None:
    """Decimal places attribute; unparseable or negative values are ignored"""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return None
    return parsed if parsed >= 0 else None


def parse_threshold(value: Any) -> float | None:
    """
    Minimum change threshold.

    Accepts numbers or strings with either a decimal point or a decimal
    comma ("0,5"). Unparseable or negative values are ignored.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        try:
            parsed = float(str(value).strip().replace(",", "."))
        except ValueError:
            return None
    return parsed if parsed >= 0 else None


def load_variables(entries: list[Any]) -> list[VariableConfig]:
    """Load the variable list, ignoring duplicates (case-insensitive)"""
    variables: list[VariableConfig] = []
    seen: set[str] = set()

    for entry in entries or []:
        if isinstance(entry, str):
            entry = {"symbol": entry}
        if not isinstance(entry, dict):
            logger.warning(f"Ignoring malformed variable entry: {entry!r}")
            continue

        symbol_path = str(entry.get("symbol") or entry.get("symbol_path") or "").strip()
        if not symbol_path:
            logger.warning(f"Ignoring variable entry without symbol: {entry!r}")
            continue

        key = symbol_path.casefold()
        if key in seen:
            logger.debug(f"Ignoring duplicate variable {symbol_path}")
            continue
        seen.add(key)

        variables.append(VariableConfig(
            symbol_path=symbol_path,
            decimal_places=parse_decimal_places(entry.get("decimal_places")),
            threshold=parse_threshold(entry.get("threshold")),
        ))

    return variables


def load_app_config(data: dict) -> AppConfig:
    """Load AppConfig from dictionary (e.g., from a YAML file)"""
    data = data or {}

    plc_data = data.get("plc") or {}
    try:
        version = TwinCATVersion(int(plc_data.get("twincat_version", 3)))
    except (TypeError, ValueError):
        raise ConfigError(
            f"TwinCAT version {plc_data.get('twincat_version')!r} is not possible. "
            f"Possible values are 2 or 3"
        )

    plc = PlcSettings(
        ams_net_id=str(plc_data.get("ams_net_id") or "").strip(),
        port=_positive_int(plc_data.get("port"), "port", version.default_port),
        ip_address=plc_data.get("ip_address") or None,
        twincat_version=version,
        cycle_time_ms=_non_negative_int(plc_data.get("cycle_time_ms"), "cycle_time_ms", 200),
        max_delay_ms=_non_negative_int(plc_data.get("max_delay_ms"), "max_delay_ms", 0),
    )

    logging_data = data.get("logging") or {}
    log_files = LogFileSettings(
        path=Path(logging_data.get("path") or DEFAULT_LOG_PATH),
        max_lines_per_file=_positive_int(
            logging_data.get("max_lines_per_file"),
            "max_lines_per_file",
            DEFAULT_MAX_LINES_PER_FILE,
        ),
        fsync=bool(logging_data.get("fsync", True)),
    )

    health_data = data.get("health") or {}
    health = HealthSettings(
        enabled=bool(health_data.get("enabled", True)),
        host=str(health_data.get("host") or "127.0.0.1"),
        port=_positive_int(health_data.get("port"), "health port", DEFAULT_HEALTH_PORT),
    )

    variables = load_variables(data.get("variables") or [])
    if not variables:
        logger.warning("No logging variables found in configuration")

    return AppConfig(
        plc=plc,
        logging=log_files,
        health=health,
        variables=variables,
    )


def resolve_config_path(config_path: str | None = None) -> Path:
    """Explicit path, then ADSLOGGER_CONFIG, then ./config.yaml"""
    return Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def load_config_file(config_path: str | Path) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Parsed AppConfig

    Raises:
        ConfigError: If the file is missing or is not a YAML mapping
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Can't read the configuration {path}: {e}")

    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a mapping")

    config = load_app_config(data or {})
    config.source_path = str(path)
    logger.info(f"Loaded configuration from {path}")
    return config


def default_config_dict() -> dict:
    """Configuration template written when none exists"""
    return {
        "plc": {
            "twincat_version": int(TwinCATVersion.TWINCAT3),
            "ams_net_id": DEFAULT_AMS_NET_ID,
            "port": TwinCATVersion.TWINCAT3.default_port,
            "ip_address": None,
            "cycle_time_ms": 200,
            "max_delay_ms": 0,
        },
        "logging": {
            "path": DEFAULT_LOG_PATH,
            "max_lines_per_file": DEFAULT_MAX_LINES_PER_FILE,
            "fsync": True,
        },
        "health": {
            "enabled": True,
            "host": "127.0.0.1",
            "port": DEFAULT_HEALTH_PORT,
        },
        "variables": [dict(v) for v in SAMPLE_VARIABLES],
    }


def write_default_config(config_path: str | Path) -> Path:
    """Write the default configuration template to config_path"""
    path = Path(config_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(default_config_dict(), f, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"Can't create the configuration {path}: {e}")

    logger.info(f"Configuration file created: {path}")
    return path
