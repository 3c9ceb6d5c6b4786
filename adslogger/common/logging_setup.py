"""
Console Logging for the ADS Logger

Every component logs through an `adslogger.<component>` logger writing to
stdout. Records are JSON lines by default (symbol path, type name and value
ride along as fields); ADSLOGGER_LOG_FORMAT=text switches to plain lines.

The level comes from ADSLOGGER_LOG_LEVEL unless the CLI forces one with
set_log_level(). A forced level also applies to loggers created afterwards,
since service modules are imported lazily once the configuration is loaded.
"""

import logging
import sys
import os
from datetime import datetime, timezone
import json

LOG_LEVEL_ENV = "ADSLOGGER_LOG_LEVEL"
LOG_FORMAT_ENV = "ADSLOGGER_LOG_FORMAT"
LOGGER_PREFIX = "adslogger."

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Set by set_log_level(); wins over the environment
_forced_level: str | None = None

# LogRecord attributes that are not user fields
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "service", "taskName"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }
        # symbol, type_name, value, ...
        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Tags every record with the component name"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.setdefault("extra", {})
        extra["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def _numeric_level(log_level: str) -> int:
    return getattr(logging, str(log_level).upper(), logging.INFO)


def _effective_level() -> str:
    return _forced_level or os.environ.get(LOG_LEVEL_ENV, "INFO")


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
) -> logging.Logger:
    """
    (Re)configure the `adslogger.<service_name>` logger.

    Args:
        service_name: Component name (e.g. "logging.sink", "device.ads")
        log_level: Level name; unknown names fall back to INFO
        json_format: JSON lines if True, plain text otherwise

    Returns:
        The configured logger
    """
    level = _numeric_level(log_level)
    formatter = JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    logger = logging.getLogger(f"{LOGGER_PREFIX}{service_name}")
    logger.setLevel(level)
    logger.handlers[:] = [handler]
    # Console output only; the root logger stays untouched
    logger.propagate = False

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """Logger adapter for a component, honouring the forced or env level"""
    json_format = os.environ.get(LOG_FORMAT_ENV, "json").lower() == "json"
    logger = setup_logging(service_name, _effective_level(), json_format)
    return ServiceLoggerAdapter(logger, {"service": service_name})


def set_log_level(log_level: str | None) -> None:
    """
    Force a level on every adslogger logger, existing and future.

    None drops the override; loggers created later read the environment
    again, existing ones keep their current level.
    """
    global _forced_level
    _forced_level = log_level
    if log_level is None:
        return

    level = _numeric_level(log_level)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not name.startswith(LOGGER_PREFIX) or not isinstance(logger, logging.Logger):
            continue
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


# Helpers for the recurring messages
def log_value_changed(
    logger: logging.Logger,
    symbol_path: str,
    value: str,
    line: str,
) -> None:
    """Echo a logged change to the console"""
    logger.info(
        f"[VALUE CHANGED] {line.rstrip()}",
        extra={"symbol": symbol_path, "value": value},
    )


def log_decode_failure(
    logger: logging.Logger,
    symbol_path: str,
    type_name: str,
    error: Exception,
) -> None:
    """Log a dropped notification"""
    logger.warning(
        f"Dropped notification for {symbol_path} ({type_name}): {error}",
        extra={"symbol": symbol_path, "type_name": type_name},
    )


def log_variable_skipped(
    logger: logging.Logger,
    symbol_path: str,
    type_name: str,
    reason: str = "",
) -> None:
    """Log a variable ignored at registration"""
    logger.warning(
        f"The data type {type_name} of variable {symbol_path} is not supported"
        f"{f' ({reason})' if reason else ''}. This variable will be ignored",
        extra={"symbol": symbol_path, "type_name": type_name},
    )
