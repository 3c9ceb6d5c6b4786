"""
Common Utilities

Shared modules used across all services:
- config.py - Configuration dataclasses and YAML loading
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
"""

from .config import (
    AppConfig,
    PlcSettings,
    LogFileSettings,
    HealthSettings,
    VariableConfig,
    TwinCATVersion,
    load_app_config,
    load_config_file,
    resolve_config_path,
    write_default_config,
)
from .exceptions import (
    AdsLoggerError,
    ConfigError,
    DecodeError,
    TruncatedBufferError,
    MissingTerminatorError,
    UnsupportedTypeError,
    RegistrationError,
    SinkError,
    AdsConnectionError,
)
from .logging_setup import (
    setup_logging,
    get_service_logger,
    set_log_level,
    log_value_changed,
    log_decode_failure,
    log_variable_skipped,
)

__all__ = [
    # Config
    "AppConfig",
    "PlcSettings",
    "LogFileSettings",
    "HealthSettings",
    "VariableConfig",
    "TwinCATVersion",
    "load_app_config",
    "load_config_file",
    "resolve_config_path",
    "write_default_config",
    # Exceptions
    "AdsLoggerError",
    "ConfigError",
    "DecodeError",
    "TruncatedBufferError",
    "MissingTerminatorError",
    "UnsupportedTypeError",
    "RegistrationError",
    "SinkError",
    "AdsConnectionError",
    # Logging
    "setup_logging",
    "get_service_logger",
    "set_log_level",
    "log_value_changed",
    "log_decode_failure",
    "log_variable_skipped",
]
