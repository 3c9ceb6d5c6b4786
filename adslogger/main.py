#!/usr/bin/env python3
"""
ADS Logger - Main Entry Point

Loads the configuration, connects to the TwinCAT target and logs value
changes of the configured variables until stopped.

Usage:
    adslogger                      # Use ./config.yaml (or $ADSLOGGER_CONFIG)
    adslogger --config my.yaml     # Use custom config file
    adslogger --init-config        # Write a configuration template and exit
    adslogger --dry-run            # Print config and exit
"""

import argparse
import asyncio
import sys

from adslogger import __version__
from adslogger.common.config import (
    AppConfig,
    load_config_file,
    resolve_config_path,
    write_default_config,
)
from adslogger.common.exceptions import AdsLoggerError, ConfigError
from adslogger.common.logging_setup import get_service_logger, set_log_level

logger = get_service_logger("main")


def print_config_summary(config: AppConfig) -> None:
    """Print a summary of the configuration."""
    print("\n" + "=" * 60)
    print(f"  ADS LOGGER {__version__}")
    print("=" * 60)

    plc = config.plc
    print(f"\n  Target: {plc.ams_net_id or '<local>'}:{plc.port} (TwinCAT {int(plc.twincat_version)})")
    if plc.ip_address:
        print(f"  Route: {plc.ip_address}")

    print(f"\n  Log folder: {config.logging.path}")
    print(f"  Max lines per file: {config.logging.max_lines_per_file}")

    print(f"\n  Variables ({len(config.variables)}):")
    for variable in config.variables:
        options = []
        if variable.decimal_places is not None:
            options.append(f"decimals={variable.decimal_places}")
        if variable.threshold is not None:
            options.append(f"threshold={variable.threshold}")
        suffix = f" ({', '.join(options)})" if options else ""
        print(f"    - {variable.symbol_path}{suffix}")

    print("=" * 60 + "\n")


async def main_async(config: AppConfig) -> None:
    """Run the logging service until a shutdown signal arrives"""
    from adslogger.services.logging.service import LoggingService

    service = LoggingService(config)
    await service.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adslogger",
        description="Log value changes of TwinCAT PLC variables",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file (default: $ADSLOGGER_CONFIG or config.yaml)",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a configuration template and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print configuration and exit without connecting",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        set_log_level("DEBUG")

    config_path = resolve_config_path(args.config)

    if args.init_config or not config_path.exists():
        if not args.init_config:
            logger.info("No configuration found. Creating...")
        try:
            write_default_config(config_path)
        except ConfigError as e:
            logger.error(str(e))
            return 1
        print(f"Configuration written to {config_path}. Please configure first")
        return 0 if args.init_config else 1

    try:
        config = load_config_file(config_path)
    except ConfigError as e:
        logger.error(f"{e}. Program stops")
        return 1

    print_config_summary(config)

    if args.dry_run:
        print("Dry run mode - exiting without connecting")
        return 0

    if not config.variables:
        logger.error("No logging variables configured. Program stops")
        return 1

    print("Press Ctrl+C to stop\n")

    try:
        asyncio.run(main_async(config))
    except KeyboardInterrupt:
        print("\nStopped by user")
    except AdsLoggerError as e:
        logger.error(f"{e}. Program stops")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
