"""Process startup: command-line binding and configuration loading.

This is the only place the ``-c`` flag is read; the configuration loader
itself takes the path as a plain argument.
"""
from __future__ import annotations

import argparse
import os
import sys
from typing import List

from loguru import logger

from config.service import ConfigurationService, ConfigurationServiceFactory
from core.error_handler import ErrorHandler
from logger.syslog_logger import DEFAULT_SYSLOG_ADDRESS, SyslogAddress

DIAGNOSTIC_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def parse_cli_args(argv: List[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments, without the program name

    Returns:
        Namespace with ``config``, ``syslog_address`` and ``log_level``
    """
    parser = argparse.ArgumentParser(description="Backend proxy")
    parser.add_argument(
        "-c",
        dest="config",
        default="",
        help='Configuration file e.g.: "conf/dev.yaml"',
    )
    parser.add_argument(
        "--syslog-address",
        default=DEFAULT_SYSLOG_ADDRESS,
        help="Syslog unix socket path, or host:port for UDP (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Diagnostics verbosity (overrides LOG_LEVEL)",
    )
    args = parser.parse_args(argv)
    if args.log_level is None:
        args.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    return args


def parse_syslog_address(value: str) -> SyslogAddress:
    """Turn ``host:port`` into a UDP address tuple; anything else is a socket path."""
    if value.startswith("/"):
        return value
    host, sep, port = value.rpartition(":")
    if sep and host and port.isdigit():
        return host, int(port)
    return value


def configure_diagnostics(level: str) -> None:
    """Send loguru diagnostics to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=DIAGNOSTIC_FORMAT)


def run_application(argv: List[str]) -> ConfigurationService:
    """Load the proxy configuration for this process.

    Exits with status 1 when the configuration file cannot be loaded. A
    syslog channel that fails to open is reported and startup continues
    with the remaining channels.

    Returns:
        ConfigurationService over the loaded configuration
    """
    args = parse_cli_args(argv)
    configure_diagnostics(args.log_level)
    error_handler = ErrorHandler()

    service, error = ConfigurationServiceFactory.create_from_path(
        args.config, parse_syslog_address(args.syslog_address)
    )
    if service is None:
        error_handler.handle(error, context="configure")
        sys.exit(1)
    if error is not None:
        error_handler.warn(error, context="Continuing with degraded logging")

    logger.debug("Effective configuration: {}", service.to_dict())
    if service.main_log is not None:
        service.main_log.info(f"configured {len(service.backends)} backend(s), listening on {service.listen}")
    return service
