"""Syslog-backed output channels for the proxy.

Three channels are opened against the local syslog daemon, each on its own
facility so the daemon can route them to separate files:

- access: ``LOG_LOCAL0``, lines prefixed with ``access``
- sync:   ``LOG_LOCAL1``, no prefix
- main:   ``LOG_LOCAL2``, lines prefixed with ``main``

The facility numbers are part of the contract with the host's syslog
configuration and must not change.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from logging.handlers import SysLogHandler
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from loguru import logger

from core.exceptions import LoggerInitError

if TYPE_CHECKING:
    from config.config import Config

SyslogAddress = Union[str, Tuple[str, int]]

DEFAULT_SYSLOG_ADDRESS: SyslogAddress = "/dev/log"

# Same layout as Go's log.LstdFlags: "<prefix>2009/01/23 01:23:23 message"
LINE_FORMAT = "%(asctime)s %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


@dataclass(frozen=True)
class SyslogChannel:
    """Static description of one output channel.

    Attributes:
        name: Channel name used in diagnostics and the logger name
        attribute: Attribute of Config receiving the opened logger
        facility: Syslog facility code
        prefix: Text written at the start of every line
    """
    name: str
    attribute: str
    facility: int
    prefix: str

    @property
    def logger_name(self) -> str:
        return f"proxyconf.{self.name}"


# Opened in this order.
CHANNELS: Tuple[SyslogChannel, ...] = (
    SyslogChannel("access", "access_log", SysLogHandler.LOG_LOCAL0, "access"),
    SyslogChannel("sync", "sync_log", SysLogHandler.LOG_LOCAL1, ""),
    SyslogChannel("main", "main_log", SysLogHandler.LOG_LOCAL2, "main"),
)


def open_channel(channel: SyslogChannel, address: SyslogAddress = DEFAULT_SYSLOG_ADDRESS) -> logging.Logger:
    """Open a syslog channel and return a logger writing to it.

    Args:
        channel: Channel description
        address: Unix socket path, or (host, port) for UDP

    Returns:
        Logger with a single syslog handler, not propagating to the root logger

    Raises:
        OSError: If the syslog socket cannot be reached
    """
    handler = SysLogHandler(address=address, facility=channel.facility)
    if isinstance(address, str) and (handler.socket is None or handler.socket.fileno() == -1):
        # Newer interpreters swallow the unix socket connect error.
        handler.close()
        raise OSError(f"cannot connect to syslog at {address!r}")
    handler.setFormatter(
        logging.Formatter(channel.prefix.replace("%", "%%") + LINE_FORMAT, datefmt=DATE_FORMAT)
    )

    py_logger = logging.getLogger(channel.logger_name)
    py_logger.setLevel(logging.INFO)
    py_logger.propagate = False
    for old in list(py_logger.handlers):
        py_logger.removeHandler(old)
        old.close()
    py_logger.addHandler(handler)
    return py_logger


def setup_loggers(conf: "Config", address: SyslogAddress = DEFAULT_SYSLOG_ADDRESS) -> Optional[LoggerInitError]:
    """Open the access, sync and main channels and attach them to ``conf``.

    Every channel is attempted even when an earlier one fails. A channel that
    could not be opened is left as ``None`` on ``conf``.

    Returns:
        None when all channels opened, otherwise a LoggerInitError for the
        last channel that failed
    """
    failed: List[str] = []
    last_failure: Optional[Tuple[SyslogChannel, OSError]] = None

    for channel in CHANNELS:
        try:
            opened: Optional[logging.Logger] = open_channel(channel, address)
        except OSError as e:
            logger.error(f"Failed to open {channel.name} syslog channel at {address!r}: {e}")
            opened = None
            failed.append(channel.name)
            last_failure = (channel, e)
        else:
            logger.debug(f"Opened {channel.name} syslog channel (facility={channel.facility})")
        setattr(conf, channel.attribute, opened)

    if last_failure is None:
        return None

    channel, cause = last_failure
    error = LoggerInitError(channel.name, tuple(failed), cause)
    error.__cause__ = cause
    return error
