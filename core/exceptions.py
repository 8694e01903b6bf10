"""Custom exception hierarchy for the proxy configuration loader."""
from __future__ import annotations

from typing import Tuple


class ProxyConfigException(Exception):
    """Base exception for all proxy configuration errors."""
    pass


class ConfigurationError(ProxyConfigException):
    """Raised when configuration is invalid or missing."""
    pass


class ConfigFileError(ConfigurationError):
    """Raised when the configuration file cannot be opened."""
    pass


class ConfigIOError(ConfigurationError):
    """Raised when the configuration source cannot be fully read."""
    pass


class DeserializationError(ConfigurationError):
    """Raised when the document does not match the configuration schema."""
    pass


class MalformedURL(DeserializationError):
    """Raised when a backend URL has no host component."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"url should match proto://host[:port]/path scheme, got {url!r}")


class LoggingError(ProxyConfigException):
    """Raised when logging operations fail."""
    pass


class LoggerInitError(LoggingError):
    """Raised when one or more syslog channels could not be opened.

    Attributes:
        channel: Name of the last channel that failed
        failed_channels: Names of every channel that failed, in attempt order
    """

    def __init__(self, channel: str, failed_channels: Tuple[str, ...], reason: object):
        self.channel = channel
        self.failed_channels = failed_channels
        super().__init__(f"failed to open {channel} syslog channel: {reason}")
