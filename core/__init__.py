"""Core infrastructure: exception hierarchy, result types and error handling."""
from __future__ import annotations

from .exceptions import (
    ProxyConfigException,
    ConfigurationError,
    ConfigFileError,
    ConfigIOError,
    DeserializationError,
    MalformedURL,
    LoggingError,
    LoggerInitError,
)
from .result import Result, Success, Failure, Partial

__all__ = [
    "ProxyConfigException",
    "ConfigurationError",
    "ConfigFileError",
    "ConfigIOError",
    "DeserializationError",
    "MalformedURL",
    "LoggingError",
    "LoggerInitError",
    "Result",
    "Success",
    "Failure",
    "Partial",
]
