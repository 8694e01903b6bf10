"""Utility decorators and error handlers for consistent error handling."""
from __future__ import annotations

import functools
import time
from typing import Callable, TypeVar

from loguru import logger

from core.result import Success, Failure, Result

T = TypeVar('T')


def as_result(*exceptions: type) -> Callable[[Callable[..., T]], Callable[..., Result[T, Exception]]]:
    """Decorator to convert function output to Result type.

    Success values are wrapped in Success; the listed exception types
    (any Exception when none are given) are wrapped in Failure. Other
    exceptions propagate.
    """
    caught = exceptions or (Exception,)

    def decorator(func: Callable[..., T]) -> Callable[..., Result[T, Exception]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Result[T, Exception]:
            try:
                return Success(func(*args, **kwargs))
            except caught as e:
                return Failure(e)
        return wrapper
    return decorator


def log_execution_time(logger_instance=logger, level: str = "DEBUG"):
    """Decorator to log function execution time.

    Args:
        logger_instance: Logger to use
        level: Log level (DEBUG, INFO, etc.)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed = time.perf_counter() - start_time
                logger_instance.log(level.upper(), f"{func.__name__} executed in {elapsed:.3f}s")
        return wrapper
    return decorator


class ErrorHandler:
    """Centralized error reporting for the process entry point."""

    def __init__(self, logger_instance=logger):
        self.logger = logger_instance

    def handle(self, error: Exception, context: str = "", reraise: bool = False) -> None:
        """Handle an error with logging.

        Args:
            error: The exception to handle
            context: Additional context information
            reraise: Whether to re-raise after handling
        """
        message = f"Error in {context}: {error}" if context else str(error)
        cause = error.__cause__
        if cause is not None:
            message = f"{message} (caused by {type(cause).__name__}: {cause})"
        self.logger.error(message)
        if reraise:
            raise error

    def warn(self, error: Exception, context: str = "") -> None:
        """Report a non-fatal error."""
        message = f"{context}: {error}" if context else str(error)
        self.logger.warning(message)
