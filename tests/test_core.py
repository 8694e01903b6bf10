"""Unit tests for core infrastructure components."""
import pytest
from unittest.mock import Mock

from core.exceptions import (
    ConfigFileError,
    ConfigurationError,
    DeserializationError,
    LoggerInitError,
    LoggingError,
    MalformedURL,
    ProxyConfigException,
)
from core.result import Success, Failure, Partial
from core.error_handler import as_result, log_execution_time, ErrorHandler


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_malformed_url_is_deserialization_error(self):
        # Act
        error = MalformedURL("/just/a/path")

        # Assert
        assert isinstance(error, DeserializationError)
        assert isinstance(error, ConfigurationError)
        assert str(error) == "url should match proto://host[:port]/path scheme, got '/just/a/path'"

    def test_logger_init_error_records_channels(self):
        # Act
        error = LoggerInitError("main", ("access", "main"), "refused")

        # Assert
        assert isinstance(error, LoggingError)
        assert isinstance(error, ProxyConfigException)
        assert error.channel == "main"
        assert error.failed_channels == ("access", "main")
        assert "main" in str(error) and "refused" in str(error)


class TestResult:
    """Tests for Result type."""

    def test_success_creation(self):
        # Act
        result = Success(42)

        # Assert
        assert result.is_success()
        assert not result.is_failure()
        assert not result.is_partial()
        assert result.unwrap() == 42

    def test_success_unwrap_or(self):
        # Act
        result = Success(42)

        # Assert
        assert result.unwrap_or(0) == 42

    def test_success_map(self):
        # Act
        result = Success(5)
        mapped = result.map(lambda x: x * 2)

        # Assert
        assert mapped.is_success()
        assert mapped.unwrap() == 10

    def test_failure_creation(self):
        # Act
        error = ValueError("test error")
        result = Failure(error)

        # Assert
        assert result.is_failure()
        assert not result.is_success()
        assert result.error is error

    def test_failure_unwrap_raises(self):
        # Arrange
        result = Failure(ConfigFileError("missing"))

        # Assert
        with pytest.raises(ConfigFileError):
            result.unwrap()

    def test_failure_unwrap_or(self):
        # Act
        result = Failure(ValueError("error"))

        # Assert
        assert result.unwrap_or(99) == 99

    def test_failure_map(self):
        # Act
        result = Failure(ValueError("error"))
        mapped = result.map(lambda x: x * 2)

        # Assert
        assert mapped.is_failure()
        assert mapped is result

    def test_partial_carries_value_and_error(self):
        # Arrange
        error = LoggingError("no syslog")

        # Act
        result = Partial("config", error)

        # Assert
        assert result.is_partial()
        assert not result.is_success()
        assert not result.is_failure()
        assert result.unwrap() == "config"
        assert result.unwrap_or("other") == "config"
        assert result.error is error

    def test_partial_map_keeps_error(self):
        # Arrange
        error = LoggingError("no syslog")

        # Act
        mapped = Partial(5, error).map(lambda x: x + 1)

        # Assert
        assert mapped.is_partial()
        assert mapped.unwrap() == 6
        assert mapped.error is error


class TestErrorHandlingDecorators:
    """Tests for error handling decorators."""

    def test_as_result_success(self):
        # Arrange
        @as_result()
        def test_func(x):
            return x * 2

        # Act
        result = test_func(5)

        # Assert
        assert result.is_success()
        assert result.unwrap() == 10

    def test_as_result_failure(self):
        # Arrange
        @as_result()
        def test_func():
            raise ValueError("error")

        # Act
        result = test_func()

        # Assert
        assert result.is_failure()
        assert isinstance(result.error, ValueError)

    def test_as_result_only_wraps_listed_exceptions(self):
        # Arrange
        @as_result(ConfigurationError)
        def test_func():
            raise KeyError("unexpected")

        # Assert
        with pytest.raises(KeyError):
            test_func()

    def test_log_execution_time(self):
        # Arrange
        mock_logger = Mock()

        @log_execution_time(mock_logger, level="info")
        def test_func():
            return "done"

        # Act
        result = test_func()

        # Assert
        assert result == "done"
        level, message = mock_logger.log.call_args[0]
        assert level == "INFO"
        assert message.startswith("test_func executed in")


class TestErrorHandler:
    """Tests for ErrorHandler class."""

    def test_handle_logs_error(self):
        # Arrange
        mock_logger = Mock()
        handler = ErrorHandler(mock_logger)
        error = ValueError("test error")

        # Act
        handler.handle(error, context="test_context")

        # Assert
        mock_logger.error.assert_called_once_with("Error in test_context: test error")

    def test_handle_includes_cause(self):
        # Arrange
        mock_logger = Mock()
        handler = ErrorHandler(mock_logger)
        error = ConfigFileError("cannot open")
        error.__cause__ = FileNotFoundError("no such file")

        # Act
        handler.handle(error)

        # Assert
        message = mock_logger.error.call_args[0][0]
        assert "FileNotFoundError: no such file" in message

    def test_handle_reraise(self):
        # Arrange
        handler = ErrorHandler(Mock())
        error = ValueError("test error")

        # Assert
        with pytest.raises(ValueError):
            handler.handle(error, reraise=True)

    def test_warn_logs_warning(self):
        # Arrange
        mock_logger = Mock()
        handler = ErrorHandler(mock_logger)

        # Act
        handler.warn(LoggingError("no syslog"), context="degraded")

        # Assert
        mock_logger.warning.assert_called_once_with("degraded: no syslog")
        mock_logger.error.assert_not_called()
