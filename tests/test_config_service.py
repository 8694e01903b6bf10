"""Unit tests for configuration service."""
import logging

import pytest
from unittest.mock import Mock, patch

from config.config import BackendURL, Config, YamlConfig
from config.service import ConfigurationService, ConfigurationServiceFactory
from core.exceptions import ConfigFileError, LoggerInitError
from core.result import Failure, Partial, Success


class TestConfigurationService:
    """Tests for ConfigurationService facade."""

    @pytest.fixture
    def mock_config(self):
        """Create a Config for testing."""
        return Config(
            yaml_config=YamlConfig(
                listen=":8080",
                backends=(BackendURL("http://a.example:80"), BackendURL("http://b.example:8080/p")),
                conn_limit=10,
                additional_request_headers={"X-Proxy": "edge-proxy"},
                connection_timeout="3s",
                connection_dial_timeout="1s",
                maintained_backend="b.example:8080",
                sync_log_methods=("PUT",),
                keep_alive=True,
            ),
            main_log=logging.getLogger("test.main"),
        )

    def test_listen_property(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.listen == ":8080"

    def test_backend_urls(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.backend_urls == ("http://a.example:80", "http://b.example:8080/p")
        assert len(service.backends) == 2

    def test_connection_properties(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.conn_limit == 10
        assert service.connection_timeout == "3s"
        assert service.connection_dial_timeout == "1s"
        assert service.keep_alive is True

    def test_headers_are_copies(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Act
        headers = service.additional_request_headers
        headers["X-Other"] = "1"

        # Assert
        assert service.additional_request_headers == {"X-Proxy": "edge-proxy"}
        assert service.additional_response_headers == {}

    def test_should_sync_log(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.should_sync_log("PUT")
        assert not service.should_sync_log("GET")
        assert service.sync_log_methods == {"PUT"}

    def test_is_maintained_by_host(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.is_maintained(service.backends[1])
        assert not service.is_maintained(service.backends[0])

    def test_is_maintained_by_url(self, mock_config):
        # Arrange
        service = ConfigurationService(
            Config(yaml_config=YamlConfig(maintained_backend="http://a.example:80"))
        )

        # Assert
        assert service.is_maintained(BackendURL("http://a.example:80"))

    def test_nothing_maintained(self):
        # Arrange
        service = ConfigurationService(Config())

        # Assert
        assert not service.is_maintained(BackendURL("http://a.example"))

    def test_log_handles(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.main_log.name == "test.main"
        assert service.access_log is None
        assert service.sync_log is None

    def test_raw_config_property(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.raw_config is mock_config

    def test_to_dict(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Act
        result = service.to_dict()

        # Assert
        assert result["Listen"] == ":8080"
        assert result["Backends"] == ["http://a.example:80", "http://b.example:8080/p"]
        assert result["KeepAlive"] is True
        assert result["SyncLogMethodsSet"] == ["PUT"]
        assert "AdditionalResponseHeaders" not in result


class TestConfigurationServiceFactory:
    """Tests for ConfigurationServiceFactory."""

    @patch('config.service.ConfigLoader')
    def test_create_from_path(self, mock_loader_class):
        # Arrange
        config = Config()
        mock_loader_class.return_value.configure.return_value = Success(config)

        # Act
        service, error = ConfigurationServiceFactory.create_from_path("proxy.yaml", "/dev/log")

        # Assert
        assert isinstance(service, ConfigurationService)
        assert service.raw_config is config
        assert error is None
        mock_loader_class.assert_called_once_with("proxy.yaml", "/dev/log")

    @patch('config.service.ConfigLoader')
    def test_create_from_path_failure(self, mock_loader_class):
        # Arrange
        failure = ConfigFileError("missing")
        mock_loader_class.return_value.configure.return_value = Failure(failure)

        # Act
        service, error = ConfigurationServiceFactory.create_from_path("missing.yaml")

        # Assert
        assert service is None
        assert error is failure

    @patch('config.service.ConfigLoader')
    def test_create_from_path_partial(self, mock_loader_class):
        # Arrange
        config = Config()
        logger_error = LoggerInitError("sync", ("sync",), "refused")
        mock_loader_class.return_value.configure.return_value = Partial(config, logger_error)

        # Act
        service, error = ConfigurationServiceFactory.create_from_path("proxy.yaml")

        # Assert
        assert service.raw_config is config
        assert error is logger_error

    def test_create_from_config(self):
        # Arrange
        mock_config = Mock(spec=Config)

        # Act
        service = ConfigurationServiceFactory.create_from_config(mock_config)

        # Assert
        assert isinstance(service, ConfigurationService)
        assert service.raw_config is mock_config
