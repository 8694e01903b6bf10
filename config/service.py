"""Configuration service facade for simplified configuration access.

Gives the proxy a read-only view of the loaded configuration, so callers
do not reach into ``Config.yaml_config`` or the method set directly.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from config.config import BackendURL, Config, ConfigLoader
from core.exceptions import ProxyConfigException
from logger.syslog_logger import DEFAULT_SYSLOG_ADDRESS, SyslogAddress


class ConfigurationService:
    """Facade for proxy configuration access.

    Example:
        service = ConfigurationService(config)
        if service.should_sync_log("PUT"):
            service.sync_log.info(...)

    Attributes:
        _config: Underlying Config instance
    """

    def __init__(self, config: Config):
        self._config = config

    # Listener and backends
    @property
    def listen(self) -> str:
        return self._config.yaml_config.listen

    @property
    def backends(self) -> Tuple[BackendURL, ...]:
        return self._config.yaml_config.backends

    @property
    def backend_urls(self) -> Tuple[str, ...]:
        """Backend URLs as written in the configuration file."""
        return tuple(url.raw for url in self.backends)

    @property
    def maintained_backend(self) -> str:
        return self._config.yaml_config.maintained_backend

    def is_maintained(self, backend: BackendURL) -> bool:
        """Check whether a backend is in maintenance mode.

        The ``MaintainedBackend`` value may name the backend by its full URL
        or by its ``host[:port]``.
        """
        maintained = self.maintained_backend
        if not maintained:
            return False
        return maintained in (backend.raw, backend.host)

    # Connection handling
    @property
    def conn_limit(self) -> int:
        return self._config.yaml_config.conn_limit

    @property
    def connection_timeout(self) -> str:
        return self._config.yaml_config.connection_timeout

    @property
    def connection_dial_timeout(self) -> str:
        return self._config.yaml_config.connection_dial_timeout

    @property
    def keep_alive(self) -> bool:
        return self._config.yaml_config.keep_alive

    @property
    def additional_request_headers(self) -> Dict[str, str]:
        return dict(self._config.yaml_config.additional_request_headers)

    @property
    def additional_response_headers(self) -> Dict[str, str]:
        return dict(self._config.yaml_config.additional_response_headers)

    # Logging
    @property
    def sync_log_methods(self) -> frozenset:
        return self._config.sync_log_methods_set

    def should_sync_log(self, method: str) -> bool:
        """Check whether failed requests with this method go to the sync log."""
        return method in self._config.sync_log_methods_set

    @property
    def access_log(self) -> Optional[logging.Logger]:
        return self._config.access_log

    @property
    def sync_log(self) -> Optional[logging.Logger]:
        return self._config.sync_log

    @property
    def main_log(self) -> Optional[logging.Logger]:
        return self._config.main_log

    # Direct config access (for advanced use)
    @property
    def raw_config(self) -> Config:
        return self._config

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the configuration for logging.

        Returns:
            YAML-keyed dictionary plus the effective sync-log method set;
            log handles are left out
        """
        summary = self._config.yaml_config.to_dict()
        summary["SyncLogMethodsSet"] = sorted(self.sync_log_methods)
        return summary


class ConfigurationServiceFactory:
    """Factory for creating ConfigurationService instances."""

    @staticmethod
    def create_from_path(
        path: str, syslog_address: SyslogAddress = DEFAULT_SYSLOG_ADDRESS
    ) -> Tuple[Optional[ConfigurationService], Optional[ProxyConfigException]]:
        """Load configuration from ``path`` and wrap it in a service.

        Returns:
            Tuple of (service, error). The service is None only when loading
            failed outright; a syslog channel failure gives both a service
            and an error.
        """
        result = ConfigLoader(path, syslog_address).configure()
        if result.is_failure():
            return None, result.error
        service = ConfigurationService(result.unwrap())
        return service, (result.error if result.is_partial() else None)

    @staticmethod
    def create_from_config(config: Config) -> ConfigurationService:
        return ConfigurationService(config)
