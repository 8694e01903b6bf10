"""Proxy configuration schema, parser and loader.

The configuration file is a YAML document with flat, CamelCase keys::

    Listen: ":8080"
    Backends: ["http://s3-a.example:80", "http://s3-b.example:8080/p"]
    ConnLimit: 100
    AdditionalRequestHeaders:
      X-Proxy: edge-proxy
    ConnectionTimeout: 3s
    SyncLogMethods: [PUT, DELETE]
    KeepAlive: true

Loading runs in four steps: open the file, decode it into a ``YamlConfig``,
derive the set of sync-logged methods, then open the syslog channels. The
first two are fatal on error; a failing syslog channel still hands back a
usable ``Config`` together with the error.
"""
from __future__ import annotations

import logging
from dataclasses import FrozenInstanceError, dataclass, field, fields
from types import MappingProxyType
from typing import Any, BinaryIO, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple
from urllib.parse import SplitResult, urlsplit

import yaml
from loguru import logger

from core.error_handler import as_result, log_execution_time
from core.exceptions import (
    ConfigFileError,
    ConfigIOError,
    ConfigurationError,
    DeserializationError,
    MalformedURL,
    ProxyConfigException,
)
from core.result import Partial, Result, Success
from logger.syslog_logger import DEFAULT_SYSLOG_ADDRESS, SyslogAddress, setup_loggers

DEFAULT_SYNC_LOG_METHODS: FrozenSet[str] = frozenset({"PUT", "GET", "HEAD", "DELETE", "OPTIONS"})

_NULL_TAG = "tag:yaml.org,2002:null"


@dataclass(frozen=True)
class BackendURL:
    """Backend address parsed from a ``Backends`` entry.

    Only URLs with a host component are accepted, e.g.
    ``http://s3.example.org`` or ``https://10.0.0.1:8443/bucket``.

    Attributes:
        raw: URL text as written in the configuration file
    """
    raw: str
    _parts: SplitResult = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        try:
            parts = urlsplit(self.raw)
            parts.port  # raises ValueError on a non-numeric or out of range port
        except ValueError as e:
            raise MalformedURL(self.raw) from e
        if not parts.netloc.rpartition("@")[2]:
            raise MalformedURL(self.raw)
        object.__setattr__(self, "_parts", parts)

    @classmethod
    def from_yaml(cls, value: Any) -> "BackendURL":
        """Build a BackendURL from a decoded YAML scalar."""
        if not isinstance(value, str):
            raise DeserializationError(f"Backends: expected a URL string, got {value!r}")
        return cls(value)

    @property
    def scheme(self) -> str:
        return self._parts.scheme

    @property
    def host(self) -> str:
        """Network location without user info, ``host[:port]``."""
        return self._parts.netloc.rpartition("@")[2]

    @property
    def hostname(self) -> Optional[str]:
        return self._parts.hostname

    @property
    def port(self) -> Optional[int]:
        return self._parts.port

    @property
    def path(self) -> str:
        return self._parts.path

    @property
    def query(self) -> str:
        return self._parts.query

    def geturl(self) -> str:
        return self._parts.geturl()

    def __str__(self) -> str:
        return self.raw


# ---------------------------------------------------------------------------
# Field decoders. Each takes the YAML node, the loader that composed it and
# the key name (for error messages), and returns the Python value.
# ---------------------------------------------------------------------------

def _describe(node: yaml.Node) -> str:
    if isinstance(node, yaml.SequenceNode):
        return "a sequence"
    if isinstance(node, yaml.MappingNode):
        return "a mapping"
    return f"{node.value!r}"


def _is_null(node: yaml.Node) -> bool:
    return isinstance(node, yaml.ScalarNode) and node.tag == _NULL_TAG


def _decode_str(node: yaml.Node, loader: yaml.SafeLoader, key: str) -> str:
    if _is_null(node):
        return ""
    if isinstance(node, yaml.ScalarNode):
        return node.value
    raise DeserializationError(f"{key}: expected a string, got {_describe(node)}")


def _decode_int(node: yaml.Node, loader: yaml.SafeLoader, key: str) -> int:
    if _is_null(node):
        return 0
    if isinstance(node, yaml.ScalarNode):
        value = loader.construct_object(node)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    raise DeserializationError(f"{key}: expected an integer, got {_describe(node)}")


def _decode_bool(node: yaml.Node, loader: yaml.SafeLoader, key: str) -> bool:
    if _is_null(node):
        return False
    if isinstance(node, yaml.ScalarNode):
        value = loader.construct_object(node)
        if isinstance(value, bool):
            return value
    raise DeserializationError(f"{key}: expected a boolean, got {_describe(node)}")


def _decode_str_seq(node: yaml.Node, loader: yaml.SafeLoader, key: str) -> Tuple[str, ...]:
    if _is_null(node):
        return ()
    if not isinstance(node, yaml.SequenceNode):
        raise DeserializationError(f"{key}: expected a sequence, got {_describe(node)}")
    return tuple(_decode_str(item, loader, key) for item in node.value)


def _decode_backends(node: yaml.Node, loader: yaml.SafeLoader, key: str) -> Tuple[BackendURL, ...]:
    return tuple(BackendURL.from_yaml(url) for url in _decode_str_seq(node, loader, key))


def _decode_str_map(node: yaml.Node, loader: yaml.SafeLoader, key: str) -> Dict[str, str]:
    if _is_null(node):
        return {}
    if not isinstance(node, yaml.MappingNode):
        raise DeserializationError(f"{key}: expected a mapping, got {_describe(node)}")
    loader.flatten_mapping(node)
    return {
        _decode_str(name, loader, key): _decode_str(value, loader, key)
        for name, value in node.value
    }


def _yaml_field(key: str, decode: Callable, omitempty: bool = True, **kwargs):
    return field(metadata={"key": key, "decode": decode, "omitempty": omitempty}, **kwargs)


@dataclass(frozen=True)
class YamlConfig:
    """Configuration fields of the proxy config file.

    Attributes:
        listen: Listen interface and port, e.g. "0:8000", "localhost:9090", ":80"
        backends: Backend URLs, e.g. "http://s3.mydatacenter.org"
        conn_limit: Limit of outgoing connections. When reached, the backend
            with the greatest number of stalled connections is skipped
        additional_request_headers: Headers added to the proxied request
        additional_response_headers: Headers added to the backend response
        connection_timeout: Read timeout on outgoing connections
        connection_dial_timeout: Dial timeout on outgoing connections
        maintained_backend: Backend in maintenance mode; receives no traffic
        sync_log_methods: Request methods written to the sync log when a
            backend fails
        keep_alive: Keep connections to backends alive
    """
    listen: str = _yaml_field("Listen", _decode_str, default="")
    backends: Tuple[BackendURL, ...] = _yaml_field("Backends", _decode_backends, default=())
    conn_limit: int = _yaml_field("ConnLimit", _decode_int, default=0)
    additional_request_headers: Mapping[str, str] = _yaml_field(
        "AdditionalRequestHeaders", _decode_str_map, default_factory=dict
    )
    additional_response_headers: Mapping[str, str] = _yaml_field(
        "AdditionalResponseHeaders", _decode_str_map, default_factory=dict
    )
    connection_timeout: str = _yaml_field("ConnectionTimeout", _decode_str, default="")
    connection_dial_timeout: str = _yaml_field("ConnectionDialTimeout", _decode_str, default="")
    maintained_backend: str = _yaml_field("MaintainedBackend", _decode_str, default="")
    sync_log_methods: Tuple[str, ...] = _yaml_field("SyncLogMethods", _decode_str_seq, default=())
    keep_alive: bool = _yaml_field("KeepAlive", _decode_bool, omitempty=False, default=False)

    # Header maps are read-only views, but not hashable.
    __hash__ = None

    def __post_init__(self):
        for name in ("additional_request_headers", "additional_response_headers"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def from_node(cls, node: Optional[yaml.Node], loader: yaml.SafeLoader) -> "YamlConfig":
        """Decode a composed YAML document into a YamlConfig.

        Unknown keys are ignored and missing keys keep their zero value.

        Raises:
            DeserializationError: If the document or a field has the wrong shape
        """
        if node is None or _is_null(node):
            return cls()
        if not isinstance(node, yaml.MappingNode):
            raise DeserializationError(f"configuration must be a mapping, got {_describe(node)}")

        # Resolve "<<" merge keys in place.
        loader.flatten_mapping(node)
        by_key = {f.metadata["key"]: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                continue
            schema_field = by_key.get(key_node.value)
            if schema_field is None:
                continue
            decode = schema_field.metadata["decode"]
            values[schema_field.name] = decode(value_node, loader, key_node.value)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a YAML-keyed dictionary.

        Empty fields are left out, except ``KeepAlive`` which is always present.
        """
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.metadata["omitempty"] and not value:
                continue
            if f.name == "backends":
                value = [url.raw for url in value]
            elif isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, Mapping):
                value = dict(value)
            result[f.metadata["key"]] = value
        return result

    def to_yaml(self) -> str:
        """Render as a YAML document, with ``Backends`` in flow style."""
        data = self.to_dict()
        if "Backends" in data:
            data["Backends"] = _FlowList(data["Backends"])
        return yaml.dump(data, Dumper=_ConfigDumper, sort_keys=False, default_flow_style=False)


class _FlowList(list):
    pass


class _ConfigDumper(yaml.SafeDumper):
    pass


_ConfigDumper.add_representer(
    _FlowList,
    lambda dumper, data: dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True),
)


@dataclass
class Config:
    """Processed configuration used by the rest of the proxy.

    Schema fields are reachable directly (``conf.backends``), as well as
    through ``yaml_config``. The loader fills in the log channels and then
    calls ``freeze``; after that any assignment raises FrozenInstanceError.

    Attributes:
        yaml_config: Decoded configuration file
        sync_log_methods_set: Request methods logged to the sync log
        sync_log: Sync channel, or None if it could not be opened
        access_log: Access channel, or None if it could not be opened
        main_log: Main channel, or None if it could not be opened
    """
    yaml_config: YamlConfig = field(default_factory=YamlConfig)
    sync_log_methods_set: FrozenSet[str] = frozenset()
    sync_log: Optional[logging.Logger] = None
    access_log: Optional[logging.Logger] = None
    main_log: Optional[logging.Logger] = None
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.sync_log_methods_set:
            self.sync_log_methods_set = build_sync_log_methods_set(self.yaml_config.sync_log_methods)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if name == "yaml_config":
            raise AttributeError(name)
        return getattr(self.yaml_config, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_frozen"):
            raise FrozenInstanceError(f"cannot assign to field {name!r}")
        super().__setattr__(name, value)

    def freeze(self) -> None:
        """Make the configuration read-only."""
        object.__setattr__(self, "_frozen", True)


def parse_conf(source: BinaryIO) -> YamlConfig:
    """Read ``source`` to the end and decode it into a YamlConfig.

    Args:
        source: Binary readable holding the YAML document

    Returns:
        Decoded configuration

    Raises:
        ConfigIOError: If the source cannot be read
        DeserializationError: If the document is not valid YAML or does not
            match the schema (MalformedURL included)
    """
    try:
        data = source.read()
    except OSError as e:
        raise ConfigIOError(f"failed to read configuration: {e}") from e

    loader = yaml.SafeLoader(data)
    try:
        return YamlConfig.from_node(loader.get_single_node(), loader)
    except yaml.YAMLError as e:
        raise DeserializationError(f"invalid configuration document: {e}") from e
    finally:
        loader.dispose()


def build_sync_log_methods_set(methods: Iterable[str]) -> FrozenSet[str]:
    """Return the methods to sync-log, or the default set when none are given."""
    methods_set = frozenset(methods)
    return methods_set or DEFAULT_SYNC_LOG_METHODS


class ConfigLoader:
    """Loads the proxy configuration from a file and opens its log channels.

    Args:
        config_path: Path to the YAML configuration file
        syslog_address: Syslog socket path, or (host, port) for UDP
    """

    def __init__(self, config_path: str = "", syslog_address: SyslogAddress = DEFAULT_SYSLOG_ADDRESS):
        self.config_path = config_path
        self.syslog_address = syslog_address

    @log_execution_time()
    def configure(self) -> Result[Config, ProxyConfigException]:
        """Load the configuration.

        Returns:
            Success with the Config; Partial with the Config and a
            LoggerInitError when a syslog channel could not be opened;
            Failure with ConfigFileError, ConfigIOError or
            DeserializationError when the file could not be loaded
        """
        loaded = self.load_schema()
        if loaded.is_failure():
            logger.error(f"Failed to load configuration from {self.config_path!r}: {loaded.error}")
            return loaded

        yaml_config = loaded.unwrap()
        conf = Config(
            yaml_config=yaml_config,
            sync_log_methods_set=build_sync_log_methods_set(yaml_config.sync_log_methods),
        )
        logger.info(
            f"Loaded configuration from {self.config_path}: "
            f"{len(yaml_config.backends)} backend(s), listen={yaml_config.listen!r}"
        )

        logger_error = setup_loggers(conf, self.syslog_address)
        conf.freeze()
        if logger_error is not None:
            return Partial(conf, logger_error)
        return Success(conf)

    @as_result(ConfigurationError)
    def load_schema(self) -> YamlConfig:
        """Open the configuration file and decode it."""
        with self._open() as source:
            return parse_conf(source)

    def _open(self) -> BinaryIO:
        if not self.config_path:
            raise ConfigFileError("no configuration file given (use -c <path>)")
        try:
            return open(self.config_path, "rb")
        except OSError as e:
            raise ConfigFileError(f"cannot open configuration file {self.config_path!r}: {e}") from e


def configure(
    config_path: str, syslog_address: SyslogAddress = DEFAULT_SYSLOG_ADDRESS
) -> Result[Config, ProxyConfigException]:
    """Convenience function for creating a ConfigLoader and loading configuration."""
    return ConfigLoader(config_path, syslog_address).configure()


__all__ = [
    "BackendURL",
    "YamlConfig",
    "Config",
    "ConfigLoader",
    "DEFAULT_SYNC_LOG_METHODS",
    "build_sync_log_methods_set",
    "configure",
    "parse_conf",
]
