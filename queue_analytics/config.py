"""Configuration loader for the queue analytics engine"""

import logging
import os
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import yaml

from .exceptions import ConfigurationError
from .math_utils import ROUNDING_HALF_EVEN, ROUNDING_HALF_UP

logger = logging.getLogger(__name__)

_VALID_GATEWAY_TYPES = {"sqlite", "http"}
_VALID_ROUNDING_MODES = {ROUNDING_HALF_UP, ROUNDING_HALF_EVEN}

# Configuration schema: maps attribute names to (config_path, default_value, type_converter)
# type_converter is optional - if None, returns value as-is
_CONFIG_SCHEMA: Dict[str, Tuple[str, Any, Optional[Callable]]] = {
    # Cache settings
    "cache_ttl_seconds": ("cache.ttl_seconds", 300, float),
    "cache_single_flight": ("cache.single_flight", True, bool),
    # Gateway settings
    "gateway_type": ("gateway.type", "sqlite", str),
    "database_path": ("gateway.sqlite.path", "data/queues.db", str),
    "wal_mode": ("gateway.sqlite.wal_mode", True, bool),
    "gateway_base_url": ("gateway.http.base_url", "http://localhost:8000", str),
    "gateway_timeout": ("gateway.http.timeout", 10, float),
    "gateway_api_key": ("gateway.http.api_key", None, str),
    # Analytics settings
    "queue_page_limit": ("analytics.queue_page_limit", 10000, int),
    "employee_page_limit": ("analytics.employee_page_limit", 100, int),
    "branch_timeout_seconds": ("analytics.branch_timeout_seconds", 10.0, float),
    "max_workers": ("analytics.max_workers", 5, int),
    "capacity_minutes": ("analytics.capacity_minutes", 7 * 8 * 60, int),
    "rounding": ("analytics.rounding", ROUNDING_HALF_UP, str),
    "timezone": ("analytics.timezone", "", str),
    # Optimization business assumptions
    "optimization_window_days": ("optimization.window_days", 7, int),
    "target_efficiency": ("optimization.target_efficiency", 0.9, float),
    "flat_service_price": ("optimization.flat_service_price", 100, float),
    "implementation_cost": ("optimization.implementation_cost", 5000, float),
    # Logging settings
    "log_path": ("logging.path", "logs/queue-analytics.log", str),
    "log_level": ("logging.level", "INFO", str),
    "log_max_size_mb": ("logging.max_size_mb", 10, int),
    "log_backup_count": ("logging.backup_count", 3, int),
    # Web server settings
    "web_server_host": ("web_server.host", "0.0.0.0", str),
    "web_server_port": ("web_server.port", 8080, int),
}


class Config:
    """Configuration loaded from YAML"""

    def __init__(self, config_path: str = "config.yaml"):
        """
        Load configuration from YAML file

        Args:
            config_path: Path to config.yaml file

        Raises:
            ConfigurationError: If config file is missing or invalid
        """
        if not os.path.exists(config_path):
            error_msg = (
                f"Configuration file not found: {config_path}\n"
                f"Please create a config.yaml file from the example:\n"
                f"  cp config.yaml.example config.yaml"
            )
            raise ConfigurationError(error_msg, config_key=config_path)

        self.config_path = config_path
        self._config = self._load(config_path)

        # Cache for computed values
        self._cache: Dict[str, Any] = {}

        # Validate configuration on load
        self._validate_config()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]] = None) -> "Config":
        """
        Build a configuration from an in-memory mapping.

        Args:
            data: Nested configuration dictionary (defaults apply when empty)

        Returns:
            Config instance
        """
        config = cls.__new__(cls)
        config.config_path = None
        config._config = dict(data or {})
        config._cache = {}
        config._validate_config()
        return config

    @staticmethod
    def _load(config_path: str) -> Dict[str, Any]:
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            error_msg = f"Invalid YAML syntax in configuration file: {e}"
            raise ConfigurationError(error_msg, config_key=config_path)
        except OSError as e:
            error_msg = f"Failed to read configuration file: {e}"
            raise ConfigurationError(error_msg, config_key=config_path)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Top level of configuration file must be a mapping",
                config_key=config_path,
            )
        return data

    def _validate_config(self) -> None:
        """
        Validate configuration values on load.
        Logs warnings for invalid values; defaults still apply where possible.
        """
        config_warnings: List[str] = []

        gateway_type = self.get("gateway.type", "sqlite")
        if gateway_type not in _VALID_GATEWAY_TYPES:
            config_warnings.append(
                f"Unknown gateway type '{gateway_type}' - "
                f"must be one of: {', '.join(sorted(_VALID_GATEWAY_TYPES))}"
            )

        ttl = self.get("cache.ttl_seconds", 300)
        if not isinstance(ttl, (int, float)) or ttl <= 0:
            config_warnings.append(f"Cache TTL {ttl} must be a positive number")

        branch_timeout = self.get("analytics.branch_timeout_seconds", 10.0)
        if not isinstance(branch_timeout, (int, float)) or not (0 < branch_timeout <= 300):
            config_warnings.append(
                f"Branch timeout {branch_timeout}s outside recommended range (0-300s)"
            )

        capacity = self.get("analytics.capacity_minutes", 3360)
        if not isinstance(capacity, int) or capacity <= 0:
            config_warnings.append(
                f"Capacity {capacity} minutes must be a positive integer"
            )

        rounding = self.get("analytics.rounding", ROUNDING_HALF_UP)
        if rounding not in _VALID_ROUNDING_MODES:
            config_warnings.append(
                f"Invalid rounding mode '{rounding}' - "
                f"must be one of: {', '.join(sorted(_VALID_ROUNDING_MODES))}"
            )

        target = self.get("optimization.target_efficiency", 0.9)
        if not isinstance(target, (int, float)) or not (0 < target <= 1):
            config_warnings.append(
                f"Target efficiency {target} outside valid range (0-1]"
            )

        web_port = self.get("web_server.port", 8080)
        if not isinstance(web_port, int) or not (1024 <= web_port <= 65535):
            config_warnings.append(
                f"Web server port {web_port} outside valid range (1024-65535)"
            )

        # Validate log level
        log_level = self.get("logging.level", "INFO")
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if str(log_level).upper() not in valid_levels:
            config_warnings.append(
                f"Invalid log level '{log_level}' - "
                f"must be one of: {', '.join(sorted(valid_levels))}"
            )

        for warning in config_warnings:
            logger.warning("Configuration: %s", warning)

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation

        Args:
            key_path: Dot-separated path (e.g., "cache.ttl_seconds")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def __getattr__(self, name: str) -> Any:
        """
        Dynamic attribute access for configuration values.

        Attribute names, paths, defaults and converters come from the schema.
        """
        # Avoid recursion for private attributes
        if name.startswith("_"):
            raise AttributeError(
                f"'{type(self).__name__}' has no attribute '{name}'"
            )

        if name in _CONFIG_SCHEMA:
            if name in self._cache:
                return self._cache[name]

            config_path, default, type_converter = _CONFIG_SCHEMA[name]
            value = self.get(config_path, default)

            if type_converter is not None and value is not None:
                try:
                    value = type_converter(value)
                except (ValueError, TypeError):
                    logger.warning(
                        "Configuration: Failed to convert '%s' value '%s' "
                        "to %s, using default: %s",
                        name, value, type_converter.__name__, default
                    )
                    value = default

            self._cache[name] = value
            return value

        raise AttributeError(
            f"'{type(self).__name__}' has no attribute '{name}'"
        )

    def __repr__(self) -> str:
        return (
            f"Config(gateway={self.gateway_type}, "
            f"cache_ttl={self.cache_ttl_seconds}, path={self.config_path})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Export all configuration values as a dictionary.

        Returns:
            Dictionary of all configuration values
        """
        return {name: getattr(self, name) for name in _CONFIG_SCHEMA}
