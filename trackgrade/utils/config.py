"""
Configuration management for trackgrade.

Loads YAML configuration with ``${ENV_VAR}`` interpolation and
dot-notation access, falling back to built-in defaults.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from trackgrade.utils.errors import ConfigurationError

# Keys checked by load_config(); anything else is passed through untouched.
CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "analysis.default_genre": {"type": str},
    "analysis.default_stage": {"type": str},
    "benchmarks": {"type": dict},
    "cache.enabled": {"type": bool},
    "cache.max_size": {"type": int},
    "cache.ttl": {"type": (int, float)},
    "logging.level": {"type": str},
    "logging.format": {"type": str},
    "performance.max_workers": {"type": int},
}


class ConfigManager:
    """
    Holds a configuration tree loaded from YAML.

    Features:
    - Environment variable interpolation (``${VAR_NAME}``)
    - Nested key access with dot notation
    - Type validation against a schema
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager.

        Args:
            config_dict: Optional pre-loaded configuration dictionary
        """
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from a YAML file.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            ConfigManager: Initialized with file contents

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._config = manager._interpolate(manager._config)
        return manager

    def _interpolate(self, value: Any) -> Any:
        """Recursively replace ``${ENV_VAR}`` in every string value."""
        if isinstance(value, dict):
            return {key: self._interpolate(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, str):
            return self._env_pattern.sub(self._replace_env, value)
        return value

    @staticmethod
    def _replace_env(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            return match.group(0)  # Keep original if not set
        return value

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key, e.g. "cache.max_size"
            default: Default value if key not found
            required: If True, raise error when key not found

        Returns:
            Configuration value or default

        Raises:
            ConfigurationError: If required key is not found
        """
        value: Any = self._config

        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Return a whole section as a dict (empty if missing or not a mapping)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return self._config.copy()

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Args:
            schema: Mapping of dot-notation keys to rules, e.g.
                    ``{"cache.max_size": {"type": int, "required": True}}``

        Raises:
            ConfigurationError: If a required key is missing or a value
                                has the wrong type
        """
        for key, rules in schema.items():
            value = self.get(key)
            expected_type = rules.get("type")

            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            # bool is an int subclass; don't let `true` pass as a size
            if expected_type is int and isinstance(value, bool):
                value_ok = False
            else:
                value_ok = not expected_type or isinstance(value, expected_type)

            if not value_ok:
                expected_name = (
                    " or ".join(t.__name__ for t in expected_type)
                    if isinstance(expected_type, tuple)
                    else expected_type.__name__
                )
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {expected_name}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file, merged over the defaults.

    Args:
        config_path: Optional path to config file. If None, tries
                     "config/config.yaml" then "config.yaml".

    Returns:
        Dict[str, Any]: Validated configuration dictionary

    Raises:
        ConfigurationError: If an explicit path is missing or the file
                            fails validation
    """
    if config_path is not None and not Path(config_path).exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            config_key=config_path
        )

    if config_path is None:
        for path in (Path("config/config.yaml"), Path("config.yaml")):
            if path.exists():
                config_path = str(path)
                break

    config = get_default_config()
    if config_path:
        loaded = ConfigManager.from_file(Path(config_path)).to_dict()
        config = _merge(config, loaded)

    ConfigManager(config).validate(CONFIG_SCHEMA)
    return config


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "analysis": {
            "default_genre": "Pop",
            "default_stage": "unknown",
        },
        "benchmarks": {},
        "cache": {
            "enabled": True,
            "max_size": 1000,
            "ttl": 3600,
        },
        "logging": {
            "level": "INFO",
            "format": "text",
        },
        "performance": {
            "max_workers": 4,
        },
    }
