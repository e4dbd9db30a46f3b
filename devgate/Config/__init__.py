"""
devgate Configuration Manager.

Centralized configuration with:
- Schema-driven validation
- Environment variable fallback
- Persistent storage in data/config.json
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv, set_key

from devgate.shared.gate import GateLogger

_log = GateLogger.get("Config")

from devgate.Config.schema import (
    CONFIG_SCHEMA,
    ConfigField,
    ConfigType,
    ConfigCategory,
    get_schema_by_key,
    schema_to_dict,
)


# Config file paths
PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = PROJECT_ROOT / ".env"
CONFIG_JSON = PROJECT_ROOT / "data" / "config.json"


class ConfigManager:
    """
    Manages devgate configuration.

    Priority order:
    1. Environment variables
    2. config.json
    3. Schema defaults
    """

    def __init__(
        self,
        config_json: Optional[Union[str, Path]] = None,
        env_file: Optional[Union[str, Path]] = None,
    ):
        self._config_json = Path(config_json) if config_json else CONFIG_JSON
        self._env_file = Path(env_file) if env_file else ENV_FILE
        self._cache: Dict[str, Any] = {}
        self._loaded = False
        self._load()

    def _load(self):
        """Load configuration from all sources."""
        if self._env_file.exists():
            load_dotenv(self._env_file)

        json_config = {}
        if self._config_json.exists():
            try:
                with open(self._config_json, encoding="utf-8") as f:
                    json_config = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                _log.warning(f"Ignoring unreadable {self._config_json}: {e}")

        for field in CONFIG_SCHEMA:
            # Priority: env var > json config > default
            value = os.environ.get(field.env_var)

            if value is None and field.key in json_config:
                value = json_config[field.key]

            if value is None:
                value = field.default

            self._cache[field.key] = self._convert_type(value, field.config_type)

        self._loaded = True

    def _convert_type(self, value: Any, config_type: ConfigType) -> Any:
        """Convert value to appropriate type."""
        if value is None:
            return None

        try:
            if config_type == ConfigType.INTEGER:
                return int(value)
            elif config_type == ConfigType.BOOLEAN:
                if isinstance(value, bool):
                    return value
                return str(value).lower() in ("true", "1", "yes", "on")
            elif config_type == ConfigType.LIST:
                if isinstance(value, list):
                    return value
                return [v.strip() for v in str(value).split(",") if v.strip()]
            else:
                return str(value) if value else None
        except (ValueError, TypeError):
            return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        if not self._loaded:
            self._load()
        value = self._cache.get(key)
        return default if value is None else value

    def set(self, key: str, value: Any, persist: bool = True) -> bool:
        """
        Set a configuration value.

        Args:
            key: Config key
            value: New value
            persist: Whether to save to config.json and .env

        Returns:
            True if successful
        """
        field = get_schema_by_key(key)
        if not field:
            return False

        value = self._convert_type(value, field.config_type)
        self._cache[key] = value

        if persist:
            self._save_json()
            self._update_env(field.env_var, value, field.config_type)

        return True

    def _save_json(self):
        """Save non-default values to config.json."""
        to_save = {}
        for field in CONFIG_SCHEMA:
            value = self._cache.get(field.key)
            if value is None:
                continue
            if value == self._convert_type(field.default, field.config_type):
                continue
            to_save[field.key] = value

        self._config_json.parent.mkdir(parents=True, exist_ok=True)
        with open(self._config_json, "w", encoding="utf-8") as f:
            json.dump(to_save, f, indent=2)

    def _update_env(self, key: str, value: Any, config_type: ConfigType):
        """Update .env file and the process environment."""
        if config_type == ConfigType.BOOLEAN:
            str_value = "true" if value else "false"
        elif config_type == ConfigType.LIST:
            str_value = ",".join(value) if isinstance(value, list) else str(value)
        else:
            str_value = str(value) if value is not None else ""

        try:
            set_key(str(self._env_file), key, str_value)
            os.environ[key] = str_value
        except OSError as e:
            _log.warning(f"Could not update .env: {e}")

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return {field.key: self._cache.get(field.key) for field in CONFIG_SCHEMA}

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate configuration.

        Returns:
            (is_valid, list of error messages)
        """
        errors = []

        for field in CONFIG_SCHEMA:
            value = self._cache.get(field.key)

            if field.required and (value is None or value == ""):
                errors.append(f"Required config missing: {field.key}")
                continue

            if value and field.validation:
                if not re.match(field.validation, str(value)):
                    errors.append(f"Invalid format for {field.key}")

            if value and field.options and value not in field.options:
                errors.append(f"Invalid option for {field.key}: {value}")

        return len(errors) == 0, errors


# Global instance
_manager: Optional[ConfigManager] = None


def get_manager() -> ConfigManager:
    """Get or create the global ConfigManager."""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager


def reload(
    config_json: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
) -> ConfigManager:
    """Reload configuration from files."""
    global _manager
    _manager = ConfigManager(config_json, env_file)
    return _manager


# Convenience functions
def get(key: str, default: Any = None) -> Any:
    """Get a config value."""
    return get_manager().get(key, default)


def set(key: str, value: Any, persist: bool = True) -> bool:
    """Set a config value."""
    return get_manager().set(key, value, persist)


def get_all() -> Dict:
    """Get all config values."""
    return get_manager().get_all()


def validate() -> Tuple[bool, List[str]]:
    """Validate configuration."""
    return get_manager().validate()


def get_schema() -> Dict:
    """Get schema as dict for API."""
    return schema_to_dict()


__all__ = [
    "ConfigManager",
    "ConfigField",
    "ConfigType",
    "ConfigCategory",
    "CONFIG_SCHEMA",
    "get_manager",
    "reload",
    "get",
    "set",
    "get_all",
    "validate",
    "get_schema",
]
