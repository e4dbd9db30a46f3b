"""
Configuration schema for devgate.

Defines all configurable options with metadata for validation
and documentation.
"""

from enum import Enum
from typing import Optional, List, Any
from dataclasses import dataclass


class ConfigType(Enum):
    """Configuration value types."""
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    PATH = "path"          # File system path
    LIST = "list"          # Comma-separated values


class ConfigCategory(Enum):
    """Configuration categories for grouping."""
    PATHS = "paths"
    ROUTING = "routing"
    SERVER = "server"


@dataclass
class ConfigField:
    """Definition of a configuration field."""
    key: str
    description: str
    config_type: ConfigType
    category: ConfigCategory
    required: bool = False
    default: Any = None
    env_var: str = None          # Override env var name (defaults to key)
    validation: str = None       # Regex pattern
    options: List[str] = None    # For enumerated types
    restart_required: bool = False

    def __post_init__(self):
        if self.env_var is None:
            self.env_var = self.key


# ==================== Schema Definition ====================

CONFIG_SCHEMA: List[ConfigField] = [
    # === Paths ===
    ConfigField(
        key="DEVGATE_ROOT",
        description="Directory all client-dev-interface operations are confined to",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        required=True,
        default="./data/root",
        restart_required=True,
    ),
    ConfigField(
        key="DEVGATE_TMP_DIR",
        description="Staging directory for uploaded files awaiting commit",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        required=True,
        default="./data/tmp",
        restart_required=True,
    ),

    # === Routing ===
    ConfigField(
        key="DEVGATE_ROUTE_PREFIX",
        description="URL prefix the operation name follows (e.g. /client-dev-interface/create)",
        config_type=ConfigType.STRING,
        category=ConfigCategory.ROUTING,
        required=False,
        default="/client-dev-interface",
        validation=r"^/[^?#]*[^/?#]$",
        restart_required=True,
    ),

    # === Server ===
    ConfigField(
        key="DEVGATE_HOST",
        description="Server bind address",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        required=False,
        default="127.0.0.1",
        restart_required=True,
    ),
    ConfigField(
        key="DEVGATE_PORT",
        description="Server port",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.SERVER,
        required=False,
        default=8080,
        restart_required=True,
    ),
    ConfigField(
        key="DEVGATE_CORS_ORIGINS",
        description="CORS allowed origins (comma-separated)",
        config_type=ConfigType.LIST,
        category=ConfigCategory.SERVER,
        required=False,
        default="http://localhost:8080",
        restart_required=True,
    ),
    ConfigField(
        key="DEVGATE_LOG_LEVEL",
        description="Logging verbosity",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        required=False,
        default="INFO",
        options=["DEBUG", "INFO", "WARNING", "ERROR"],
    ),
]


def get_schema_by_key(key: str) -> Optional[ConfigField]:
    """Get schema field by key."""
    for field in CONFIG_SCHEMA:
        if field.key == key:
            return field
    return None


def get_schema_by_category(category: ConfigCategory) -> List[ConfigField]:
    """Get all fields in a category."""
    return [f for f in CONFIG_SCHEMA if f.category == category]


def schema_to_dict() -> dict:
    """Convert schema to dict for API output."""
    result = {}
    for cat in ConfigCategory:
        fields = get_schema_by_category(cat)
        result[cat.value] = [
            {
                "key": f.key,
                "description": f.description,
                "type": f.config_type.value,
                "required": f.required,
                "default": f.default,
                "options": f.options,
                "restart_required": f.restart_required,
            }
            for f in fields
        ]
    return result
