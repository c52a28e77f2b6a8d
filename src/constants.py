"""Constants used in business logic."""

from typing import Final

# Logging
VECTOR_CONFIG_LOG_LEVEL_ENV_VAR: Final[str] = "VECTOR_CONFIG_LOG_LEVEL"
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

# Default location of the host configuration document
DEFAULT_CONFIGURATION_FILE: Final[str] = "vector-config.yaml"

# Directory layout expected by the agent
DEFAULT_ETC_ROOT: Final[str] = "/etc/vector"
CONFIGS_DIRECTORY: Final[str] = "configs"
GLOBAL_OPTIONS_STEM: Final[str] = "global"

SOURCES_DIRECTORY: Final[str] = "sources"
TRANSFORMS_DIRECTORY: Final[str] = "transforms"
SINKS_DIRECTORY: Final[str] = "sinks"

# Serialization formats
YAML_FORMATS: Final[frozenset[str]] = frozenset({"yaml", "yml"})
TOML_FORMAT: Final[str] = "toml"
JSON_FORMAT: Final[str] = "json"

# Fields the renderer derives from a declaration
DERIVED_TYPE_FIELD: Final[str] = "type"
DERIVED_INPUTS_FIELD: Final[str] = "inputs"

# Global options
DEFAULT_DATA_DIR: Final[str] = "/var/lib/vector"

# Package
DEFAULT_PACKAGE_NAME: Final[str] = "vector"
DEFAULT_PACKAGE_VERSION: Final[str] = "latest"
DEFAULT_PACKAGE_PROVIDER: Final[str] = "dnf"

# Service
DEFAULT_SERVICE_NAME: Final[str] = "vector"
DEFAULT_UNIT_PATH: Final[str] = "/etc/systemd/system/vector.service"
DEFAULT_AGENT_BINARY: Final[str] = "/usr/bin/vector"
DEFAULT_SERVICE_USER: Final[str] = "vector"
DEFAULT_SERVICE_GROUP: Final[str] = "vector"
SYSTEMCTL_COMMAND: Final[str] = "systemctl"
