"""Configuration loader."""

from pathlib import Path
from typing import Any, Optional

import yaml

import constants
from log import get_logger
from models.config import (
    Configuration,
    GlobalOptionsConfiguration,
    PackageConfiguration,
    ServiceConfiguration,
)
from utils.types import Singleton

logger = get_logger(__name__)


class LogicError(Exception):
    """Error in application logic."""


class AgentConfig(metaclass=Singleton):
    """Singleton class to load and store the host configuration."""

    def __init__(self) -> None:
        """Initialize the class instance."""
        self._configuration: Optional[Configuration] = None

    def load_configuration(self, filename: str) -> None:
        """Load configuration from a YAML file.

        An empty document is treated as an empty configuration, which means
        all defaults and no declarations.

        Parameters:
            filename: Path to the host configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the content does not match the model.
        """
        with open(filename, encoding="utf-8") as fin:
            config_dict = yaml.safe_load(fin) or {}
        logger.info("Loaded configuration from %s", filename)
        self.init_from_dict(config_dict)

    def init_from_dict(self, config_dict: dict[str, Any]) -> None:
        """Initialize configuration from a dictionary.

        Parameters:
            config_dict: Raw configuration mapping (e.g. parsed YAML).
        """
        self._configuration = Configuration(**config_dict)

    @property
    def configuration(self) -> Configuration:
        """Return the whole host configuration."""
        if self._configuration is None:
            raise LogicError("logic error: configuration is not loaded")
        return self._configuration

    @property
    def etc_root(self) -> Path:
        """Return the agent configuration root directory."""
        return Path(self.configuration.etc_root)

    @property
    def configs_root(self) -> Path:
        """Return the directory holding the namespaced kind directories."""
        return self.etc_root / constants.CONFIGS_DIRECTORY

    @property
    def global_options(self) -> GlobalOptionsConfiguration:
        """Return global options configuration."""
        return self.configuration.global_options

    @property
    def package(self) -> PackageConfiguration:
        """Return package configuration."""
        return self.configuration.package

    @property
    def service(self) -> ServiceConfiguration:
        """Return service configuration."""
        return self.configuration.service


configuration: AgentConfig = AgentConfig()
