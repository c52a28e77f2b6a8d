"""Unit tests for functions defined in src/configuration.py."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from configuration import AgentConfig, LogicError
from models.config import ConfigFormat, PackageProvider

SAMPLE_CONFIG = "tests/configuration/vector-config.yaml"


@pytest.fixture(name="agent_config")
def agent_config_fixture() -> AgentConfig:
    """Return the singleton with no configuration loaded."""
    cfg = AgentConfig()
    cfg._configuration = None  # pylint: disable=protected-access
    return cfg


def test_default_configuration(agent_config: AgentConfig) -> None:
    """Test that configuration attributes are not accessible before load."""
    with pytest.raises(LogicError, match="configuration is not loaded"):
        _ = agent_config.configuration

    with pytest.raises(LogicError, match="configuration is not loaded"):
        _ = agent_config.etc_root

    with pytest.raises(LogicError, match="configuration is not loaded"):
        _ = agent_config.service


def test_agent_config_is_singleton() -> None:
    """Test that the configuration holder is shared."""
    assert AgentConfig() is AgentConfig()


def test_init_from_dict(agent_config: AgentConfig) -> None:
    """Test the configuration initialization from dictionary."""
    agent_config.init_from_dict({"etc_root": "/opt/vector"})
    assert agent_config.etc_root == Path("/opt/vector")
    assert agent_config.configs_root == Path("/opt/vector/configs")
    assert agent_config.global_options.format == ConfigFormat.TOML
    assert agent_config.package.provider == PackageProvider.DNF
    assert agent_config.service.name == "vector"


def test_init_from_dict_invalid(agent_config: AgentConfig) -> None:
    """Test that invalid configuration is rejected."""
    with pytest.raises(ValidationError):
        agent_config.init_from_dict({"package": {"provider": "pacman"}})


def test_load_configuration(agent_config: AgentConfig) -> None:
    """Test loading the sample configuration file."""
    agent_config.load_configuration(SAMPLE_CONFIG)
    cfg = agent_config.configuration
    assert [s.name for s in cfg.sources] == ["logfile_input"]
    assert cfg.transforms[0].format == ConfigFormat.YAML
    assert cfg.sinks[0].parameters["encoding"] == {"codec": "json"}
    assert cfg.global_options.options["api"] == {
        "enabled": True,
        "address": "127.0.0.1:8686",
    }


def test_load_empty_configuration(agent_config: AgentConfig, tmp_path: Path) -> None:
    """Test an empty file yields the defaults."""
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("", encoding="utf-8")
    agent_config.load_configuration(str(config_file))
    assert agent_config.etc_root == Path("/etc/vector")
    assert not agent_config.configuration.sources


def test_load_configuration_missing_file(agent_config: AgentConfig) -> None:
    """Test loading a configuration file that does not exist."""
    with pytest.raises(FileNotFoundError):
        agent_config.load_configuration("/nonexistent/vector-config.yaml")


def test_load_configuration_invalid_yaml(
    agent_config: AgentConfig, tmp_path: Path
) -> None:
    """Test loading a file that is not valid YAML."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("sources: [unclosed\n", encoding="utf-8")
    with pytest.raises(yaml.YAMLError):
        agent_config.load_configuration(str(config_file))
