"""Unit tests for src/convergence.py."""

import json
import tomllib
from pathlib import Path

import pytest
import yaml
from pytest_mock import MockerFixture

from convergence import Convergence, ConvergenceState
from models.config import Configuration
from registry import DeclarationRegistry
from renderer import RenderError
from tests.unit.conftest import build_host_config, make_command_fake


@pytest.fixture(name="commands")
def commands_fixture(mocker: MockerFixture) -> list[list[str]]:
    """Patch external commands with a running, enabled, installed agent."""
    fake, calls = make_command_fake()
    mocker.patch("service.run_command", side_effect=fake)
    mocker.patch("package.run_command", side_effect=fake)
    return calls


def test_run_lays_out_files(
    host_config: Configuration, commands: list[list[str]]
) -> None:
    """Test every declaration lands in its namespaced directory."""
    _ = commands
    report = Convergence(host_config).run()

    etc_root = Path(host_config.etc_root)
    configs = etc_root / "configs"
    source = configs / "sources" / "logfile_input.toml"
    transform = configs / "transforms" / "logfile_transform.yaml"
    sink = configs / "sinks" / "logfile_kafka.toml"
    global_file = etc_root / "global.toml"

    assert report.written == [global_file, source, transform, sink]
    assert tomllib.loads(source.read_text(encoding="utf-8")) == {
        "type": "file",
        "include": ["/var/log/**/*.log"],
    }
    assert yaml.safe_load(transform.read_text(encoding="utf-8")) == {
        "type": "remap",
        "inputs": ["logfile_input"],
        "source": ". = parse_syslog!(.message)",
    }
    assert tomllib.loads(sink.read_text(encoding="utf-8"))["inputs"] == [
        "logfile_transform"
    ]
    assert tomllib.loads(global_file.read_text(encoding="utf-8")) == {
        "data_dir": "/var/lib/vector"
    }


def test_run_reaches_states_in_order(
    host_config: Configuration, commands: list[list[str]]
) -> None:
    """Test the run reports installed, configured and running in order."""
    _ = commands
    report = Convergence(host_config).run()
    assert report.states == [
        ConvergenceState.INSTALLED,
        ConvergenceState.CONFIGURED,
        ConvergenceState.RUNNING,
    ]


def test_restart_only_when_configuration_changes(
    host_config: Configuration, commands: list[list[str]]
) -> None:
    """Test a second identical run writes nothing and does not restart."""
    first = Convergence(host_config).run()
    assert first.restarted is True
    assert ["systemctl", "daemon-reload"] in commands

    commands.clear()
    second = Convergence(host_config).run()
    assert not second.written
    assert len(second.unchanged) == 4
    assert second.unit_file_changed is False
    assert second.restarted is False
    assert ["systemctl", "restart", "vector"] not in commands


def test_changed_parameters_trigger_restart(
    tmp_path: Path, commands: list[list[str]]
) -> None:
    """Test modifying a declaration rewrites its file and restarts."""
    Convergence(build_host_config(tmp_path)).run()
    commands.clear()

    config = build_host_config(
        tmp_path,
        sources=[
            {
                "name": "logfile_input",
                "type": "file",
                "parameters": {"include": ["/srv/app/*.log"]},
            }
        ],
    )
    report = Convergence(config).run()
    source = tmp_path / "etc/vector/configs/sources/logfile_input.toml"
    assert report.written == [source]
    assert report.restarted is True
    assert ["systemctl", "restart", "vector"] in commands


def test_withdrawn_declaration_is_purged(
    tmp_path: Path, commands: list[list[str]]
) -> None:
    """Test files of withdrawn declarations are removed."""
    _ = commands
    Convergence(build_host_config(tmp_path)).run()
    stale = tmp_path / "etc/vector/configs/sinks/logfile_kafka.toml"
    assert stale.is_file()

    report = Convergence(build_host_config(tmp_path, sinks=[])).run()
    assert report.removed == [stale]
    assert not stale.exists()
    assert report.restarted is True


def test_purge_disabled_keeps_foreign_files(
    tmp_path: Path, commands: list[list[str]]
) -> None:
    """Test purge_unmanaged=False leaves unknown files in place."""
    _ = commands
    Convergence(build_host_config(tmp_path)).run()
    stale = tmp_path / "etc/vector/configs/sinks/logfile_kafka.toml"

    report = Convergence(
        build_host_config(tmp_path, sinks=[], purge_unmanaged=False)
    ).run()
    assert not report.removed
    assert stale.is_file()


def test_dry_run_changes_nothing(
    host_config: Configuration, commands: list[list[str]]
) -> None:
    """Test a dry run reports the changes without touching the host."""
    report = Convergence(host_config).run(dry_run=True)

    assert report.dry_run is True
    assert len(report.written) == 4
    assert report.unit_file_changed is True
    assert not Path(host_config.etc_root).exists()
    assert not Path(host_config.service.unit_path).exists()
    assert all(c[1] in ("-q", "is-active", "is-enabled") for c in commands)


def test_skip_install_and_service(
    host_config: Configuration, commands: list[list[str]]
) -> None:
    """Test skipping install and service only configures files."""
    report = Convergence(host_config).run(skip_install=True, skip_service=True)
    assert report.states == [ConvergenceState.CONFIGURED]
    assert not commands
    assert len(report.written) == 4


def test_unmanaged_service_is_left_alone(
    tmp_path: Path, commands: list[list[str]]
) -> None:
    """Test service.manage=False skips the unit file and systemctl."""
    config = build_host_config(tmp_path, service={"manage": False})
    report = Convergence(config).run(skip_install=True)
    assert ConvergenceState.RUNNING not in report.states
    assert not commands


def test_package_installed_when_missing(
    host_config: Configuration, mocker: MockerFixture
) -> None:
    """Test the install phase installs a missing package."""
    fake, calls = make_command_fake(installed=False)
    mocker.patch("service.run_command", side_effect=fake)
    mocker.patch("package.run_command", side_effect=fake)

    report = Convergence(host_config).run()
    assert report.package_installed is True
    assert calls[1] == ["dnf", "install", "-y", "vector"]


def test_render_failure_aborts_before_writing(
    tmp_path: Path, commands: list[list[str]]
) -> None:
    """Test a declaration that cannot be rendered prevents all writes."""
    config = build_host_config(
        tmp_path,
        sinks=[
            {
                "name": "broken",
                "type": "console",
                "inputs": ["logfile_transform"],
                "parameters": {"target": None},
            }
        ],
    )
    with pytest.raises(RenderError, match="sink 'broken'"):
        Convergence(config).run()

    configs = tmp_path / "etc/vector/configs"
    assert not any(p.is_file() for p in configs.rglob("*"))
    assert ["systemctl", "restart", "vector"] not in commands


def test_duplicate_name_last_declaration_persists(
    tmp_path: Path, commands: list[list[str]]
) -> None:
    """Test a repeated source name writes the last declared content."""
    _ = commands
    config = build_host_config(
        tmp_path,
        sources=[
            {"name": "logfile_input", "type": "file", "parameters": {"include": ["/a"]}},
            {"name": "logfile_input", "type": "file", "parameters": {"include": ["/b"]}},
        ],
    )
    Convergence(config).run()
    source = tmp_path / "etc/vector/configs/sources/logfile_input.toml"
    assert tomllib.loads(source.read_text(encoding="utf-8"))["include"] == ["/b"]


def test_explicit_registry(host_config: Configuration, commands: list[list[str]]) -> None:
    """Test an explicitly passed registry replaces configured declarations."""
    _ = commands
    registry = DeclarationRegistry()
    registry.declare_source("stdin_input", "stdin", format="json")

    report = Convergence(host_config, registry=registry).run()
    configs = Path(host_config.etc_root) / "configs"
    stdin_file = configs / "sources" / "stdin_input.json"
    assert stdin_file in report.written
    assert json.loads(stdin_file.read_text(encoding="utf-8")) == {"type": "stdin"}
    assert not (configs / "sinks" / "logfile_kafka.toml").exists()


def test_empty_registry_is_not_replaced(
    host_config: Configuration, commands: list[list[str]]
) -> None:
    """Test an empty registry renders only the global options."""
    _ = commands
    report = Convergence(host_config, registry=DeclarationRegistry()).run()
    assert report.written == [Path(host_config.etc_root) / "global.toml"]


def test_corrupted_file_is_regenerated(
    host_config: Configuration, commands: list[list[str]]
) -> None:
    """Test a managed file with undecodable content is rewritten."""
    _ = commands
    source = Path(host_config.etc_root) / "configs" / "sources" / "logfile_input.toml"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"\xff\xfe garbage")

    report = Convergence(host_config).run()
    assert source in report.written
    assert tomllib.loads(source.read_text(encoding="utf-8"))["type"] == "file"
