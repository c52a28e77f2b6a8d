"""Shared fixtures for unit tests."""

import subprocess
from pathlib import Path
from typing import Any, Callable, Sequence

import pytest

from models.config import Configuration

SystemctlFake = Callable[..., subprocess.CompletedProcess[str]]


def build_host_config(tmp_path: Path, **overrides: Any) -> Configuration:
    """Build a host configuration rooted in a temporary directory.

    Parameters:
        tmp_path: Directory standing in for the host filesystem.
        overrides: Top-level configuration keys replacing the defaults.

    Returns:
        Configuration: Host configuration with one source, transform and sink.
    """
    config: dict[str, Any] = {
        "etc_root": str(tmp_path / "etc" / "vector"),
        "service": {"unit_path": str(tmp_path / "systemd" / "vector.service")},
        "sources": [
            {
                "name": "logfile_input",
                "type": "file",
                "parameters": {"include": ["/var/log/**/*.log"]},
            }
        ],
        "transforms": [
            {
                "name": "logfile_transform",
                "type": "remap",
                "inputs": ["logfile_input"],
                "parameters": {"source": ". = parse_syslog!(.message)"},
                "format": "yaml",
            }
        ],
        "sinks": [
            {
                "name": "logfile_kafka",
                "type": "kafka",
                "inputs": ["logfile_transform"],
                "parameters": {
                    "bootstrap_servers": "localhost:9092",
                    "topic": "logs",
                    "encoding": {"codec": "json"},
                },
            }
        ],
    }
    config.update(overrides)
    return Configuration(**config)


@pytest.fixture(name="host_config")
def host_config_fixture(tmp_path: Path) -> Configuration:
    """Host configuration rooted in tmp_path."""
    return build_host_config(tmp_path)


def make_command_fake(
    active: bool = True, enabled: bool = True, installed: bool = True
) -> tuple[SystemctlFake, list[list[str]]]:
    """Build a stand-in for run_command answering systemctl and package queries.

    Returns:
        The fake callable and the list recording every command it received.
    """
    calls: list[list[str]] = []

    def fake(command: Sequence[str], check: bool = True) -> subprocess.CompletedProcess[str]:
        _ = check
        argv = list(command)
        calls.append(argv)
        returncode = 0
        if "is-active" in argv and not active:
            returncode = 3
        elif "is-enabled" in argv and not enabled:
            returncode = 1
        elif argv[0] in ("rpm", "dpkg") and not installed:
            returncode = 1
        return subprocess.CompletedProcess(argv, returncode, "", "")

    return fake, calls
