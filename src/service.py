"""Supervision of the agent service through systemd."""

from pathlib import Path
from string import Template

import constants
from log import get_logger
from models.config import ServiceConfiguration
from utils.commands import run_command
from utils.files import ensure_directory, write_if_changed

logger = get_logger(__name__)

UNIT_TEMPLATE = Template(
    """\
[Unit]
Description=Vector
Documentation=https://vector.dev
After=network-online.target
Requires=network-online.target

[Service]
User=$user
Group=$group
ExecStartPre=$binary validate --config $global_file --config-dir $configs_dir
ExecStart=$binary --config $global_file --config-dir $configs_dir
ExecReload=$binary validate --config $global_file --config-dir $configs_dir
ExecReload=/bin/kill -HUP $$MAINPID
Restart=always
AmbientCapabilities=CAP_NET_BIND_SERVICE
EnvironmentFile=-/etc/default/vector

[Install]
WantedBy=multi-user.target
"""
)


def render_unit_file(
    config: ServiceConfiguration, global_file: Path, configs_dir: Path
) -> str:
    """Fill the static unit template for the configured agent.

    Parameters:
        config: Service settings (binary, user, group).
        global_file: Path of the global options document.
        configs_dir: Directory with the sources/transforms/sinks subdirectories.

    Returns:
        str: The unit file content.
    """
    return UNIT_TEMPLATE.substitute(
        user=config.user,
        group=config.group,
        binary=config.binary,
        global_file=global_file,
        configs_dir=configs_dir,
    )


class ServiceSupervisor:
    """Start, enable and restart the agent through systemctl."""

    def __init__(self, config: ServiceConfiguration) -> None:
        """Initialize the supervisor for the configured service."""
        self.config = config

    def _systemctl(self, *args: str, check: bool = True) -> int:
        result = run_command(
            [constants.SYSTEMCTL_COMMAND, *args, self.config.name], check=check
        )
        return result.returncode

    def is_active(self) -> bool:
        """Check whether the service is running."""
        return self._systemctl("is-active", "--quiet", check=False) == 0

    def is_enabled(self) -> bool:
        """Check whether the service starts at boot."""
        return self._systemctl("is-enabled", "--quiet", check=False) == 0

    def start(self) -> None:
        """Start the service."""
        logger.info("Starting service %s", self.config.name)
        self._systemctl("start")

    def enable(self) -> None:
        """Enable the service at boot."""
        logger.info("Enabling service %s", self.config.name)
        self._systemctl("enable")

    def restart(self) -> None:
        """Restart the service."""
        logger.info("Restarting service %s", self.config.name)
        self._systemctl("restart")

    def daemon_reload(self) -> None:
        """Make systemd re-read unit files."""
        logger.info("Reloading systemd manager configuration")
        run_command([constants.SYSTEMCTL_COMMAND, "daemon-reload"])

    def on_config_changed(self) -> None:
        """Signal that rendered configuration changed on disk."""
        self.restart()

    def ensure_unit_file(
        self, global_file: Path, configs_dir: Path, dry_run: bool = False
    ) -> bool:
        """Write the unit file and reload systemd when it changed.

        Returns:
            bool: True if the unit file was (or would be) changed.
        """
        unit_path = Path(self.config.unit_path)
        content = render_unit_file(self.config, global_file, configs_dir)
        ensure_directory(unit_path.parent, dry_run=dry_run)
        changed = write_if_changed(unit_path, content, dry_run=dry_run)
        if changed and not dry_run:
            self.daemon_reload()
        return changed

    def ensure_running(self, config_changed: bool, dry_run: bool = False) -> bool:
        """Bring the service to the enabled and running state.

        A stopped service is started. A running service is restarted only
        when the configuration changed.

        Parameters:
            config_changed: Whether any rendered artifact changed in this run.
            dry_run: Report what would happen without calling systemctl
                mutating commands.

        Returns:
            bool: True if the service was (or would be) restarted.
        """
        if self.config.enable and not self.is_enabled():
            if dry_run:
                logger.info("Would enable service %s", self.config.name)
            else:
                self.enable()

        if not self.is_active():
            if dry_run:
                logger.info("Would start service %s", self.config.name)
            else:
                self.start()
            return False

        if not config_changed:
            logger.debug("Service %s running with current configuration", self.config.name)
            return False

        if dry_run:
            logger.info("Would restart service %s", self.config.name)
        else:
            self.on_config_changed()
        return True
