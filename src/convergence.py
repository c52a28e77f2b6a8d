"""Convergence run: install, configure and run the agent in a fixed order.

Phases run strictly in sequence:

    install -> scaffold -> render-all -> reconcile -> write -> service

Rendering of every declaration completes before any file is written, and
every file is written before the service is (re)started. A failure in any
phase propagates and aborts the run; the next scheduled run starts over.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import constants
from log import get_logger
from models.config import Configuration, DeclarationKind
from package import PackageManager
from registry import DeclarationRegistry
from renderer import global_options_path, render_global_options
from service import ServiceSupervisor
from utils.files import ensure_directory, purge_directory, write_if_changed
from utils.types import RenderedFile

logger = get_logger(__name__)


class ConvergenceState(str, Enum):
    """States reached by a convergence run, in order."""

    INSTALLED = "installed"
    CONFIGURED = "configured"
    RUNNING = "running"


@dataclass
class ConvergenceReport:  # pylint: disable=too-many-instance-attributes
    """Outcome of one convergence run.

    Attributes:
        states: States reached, in the order they were reached.
        package_installed: Whether the package was (or would be) installed.
        written: Files whose content was (or would be) created or replaced.
        unchanged: Rendered files already up to date on disk.
        removed: Files purged because their declaration was withdrawn.
        unit_file_changed: Whether the systemd unit file changed.
        restarted: Whether the service was (or would be) restarted.
        dry_run: Whether the run only computed changes.
    """

    states: list[ConvergenceState] = field(default_factory=list)
    package_installed: bool = False
    written: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)
    unit_file_changed: bool = False
    restarted: bool = False
    dry_run: bool = False

    @property
    def config_changed(self) -> bool:
        """Whether any configuration artifact changed or was removed."""
        return bool(self.written or self.removed)


class Convergence:
    """Apply the desired agent configuration to the host."""

    def __init__(
        self,
        config: Configuration,
        registry: Optional[DeclarationRegistry] = None,
        package_manager: Optional[PackageManager] = None,
        supervisor: Optional[ServiceSupervisor] = None,
    ) -> None:
        """Initialize the run from the host configuration.

        Parameters:
            config: Host configuration.
            registry: Declarations to render; built from `config` when omitted.
            package_manager: Installer; built from `config.package` when omitted.
            supervisor: Service supervisor; built from `config.service` when omitted.
        """
        self.config = config
        self.registry = (
            registry
            if registry is not None
            else DeclarationRegistry.from_configuration(config)
        )
        self.package_manager = package_manager or PackageManager(config.package)
        self.supervisor = supervisor or ServiceSupervisor(config.service)

    @property
    def etc_root(self) -> Path:
        """Return the agent configuration root directory."""
        return Path(self.config.etc_root)

    @property
    def configs_root(self) -> Path:
        """Return the directory holding the namespaced kind directories."""
        return self.etc_root / constants.CONFIGS_DIRECTORY

    def kind_directories(self) -> list[Path]:
        """Return the three namespaced directories, sources first."""
        return [self.configs_root / kind.directory for kind in DeclarationKind]

    def install(self, report: ConvergenceReport) -> None:
        """Ensure the agent package is present."""
        if self.config.package.manage:
            report.package_installed = self.package_manager.ensure_installed(
                dry_run=report.dry_run
            )
        report.states.append(ConvergenceState.INSTALLED)

    def scaffold(self, report: ConvergenceReport) -> None:
        """Create the configuration root and the namespaced directories."""
        for directory in [self.etc_root, self.configs_root, *self.kind_directories()]:
            ensure_directory(directory, dry_run=report.dry_run)

    def render_all(self) -> list[RenderedFile]:
        """Render the global options document and every declaration.

        Nothing is written here; any render failure aborts the run before
        the filesystem is touched.
        """
        self.registry.dangling_inputs()
        global_options = self.config.global_options
        rendered = [
            render_global_options(
                global_options.options, self.etc_root, global_options.format
            )
        ]
        rendered.extend(self.registry.render_all(self.configs_root))
        logger.info("Rendered %s configuration files", len(rendered))
        return rendered

    def reconcile(self, rendered: list[RenderedFile], report: ConvergenceReport) -> None:
        """Remove files of withdrawn declarations from the namespaced directories."""
        if not self.config.purge_unmanaged:
            return
        keep = [r.path for r in rendered]
        for directory in self.kind_directories():
            report.removed.extend(
                purge_directory(directory, keep, dry_run=report.dry_run)
            )

    def write(self, rendered: list[RenderedFile], report: ConvergenceReport) -> None:
        """Write every rendered file whose content changed."""
        for item in rendered:
            if write_if_changed(item.path, item.content, dry_run=report.dry_run):
                report.written.append(item.path)
            else:
                report.unchanged.append(item.path)

    def configure(self, report: ConvergenceReport) -> None:
        """Scaffold, render, reconcile and write the whole configuration."""
        self.scaffold(report)
        rendered = self.render_all()
        self.reconcile(rendered, report)
        self.write(rendered, report)
        report.states.append(ConvergenceState.CONFIGURED)

    def ensure_service(self, report: ConvergenceReport) -> None:
        """Install the unit file, then enable, start or restart the service."""
        service = self.config.service
        if not service.manage:
            return

        if service.manage_unit_file:
            global_file = global_options_path(
                self.etc_root, self.config.global_options.format
            )
            report.unit_file_changed = self.supervisor.ensure_unit_file(
                global_file, self.configs_root, dry_run=report.dry_run
            )

        changed = report.config_changed or report.unit_file_changed
        report.restarted = self.supervisor.ensure_running(
            changed, dry_run=report.dry_run
        )
        report.states.append(ConvergenceState.RUNNING)

    def run(
        self,
        dry_run: bool = False,
        skip_install: bool = False,
        skip_service: bool = False,
    ) -> ConvergenceReport:
        """Execute one convergence run.

        Parameters:
            dry_run: Compute the report without changing the host.
            skip_install: Do not touch the package.
            skip_service: Do not touch the unit file or the service.

        Returns:
            ConvergenceReport: What changed (or would change).

        Raises:
            RenderError: If a declaration cannot be serialized.
            OSError: If a file cannot be written or removed.
            CommandError: If the package manager or systemctl fails.
        """
        report = ConvergenceReport(dry_run=dry_run)
        if not skip_install:
            self.install(report)
        self.configure(report)
        if not skip_service:
            self.ensure_service(report)

        logger.info(
            "Convergence finished: %s written, %s unchanged, %s removed, restarted=%s",
            len(report.written),
            len(report.unchanged),
            len(report.removed),
            report.restarted,
        )
        return report
