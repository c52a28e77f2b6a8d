"""Installation of the agent package through the host package manager."""

import constants
from log import get_logger
from models.config import PackageConfiguration, PackageProvider
from utils.commands import run_command

logger = get_logger(__name__)


class PackageManager:
    """Ensure the agent package is present using dnf, yum or apt."""

    def __init__(self, config: PackageConfiguration) -> None:
        """Initialize the manager for the configured package and provider."""
        self.config = config

    def _package_spec(self) -> str:
        """Return the package argument, pinned when a version is configured."""
        name = self.config.name
        version = self.config.version
        if version == constants.DEFAULT_PACKAGE_VERSION:
            return name
        if self.config.provider == PackageProvider.APT:
            return f"{name}={version}"
        return f"{name}-{version}"

    def query_command(self) -> list[str]:
        """Return the command checking whether the package is installed."""
        if self.config.provider == PackageProvider.APT:
            return ["dpkg", "-s", self.config.name]
        return ["rpm", "-q", self.config.name]

    def install_command(self) -> list[str]:
        """Return the command installing the package non-interactively."""
        if self.config.provider == PackageProvider.APT:
            return ["apt-get", "install", "-y", self._package_spec()]
        return [self.config.provider.value, "install", "-y", self._package_spec()]

    def is_installed(self) -> bool:
        """Check whether the package manager reports the package as installed."""
        return run_command(self.query_command(), check=False).returncode == 0

    def ensure_installed(self, dry_run: bool = False) -> bool:
        """Install the package when missing.

        Parameters:
            dry_run: Report what would happen without installing.

        Returns:
            bool: True if an installation was (or would be) performed.

        Raises:
            CommandError: If the installation command fails.
        """
        if self.is_installed():
            logger.debug("Package %s already installed", self.config.name)
            return False

        if dry_run:
            logger.info("Would install package %s", self._package_spec())
            return True

        logger.info("Installing package %s", self._package_spec())
        run_command(self.install_command())
        return True
