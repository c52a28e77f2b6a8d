"""Thin wrapper around external commands (package manager, systemctl)."""

import subprocess
from typing import Sequence

from log import get_logger

logger = get_logger(__name__)


class CommandError(RuntimeError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str) -> None:
        """Initialize the error from the failed command and its outcome.

        Parameters:
            command: The argv that was executed.
            returncode: Exit status reported by the process.
            stderr: Captured standard error output, stripped.
        """
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command '{' '.join(self.command)}' failed with exit code "
            f"{returncode}: {stderr}"
        )


def run_command(
    command: Sequence[str], check: bool = True
) -> subprocess.CompletedProcess[str]:
    """Run an external command and capture its output.

    Parameters:
        command: Program and arguments to execute; never passed through a shell.
        check: When True, a non-zero exit status raises CommandError. Query
            commands (e.g. `systemctl is-active`) pass False and inspect the
            return code themselves.

    Returns:
        subprocess.CompletedProcess[str]: The finished process with text output.

    Raises:
        CommandError: If `check` is True and the command fails.
    """
    logger.debug("Running command: %s", " ".join(command))
    result = subprocess.run(
        list(command), capture_output=True, text=True, check=False
    )
    if check and result.returncode != 0:
        raise CommandError(command, result.returncode, (result.stderr or "").strip())
    return result
