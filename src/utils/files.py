"""Filesystem helpers used while converging rendered configuration."""

import os
import tempfile
from pathlib import Path
from typing import Iterable

from log import get_logger

logger = get_logger(__name__)


def ensure_directory(path: Path, dry_run: bool = False) -> bool:
    """Create a directory (and its parents) when missing.

    Returns:
        bool: True if the directory did not exist before.
    """
    if path.is_dir():
        return False
    if dry_run:
        logger.info("Would create directory %s", path)
        return True
    path.mkdir(parents=True, exist_ok=True)
    logger.info("Created directory %s", path)
    return True


def file_differs(path: Path, content: str) -> bool:
    """Check whether the file is missing or holds different content."""
    if not path.is_file():
        return True
    return path.read_bytes() != content.encode("utf-8")


def write_file_atomic(path: Path, content: str) -> None:
    """Replace a file's content without exposing a partially written file.

    The content goes to a temporary file in the same directory which is then
    renamed over the target.

    Raises:
        OSError: If the file cannot be written or renamed.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_if_changed(path: Path, content: str, dry_run: bool = False) -> bool:
    """Write the content when it differs from what is on disk.

    Returns:
        bool: True if the file was (or would be) changed.
    """
    if not file_differs(path, content):
        return False
    if dry_run:
        logger.info("Would write %s", path)
        return True
    write_file_atomic(path, content)
    logger.info("Wrote %s", path)
    return True


def purge_directory(
    directory: Path, keep: Iterable[Path], dry_run: bool = False
) -> list[Path]:
    """Remove files from a managed directory that are not in the keep set.

    Subdirectories are left untouched.

    Returns:
        list[Path]: The files that were (or would be) removed, sorted.
    """
    if not directory.is_dir():
        return []

    keep_set = {Path(p) for p in keep}
    removed: list[Path] = []
    for entry in sorted(directory.iterdir()):
        if not entry.is_file() or entry in keep_set:
            continue
        if dry_run:
            logger.info("Would remove unmanaged file %s", entry)
        else:
            entry.unlink()
            logger.info("Removed unmanaged file %s", entry)
        removed.append(entry)
    return removed
