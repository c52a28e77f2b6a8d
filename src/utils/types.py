"""Common types for the project."""

from pathlib import Path
from typing import NamedTuple


class Singleton(type):
    """Metaclass for Singleton support."""

    _instances = {}  # type: ignore

    def __call__(cls, *args, **kwargs):  # type: ignore
        """
        Return the single cached instance of the class, creating and caching it on first call.

        Returns:
            object: The singleton instance for this class.
        """
        if cls not in cls._instances:
            cls._instances[cls] = super(Singleton, cls).__call__(*args, **kwargs)
        return cls._instances[cls]


class RenderedFile(NamedTuple):
    """One configuration file produced by the renderer.

    Attributes:
        path: Absolute location the file is written to.
        content: Serialized document, always terminated by a newline.
    """

    path: Path
    content: str
