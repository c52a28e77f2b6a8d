"""Unit tests for functions and types defined in utils/types.py."""

from pathlib import Path

from utils.types import RenderedFile, Singleton


class TestSingleton:
    """Unit tests for the Singleton metaclass."""

    def test_same_instance_returned(self) -> None:
        """Test that every call returns the cached instance."""

        class Holder(metaclass=Singleton):
            """Test class using the Singleton metaclass."""

            def __init__(self) -> None:
                self.value = 0

        first = Holder()
        first.value = 42
        second = Holder()
        assert first is second
        assert second.value == 42


class TestRenderedFile:
    """Unit tests for the RenderedFile tuple."""

    def test_unpacks_as_path_and_content(self) -> None:
        """Test that a rendered file unpacks into (path, content)."""
        rendered = RenderedFile(path=Path("/etc/vector/global.toml"), content="x\n")
        path, content = rendered
        assert path == Path("/etc/vector/global.toml")
        assert content == "x\n"
