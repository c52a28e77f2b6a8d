"""Declaration API: collects sources, transforms and sinks for one host."""

from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from log import get_logger
from models.config import (
    ConfigDeclaration,
    ConfigFormat,
    Configuration,
    DeclarationEntry,
    DeclarationKind,
)
from renderer import render
from utils.types import RenderedFile

logger = get_logger(__name__)


class DuplicateDeclarationError(ValueError):
    """Raised in strict mode when a name is declared twice within a kind."""


class DeclarationRegistry:
    """Ordered collection of declarations keyed by (kind, name).

    Declaring the same name twice within a kind replaces the earlier
    declaration (last write wins), mirroring what happens to the shared
    output file. A warning is logged; with `strict_names` the second
    declaration is rejected instead.
    """

    def __init__(self, strict_names: bool = False) -> None:
        """Initialize an empty registry.

        Parameters:
            strict_names: Raise DuplicateDeclarationError on name collisions
                instead of replacing the earlier declaration.
        """
        self.strict_names = strict_names
        self._declarations: dict[tuple[DeclarationKind, str], ConfigDeclaration] = {}

    def __len__(self) -> int:
        """Return the number of distinct declarations."""
        return len(self._declarations)

    def add(self, declaration: ConfigDeclaration) -> ConfigDeclaration:
        """Register an already validated declaration.

        Parameters:
            declaration: The declaration to add.

        Returns:
            ConfigDeclaration: The registered declaration.

        Raises:
            DuplicateDeclarationError: In strict mode, if (kind, name) exists.
        """
        key = (declaration.kind, declaration.name)
        if key in self._declarations:
            if self.strict_names:
                raise DuplicateDeclarationError(
                    f"Duplicate {declaration.kind.value} name: {declaration.name}"
                )
            logger.warning(
                "%s '%s' declared more than once, the last declaration wins",
                declaration.kind.value.capitalize(),
                declaration.name,
            )

        # replacing an existing key keeps its original position
        self._declarations[key] = declaration
        return declaration

    def declare_source(
        self,
        name: str,
        component_type: str,
        parameters: Optional[Mapping[str, Any]] = None,
        format: str | ConfigFormat = ConfigFormat.TOML,  # pylint: disable=redefined-builtin
    ) -> ConfigDeclaration:
        """Declare a source feeding data into the agent.

        Raises:
            pydantic.ValidationError: If the format or name is invalid.
        """
        return self.add(
            ConfigDeclaration(
                kind=DeclarationKind.SOURCE,
                name=name,
                component_type=component_type,
                parameters=dict(parameters or {}),
                format=format,
            )
        )

    def declare_transform(
        self,
        name: str,
        component_type: str,
        inputs: Sequence[str],
        parameters: Optional[Mapping[str, Any]] = None,
        format: str | ConfigFormat = ConfigFormat.TOML,  # pylint: disable=redefined-builtin
    ) -> ConfigDeclaration:
        """Declare a transform fed by the given inputs.

        Raises:
            pydantic.ValidationError: If inputs are empty or the format is invalid.
        """
        return self.add(
            ConfigDeclaration(
                kind=DeclarationKind.TRANSFORM,
                name=name,
                component_type=component_type,
                inputs=list(inputs),
                parameters=dict(parameters or {}),
                format=format,
            )
        )

    def declare_sink(
        self,
        name: str,
        component_type: str,
        inputs: Sequence[str],
        parameters: Optional[Mapping[str, Any]] = None,
        format: str | ConfigFormat = ConfigFormat.TOML,  # pylint: disable=redefined-builtin
    ) -> ConfigDeclaration:
        """Declare a sink delivering data out of the agent.

        Raises:
            pydantic.ValidationError: If inputs are empty or the format is invalid.
        """
        return self.add(
            ConfigDeclaration(
                kind=DeclarationKind.SINK,
                name=name,
                component_type=component_type,
                inputs=list(inputs),
                parameters=dict(parameters or {}),
                format=format,
            )
        )

    def declarations(self) -> list[ConfigDeclaration]:
        """Return the declarations in registration order."""
        return list(self._declarations.values())

    def render_all(self, configs_root: Path) -> list[RenderedFile]:
        """Render every declaration under the given configs root."""
        return [render(d, configs_root) for d in self.declarations()]

    def dangling_inputs(self) -> dict[str, list[str]]:
        """Find inputs that name no declared source or transform.

        The agent rejects such a topology at startup; this is a diagnostic
        only and never blocks rendering.

        Returns:
            dict[str, list[str]]: `<kind directory>/<name>` of each declaration
            to its unresolved inputs. The kind directory keeps declarations
            sharing a name across kinds apart.
        """
        upstream = {
            name
            for (kind, name) in self._declarations
            if kind in (DeclarationKind.SOURCE, DeclarationKind.TRANSFORM)
        }
        dangling: dict[str, list[str]] = {}
        for declaration in self.declarations():
            missing = [i for i in declaration.inputs or [] if i not in upstream]
            if missing:
                dangling[f"{declaration.kind.directory}/{declaration.name}"] = missing
                logger.warning(
                    "%s '%s' references undeclared inputs: %s",
                    declaration.kind.value.capitalize(),
                    declaration.name,
                    ", ".join(missing),
                )
        return dangling

    @classmethod
    def from_configuration(cls, configuration: Configuration) -> "DeclarationRegistry":
        """Build a registry from the declarations listed in the host configuration.

        Parameters:
            configuration: The loaded host configuration.

        Returns:
            DeclarationRegistry: Registry holding all sources, transforms and sinks.
        """
        registry = cls(strict_names=configuration.strict_names)
        entries: list[tuple[DeclarationKind, list[DeclarationEntry]]] = [
            (DeclarationKind.SOURCE, configuration.sources),
            (DeclarationKind.TRANSFORM, configuration.transforms),
            (DeclarationKind.SINK, configuration.sinks),
        ]
        for kind, kind_entries in entries:
            for entry in kind_entries:
                registry.add(
                    ConfigDeclaration(
                        kind=kind,
                        name=entry.name,
                        component_type=entry.type,
                        parameters=entry.parameters,
                        inputs=entry.inputs,
                        format=entry.format,
                    )
                )
        logger.info("Collected %s declarations", len(registry))
        return registry
