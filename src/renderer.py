"""Rendering of declarations into per-object agent configuration files.

Every declaration owns exactly one file at a path derived from its kind,
name and format:

    <configs_root>/<sources|transforms|sinks>/<name>.<format>

The functions here are pure: they compute paths and serialized content and
never touch the filesystem. Writing is done by the convergence pipeline.
"""

import json
from copy import deepcopy
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import tomli_w
import yaml

import constants
from log import get_logger
from models.config import ConfigDeclaration, DeclarationKind
from utils.types import RenderedFile

logger = get_logger(__name__)


class RenderError(ValueError):
    """Raised when a declaration cannot be serialized in its requested format."""


class YamlDumper(yaml.SafeDumper):  # pylint: disable=too-many-ancestors
    """Custom YAML dumper with proper indentation levels."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        """Control the indentation level of formatted YAML output.

        Force block-style indentation for emitted YAML by ensuring the dumper
        never uses "indentless" indentation.

        Parameters:
            flow (bool): Whether the YAML flow style is being used; forwarded
            to the base implementation.
            indentless (bool): Ignored; this implementation always enforces
            indented block style.
        """
        _ = indentless
        return super().increase_indent(flow, False)


def _format_value(fmt: Any) -> str:
    """Return the literal format string for an enum member or plain string."""
    if isinstance(fmt, Enum):
        return str(fmt.value)
    return str(fmt)


def _json_default(value: Any) -> str:
    """Encode dates, which JSON has no type for, as ISO 8601 strings."""
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize(payload: Mapping[str, Any], fmt: Any) -> str:
    """Serialize a mapping using the algorithm selected by the format.

    `yaml` and `yml` select YAML, `toml` selects TOML and any other value
    falls back to JSON.

    Parameters:
        payload: The document to serialize.
        fmt: A `ConfigFormat` member or its string value.

    Returns:
        str: The serialized document, terminated by a newline.

    Raises:
        TypeError, ValueError, yaml.YAMLError: Propagated from the serializer
        when the payload holds values the format cannot represent.
    """
    fmt_value = _format_value(fmt)
    document = dict(payload)

    if fmt_value in constants.YAML_FORMATS:
        return yaml.dump(
            document,
            Dumper=YamlDumper,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )

    if fmt_value == constants.TOML_FORMAT:
        return tomli_w.dumps(document)

    if fmt_value != constants.JSON_FORMAT:
        logger.warning("Unsupported format '%s', serializing as JSON", fmt_value)
    return (
        json.dumps(document, indent=2, ensure_ascii=False, default=_json_default)
        + "\n"
    )


def declaration_path(declaration: ConfigDeclaration, configs_root: Path) -> Path:
    """Compute the file path owned by a declaration.

    The extension is the literal format value, so `yml` stays `yml`.

    Parameters:
        declaration: The declaration to place.
        configs_root: Directory holding the three kind directories.

    Returns:
        Path: `<configs_root>/<kind directory>/<name>.<format>`.
    """
    extension = _format_value(declaration.format)
    return (
        Path(configs_root) / declaration.kind.directory / f"{declaration.name}.{extension}"
    )


def build_payload(declaration: ConfigDeclaration) -> dict[str, Any]:
    """Merge the user parameters with the fields derived from the declaration.

    Derived fields (`type`, and `inputs` for transforms and sinks) take
    precedence over parameters with the same key.

    Parameters:
        declaration: The declaration to convert.

    Returns:
        dict[str, Any]: A new mapping; the declaration is not modified.
    """
    payload: dict[str, Any] = {
        constants.DERIVED_TYPE_FIELD: declaration.component_type
    }
    if declaration.kind != DeclarationKind.SOURCE:
        payload[constants.DERIVED_INPUTS_FIELD] = list(declaration.inputs or [])

    for key, value in declaration.parameters.items():
        if key in payload:
            logger.warning(
                "Parameter '%s' of %s '%s' is overridden by the derived value",
                key,
                declaration.kind.value,
                declaration.name,
            )
            continue
        payload[key] = deepcopy(value)
    return payload


def render(declaration: ConfigDeclaration, configs_root: Path) -> RenderedFile:
    """Convert one declaration into its path and serialized content.

    Parameters:
        declaration: The declaration to render.
        configs_root: Directory holding the three kind directories.

    Returns:
        RenderedFile: Target path and file content.

    Raises:
        RenderError: If the payload cannot be represented in the format.
    """
    path = declaration_path(declaration, configs_root)
    try:
        content = serialize(build_payload(declaration), declaration.format)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise RenderError(
            f"Cannot render {declaration.kind.value} '{declaration.name}' as "
            f"{_format_value(declaration.format)}: {e}"
        ) from e
    return RenderedFile(path=path, content=content)


def global_options_path(etc_root: Path, fmt: Any) -> Path:
    """Return `<etc_root>/global.<format>`, the global options document path."""
    return Path(etc_root) / f"{constants.GLOBAL_OPTIONS_STEM}.{_format_value(fmt)}"


def render_global_options(
    options: Mapping[str, Any], etc_root: Path, fmt: Any
) -> RenderedFile:
    """Render the global options document at `<etc_root>/global.<format>`.

    Parameters:
        options: Agent-wide options such as `data_dir`.
        etc_root: Agent configuration root directory.
        fmt: Serialization format of the document.

    Returns:
        RenderedFile: Target path and file content.

    Raises:
        RenderError: If the options cannot be represented in the format.
    """
    fmt_value = _format_value(fmt)
    path = global_options_path(etc_root, fmt_value)
    try:
        content = serialize(deepcopy(dict(options)), fmt_value)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise RenderError(f"Cannot render global options as {fmt_value}: {e}") from e
    return RenderedFile(path=path, content=content)
