"""Model with service configuration."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from typing_extensions import Self, TypeAliasType

import constants

# Plugin parameter tree. Dates come from unquoted YAML timestamps and are
# native TOML values; datetime is listed first so it is not narrowed to date.
ParameterValue = TypeAliasType(
    "ParameterValue",
    Union[
        datetime,
        date,
        str,
        bool,
        int,
        float,
        None,
        list["ParameterValue"],
        dict[str, "ParameterValue"],
    ],
)


class ConfigurationBase(BaseModel):
    """Base class for all configuration models that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class DeclarationKind(str, Enum):
    """Category of a declaration in the agent topology."""

    SOURCE = "source"
    TRANSFORM = "transform"
    SINK = "sink"

    @property
    def directory(self) -> str:
        """Name of the namespaced directory holding declarations of this kind."""
        return _KIND_DIRECTORIES[self]


_KIND_DIRECTORIES: dict[DeclarationKind, str] = {
    DeclarationKind.SOURCE: constants.SOURCES_DIRECTORY,
    DeclarationKind.TRANSFORM: constants.TRANSFORMS_DIRECTORY,
    DeclarationKind.SINK: constants.SINKS_DIRECTORY,
}


class ConfigFormat(str, Enum):
    """Serialization formats accepted for rendered configuration files.

    `yml` is kept as a distinct member so the file extension stays literal.
    """

    JSON = "json"
    YAML = "yaml"
    YML = "yml"
    TOML = "toml"


class PackageProvider(str, Enum):
    """Package managers the installer knows how to drive."""

    DNF = "dnf"
    YUM = "yum"
    APT = "apt"


class ConfigDeclaration(BaseModel):
    """One source, transform or sink to be added to the agent topology.

    Attributes:
        kind: Category of the declaration; selects the target directory.
        name: Identity within its kind and the output filename stem.
        component_type: Agent plugin handling this declaration (e.g. "file",
            "remap", "kafka"). Opaque to the renderer.
        parameters: Plugin-defined settings, passed through verbatim.
        inputs: Upstream declarations feeding this one. Required for
            transforms and sinks, not applicable to sources.
        format: Serialization format and file extension.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: DeclarationKind
    name: str = Field(min_length=1)
    component_type: str = Field(alias="type", min_length=1)
    parameters: dict[str, ParameterValue] = Field(default_factory=dict)
    inputs: Optional[list[str]] = None
    format: ConfigFormat = ConfigFormat.TOML

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        """Reject names that would escape the namespaced directory."""
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError(f"Declaration name '{value}' must be a plain file stem")
        return value

    @model_validator(mode="after")
    def check_inputs(self) -> Self:
        """Check that inputs are present exactly where the kind needs them."""
        if self.kind == DeclarationKind.SOURCE:
            if self.inputs:
                raise ValueError(f"Source '{self.name}' does not accept inputs")
        elif not self.inputs:
            raise ValueError(
                f"{self.kind.value.capitalize()} '{self.name}' requires at least one input"
            )
        return self


class DeclarationEntry(ConfigurationBase):
    """Declaration as written in the host configuration file.

    The kind is implied by the list (sources, transforms, sinks) holding it.
    """

    name: str
    type: str
    parameters: dict[str, ParameterValue] = Field(default_factory=dict)
    inputs: Optional[list[str]] = None
    format: ConfigFormat = ConfigFormat.TOML


def _default_global_options() -> dict[str, ParameterValue]:
    return {"data_dir": constants.DEFAULT_DATA_DIR}


class GlobalOptionsConfiguration(ConfigurationBase):
    """Options written to the global document next to the configs directory."""

    format: ConfigFormat = ConfigFormat.TOML
    options: dict[str, ParameterValue] = Field(default_factory=_default_global_options)


class PackageConfiguration(ConfigurationBase):
    """Agent package installation settings."""

    manage: bool = True
    name: str = constants.DEFAULT_PACKAGE_NAME
    version: str = constants.DEFAULT_PACKAGE_VERSION
    provider: PackageProvider = PackageProvider(constants.DEFAULT_PACKAGE_PROVIDER)


class ServiceConfiguration(ConfigurationBase):
    """Agent service supervision settings."""

    manage: bool = True
    name: str = constants.DEFAULT_SERVICE_NAME
    enable: bool = True
    manage_unit_file: bool = True
    unit_path: str = constants.DEFAULT_UNIT_PATH
    binary: str = constants.DEFAULT_AGENT_BINARY
    user: str = constants.DEFAULT_SERVICE_USER
    group: str = constants.DEFAULT_SERVICE_GROUP

    @field_validator("unit_path", "binary")
    @classmethod
    def check_absolute_path(cls, value: str) -> str:
        """Unit path and agent binary must be absolute."""
        if not value.startswith("/"):
            raise ValueError(f"Path '{value}' must be absolute")
        return value


class Configuration(ConfigurationBase):
    """Global host configuration."""

    etc_root: str = constants.DEFAULT_ETC_ROOT
    purge_unmanaged: bool = True
    strict_names: bool = False
    global_options: GlobalOptionsConfiguration = Field(
        default_factory=GlobalOptionsConfiguration
    )
    package: PackageConfiguration = Field(default_factory=PackageConfiguration)
    service: ServiceConfiguration = Field(default_factory=ServiceConfiguration)
    sources: list[DeclarationEntry] = Field(default_factory=list)
    transforms: list[DeclarationEntry] = Field(default_factory=list)
    sinks: list[DeclarationEntry] = Field(default_factory=list)

    def dump(self) -> dict[str, Any]:
        """Return the configuration as a plain, JSON-compatible dict."""
        return self.model_dump(mode="json")
