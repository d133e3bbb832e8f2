"""Core data models shared across imagegen components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ImageContext(str, Enum):
    """Routing class for a generated descriptor."""

    PRODUCTION = "production"
    TEST = "test"


@dataclass(frozen=True)
class EntryPointNames:
    """Naming set derived from an entry-point path and consumed by templates."""

    display: str
    dashcase: str
    binary_filename: str
    binary_install_path: str


@dataclass(frozen=True)
class EntryPoint:
    """Directory containing a program's top-level package."""

    path: str
    names: EntryPointNames

    @property
    def context(self) -> ImageContext:
        if "test" in self.path:
            return ImageContext.TEST
        return ImageContext.PRODUCTION


@dataclass
class ProjectInfo:
    """The `project` block of project.yaml."""

    tag: str = ""
    image_prefix: str = ""
    version: str = ""


@dataclass
class OcpVersion:
    """Supported OpenShift version range."""

    min: str = ""
    max: str = ""
    label: str = ""


@dataclass
class Requirements:
    """The `requirements` block of project.yaml."""

    ocp_version: OcpVersion = field(default_factory=OcpVersion)


@dataclass
class ProjectMetadata:
    """Project metadata read from project.yaml."""

    project: ProjectInfo = field(default_factory=ProjectInfo)
    requirements: Requirements = field(default_factory=Requirements)


@dataclass(frozen=True)
class GoModule:
    """Subset of a go.mod file the generator relies on."""

    path: str
    go_version: Optional[str] = None
