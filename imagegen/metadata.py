"""Readers for project.yaml and go.mod."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .models import GoModule, OcpVersion, ProjectInfo, ProjectMetadata, Requirements

_MODULE_DIRECTIVE = re.compile(r"^module\s+(\"[^\"]+\"|`[^`]+`|\S+)\s*$")
_GO_DIRECTIVE = re.compile(r"^go\s+(\S+)\s*$")


def read_project_metadata(path: str | Path) -> ProjectMetadata:
    """Load project metadata from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist. Callers decide whether
            that is fatal.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    metadata_path = Path(path)
    text = metadata_path.read_text(encoding="utf-8")
    try:
        # BaseLoader keeps scalars such as `min: 4.10` as written.
        data = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse project metadata {metadata_path}: {exc}") from exc
    if data is None:
        return ProjectMetadata()
    if not isinstance(data, dict):
        raise ConfigError(f"Project metadata {metadata_path} must contain a mapping at the root")
    return project_metadata_from_dict(data)


def project_metadata_from_dict(data: Dict[str, Any]) -> ProjectMetadata:
    project_data = _as_dict(data.get("project"))
    requirements_data = _as_dict(data.get("requirements"))
    ocp_data = _as_dict(requirements_data.get("ocpVersion"))
    return ProjectMetadata(
        project=ProjectInfo(
            tag=_as_str(project_data.get("tag")),
            image_prefix=_as_str(project_data.get("imagePrefix")),
            version=_as_str(project_data.get("version")),
        ),
        requirements=Requirements(
            ocp_version=OcpVersion(
                min=_as_str(ocp_data.get("min")),
                max=_as_str(ocp_data.get("max")),
                label=_as_str(ocp_data.get("label")),
            )
        ),
    )


def read_go_mod(root: str | Path) -> GoModule:
    """Return the module path and go directive from `<root>/go.mod`."""
    go_mod = Path(root) / "go.mod"
    try:
        text = go_mod.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read go mod file {go_mod}: {exc}") from exc
    return parse_go_mod(text, source=str(go_mod))


def parse_go_mod(text: str, *, source: str = "go.mod") -> GoModule:
    module_path: Optional[str] = None
    go_version: Optional[str] = None
    for raw_line in text.splitlines():
        line = raw_line.split("//", 1)[0].strip()
        if not line:
            continue
        module_match = _MODULE_DIRECTIVE.match(line)
        if module_match:
            module_path = module_match.group(1).strip("\"`")
            continue
        go_match = _GO_DIRECTIVE.match(line)
        if go_match:
            go_version = go_match.group(1)
    if not module_path:
        raise ConfigError(f"{source}: missing module directive")
    return GoModule(path=module_path, go_version=go_version)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


__all__ = [
    "parse_go_mod",
    "project_metadata_from_dict",
    "read_go_mod",
    "read_project_metadata",
]
