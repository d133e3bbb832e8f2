"""Configuration loading for imagegen (.imagegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError
from .filters import DEFAULT_EXCLUDES, DEFAULT_INCLUDES
from .merger import IMAGES_FROM_URL_FMT
from .naming import DEFAULT_APP_FILE_FMT
from .rendering import DEFAULT_TEMPLATE_NAME
from .resolver import REGISTRY_IMAGE_FMT
from .versions import BUILDER_IMAGE_FMT

CONFIG_FILENAME = ".imagegen.yml"


@dataclass
class DockerfileDirs:
    """Output directories for each Dockerfile role, relative to the output directory."""

    images: str = "ci-operator/knative-images"
    test_images: str = "ci-operator/knative-test-images"
    build_image: str = "ci-operator/build-image"
    source_image: str = "ci-operator/source-image"


@dataclass
class GeneratorConfig:
    """Settings for a generation run.

    Relative `output` and `project_file` paths resolve against the process
    working directory, not `root`.
    """

    root: Path
    includes: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDES))
    excludes: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    output: Path = Path("openshift")
    dockerfile_dirs: DockerfileDirs = field(default_factory=DockerfileDirs)
    project_file: Path = Path("openshift") / "project.yaml"
    builder_image_fmt: str = BUILDER_IMAGE_FMT
    app_file_fmt: str = DEFAULT_APP_FILE_FMT
    registry_image_fmt: str = REGISTRY_IMAGE_FMT
    images_from: List[str] = field(default_factory=list)
    images_from_url_format: str = IMAGES_FROM_URL_FMT
    additional_packages: List[str] = field(default_factory=list)
    template_name: str = DEFAULT_TEMPLATE_NAME
    generate_rpms_lock_file: bool = False
    templates_dir: Optional[Path] = None
    request_timeout: Optional[float] = None


def load_config(root: str | Path) -> GeneratorConfig:
    """Load defaults from `<root>/.imagegen.yml` when present."""
    root_path = Path(root).expanduser().resolve()
    config_file = root_path / CONFIG_FILENAME
    config = GeneratorConfig(root=root_path)
    if not config_file.exists():
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    if "includes" in data:
        config.includes = _as_str_list(data.get("includes"))
    if "excludes" in data:
        config.excludes = _as_str_list(data.get("excludes"))

    output = _as_str(data.get("output"))
    if output:
        config.output = Path(output)
    project_file = _as_str(data.get("project_file"))
    if project_file:
        config.project_file = Path(project_file)
    templates_dir = _as_str(data.get("templates_dir"))
    if templates_dir:
        config.templates_dir = root_path / templates_dir

    dirs_data = _as_dict(data.get("dockerfile_dirs"))
    for key in ("images", "test_images", "build_image", "source_image"):
        value = _as_str(dirs_data.get(key))
        if value:
            setattr(config.dockerfile_dirs, key, value)

    for key in (
        "builder_image_fmt",
        "app_file_fmt",
        "registry_image_fmt",
        "images_from_url_format",
        "template_name",
    ):
        value = _as_str(data.get(key))
        if value:
            setattr(config, key, value)

    config.images_from = _as_str_list(data.get("images_from"))
    config.additional_packages = _as_str_list(data.get("additional_packages"))
    config.generate_rpms_lock_file = bool(_as_bool(data.get("generate_rpms_lock_file")))
    config.request_timeout = _as_float(data.get("request_timeout"))
    return config


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "DockerfileDirs", "GeneratorConfig", "load_config"]
