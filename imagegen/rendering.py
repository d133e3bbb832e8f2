"""Renders Dockerfiles and lock files from named Jinja templates."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Dict, List, Mapping, Protocol

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateNotFound,
)

from .errors import ConfigError, RenderError
from .logging import get_logger

DEFAULT_TEMPLATE_NAME = "default"
FUNC_UTIL_TEMPLATE_NAME = "func-util"
BUILD_IMAGE_TEMPLATE_NAME = "build-image"
SOURCE_IMAGE_TEMPLATE_NAME = "source-image"
MUST_GATHER_TEMPLATE_NAME = "must-gather"
RPMS_LOCK_TEMPLATE_NAME = "rpms-lock"

# Templates selectable for per-entry-point Dockerfiles.
ENTRY_POINT_TEMPLATES = (DEFAULT_TEMPLATE_NAME, FUNC_UTIL_TEMPLATE_NAME)

TEMPLATE_FILES: Dict[str, str] = {
    DEFAULT_TEMPLATE_NAME: "dockerfiles/default.j2",
    FUNC_UTIL_TEMPLATE_NAME: "dockerfiles/func-util.j2",
    BUILD_IMAGE_TEMPLATE_NAME: "dockerfiles/build-image.j2",
    SOURCE_IMAGE_TEMPLATE_NAME: "dockerfiles/source-image.j2",
    MUST_GATHER_TEMPLATE_NAME: "dockerfiles/must-gather.j2",
    RPMS_LOCK_TEMPLATE_NAME: "rpms.lock.yaml.j2",
}

DOCKERFILE_NAME = "Dockerfile"
RPMS_LOCK_FILENAME = "rpms.lock.yaml"


class TemplateSource(Protocol):
    """Anything that can hand out compiled templates by name."""

    def get_template(self, name: str) -> Template:
        ...


class PackageTemplateSource:
    """Loads templates shipped with imagegen, optionally shadowed by a local directory."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def get_template(self, name: str) -> Template:
        filename = TEMPLATE_FILES.get(name)
        if filename is None:
            known = ", ".join(sorted(TEMPLATE_FILES))
            raise ConfigError(f"Unknown template name: {name} (supported: {known})")
        try:
            return self._env.get_template(filename)
        except TemplateNotFound as exc:
            raise ConfigError(f"Template {name} not found at {filename}") from exc
        except TemplateError as exc:
            raise RenderError(f"Failed creating template {name}: {exc}") from exc

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        return Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


class DescriptorRenderer:
    """Fills templates and writes them to freshly recreated directories."""

    def __init__(self, source: TemplateSource | None = None) -> None:
        self.source = source or PackageTemplateSource()
        self.logger = get_logger("renderer")

    def render_text(self, template: str, context: Mapping[str, Any] | None = None) -> str:
        """Return rendered content; any missing variable is an error."""
        compiled = self.source.get_template(template)
        try:
            return compiled.render(dict(context or {}))
        except (TemplateError, TypeError) as exc:
            raise RenderError(f"Failed to execute template {template}: {exc}") from exc

    def render(
        self,
        template: str,
        context: Mapping[str, Any],
        destination: str | Path,
    ) -> Path:
        """Render into `destination/Dockerfile`, replacing the directory's contents.

        Returns the absolute path of the written Dockerfile.
        """
        content = self.render_text(template, context)
        out_dir = Path(destination).absolute()
        try:
            if out_dir.exists():
                shutil.rmtree(out_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            dockerfile_path = out_dir / DOCKERFILE_NAME
            dockerfile_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise RenderError(f"Failed writing {template} Dockerfile to {out_dir}: {exc}") from exc
        self.logger.debug("Wrote %s", dockerfile_path)
        return dockerfile_path

    def write_rpms_lock(self, root: str | Path) -> Path:
        """Write the rpms lock document at the repository root."""
        content = self.render_text(RPMS_LOCK_TEMPLATE_NAME)
        output_path = Path(root) / RPMS_LOCK_FILENAME
        try:
            output_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise RenderError(f"Failed to write RPM lock file {output_path}: {exc}") from exc
        self.logger.debug("Wrote %s", output_path)
        return output_path


__all__ = [
    "BUILD_IMAGE_TEMPLATE_NAME",
    "DEFAULT_TEMPLATE_NAME",
    "DOCKERFILE_NAME",
    "DescriptorRenderer",
    "ENTRY_POINT_TEMPLATES",
    "FUNC_UTIL_TEMPLATE_NAME",
    "MUST_GATHER_TEMPLATE_NAME",
    "PackageTemplateSource",
    "RPMS_LOCK_FILENAME",
    "RPMS_LOCK_TEMPLATE_NAME",
    "SOURCE_IMAGE_TEMPLATE_NAME",
    "TEMPLATE_FILES",
    "TemplateSource",
]
