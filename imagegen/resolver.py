"""Resolves entry points to registry image references."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, MutableMapping, Optional

import yaml

from .errors import RenderError, ResolutionError
from .logging import get_logger
from .models import EntryPoint, ImageContext, ProjectMetadata

REGISTRY_IMAGE_FMT = "registry.ci.openshift.org/openshift/%s:%s"
IMAGES_MAPPING_FILENAME = "images.yaml"

_VENDOR_PREFIX = "vendor/"


@dataclass(frozen=True)
class ResolvedImage:
    """Final image reference for one entry point."""

    identity: str
    reference: str
    name: str
    context: ImageContext


def image_name(image_prefix: str, context: ImageContext, dockerfile_path: str | Path) -> str:
    """Name the image after the directory holding its Dockerfile.

    Test images carry a `test` infix, e.g. `knative-test-testselect`.
    """
    folder = Path(dockerfile_path).parent.name
    if not folder:
        raise ResolutionError(f"Cannot derive image name from {dockerfile_path}")
    parts = [image_prefix] if image_prefix else []
    if context is ImageContext.TEST:
        parts.append("test")
    parts.append(folder)
    return "-".join(parts)


def override_env_var(name: str) -> str:
    return name.upper().replace("-", "_")


def program_identity(path: str, module_path: str) -> str:
    """Return the mapping key for an entry point.

    Vendored packages are keyed by their own import path, everything else by
    the local module path joined with the entry-point directory.
    """
    if path.startswith(_VENDOR_PREFIX):
        return path.replace(_VENDOR_PREFIX, "", 1)
    return posixpath.normpath(posixpath.join(module_path, path))


class ImageMapping(MutableMapping[str, str]):
    """Program identity to image reference, with local entries taking priority."""

    def __init__(self) -> None:
        self._images: Dict[str, str] = {}
        self._local_sources: Dict[str, str] = {}
        self.logger = get_logger("mapping")

    def __getitem__(self, key: str) -> str:
        return self._images[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._images[key] = value

    def __delitem__(self, key: str) -> None:
        del self._images[key]
        self._local_sources.pop(key, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._images)

    def __len__(self) -> int:
        return len(self._images)

    def add_local(self, identity: str, reference: str, source_path: str) -> None:
        """Record a locally resolved image; two entry points may not share an identity."""
        previous = self._local_sources.get(identity)
        if previous is not None and previous != source_path:
            raise ResolutionError(
                f"Entry points {previous} and {source_path} both resolve to identity {identity}"
            )
        self._local_sources[identity] = source_path
        self._images[identity] = reference

    def add_external(self, identity: str, reference: str) -> bool:
        """Record an image only when the identity is not already known."""
        if identity in self._images:
            return False
        self._images[identity] = reference
        return True

    def to_yaml(self) -> str:
        if not self._images:
            return "{}\n"
        return yaml.safe_dump(dict(sorted(self._images.items())), default_flow_style=False)

    def write(self, output_dir: str | Path) -> Path:
        """Write images.yaml, replacing any previous copy."""
        target = Path(output_dir) / IMAGES_MAPPING_FILENAME
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(self.to_yaml(), encoding="utf-8")
        except OSError as exc:
            raise RenderError(f"Write images mapping file {target} failed: {exc}") from exc
        return target


class ImageResolver:
    """Computes registry references, honoring per-image environment overrides."""

    def __init__(
        self,
        module_path: str,
        *,
        registry_fmt: str = REGISTRY_IMAGE_FMT,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.module_path = module_path
        self.registry_fmt = registry_fmt
        self._environ = environ if environ is not None else os.environ
        self.logger = get_logger("resolver")

    def resolve(
        self,
        entry_point: EntryPoint,
        dockerfile_path: str | Path,
        metadata: ProjectMetadata,
    ) -> ResolvedImage:
        name = image_name(metadata.project.image_prefix, entry_point.context, dockerfile_path)
        try:
            reference = self.registry_fmt % (name, metadata.project.tag)
        except (TypeError, ValueError) as exc:
            raise ResolutionError(
                f"Registry image format {self.registry_fmt!r} must take two %s values: {exc}"
            ) from exc

        env_var = override_env_var(name)
        override = self._environ.get(env_var)
        if override:
            self.logger.info("Using %s=%s for %s", env_var, override, entry_point.path)
            reference = override

        return ResolvedImage(
            identity=program_identity(entry_point.path, self.module_path),
            reference=reference,
            name=name,
            context=entry_point.context,
        )


__all__ = [
    "IMAGES_MAPPING_FILENAME",
    "ImageMapping",
    "ImageResolver",
    "REGISTRY_IMAGE_FMT",
    "ResolvedImage",
    "image_name",
    "override_env_var",
    "program_identity",
]
