"""Pipeline orchestration for the dockerfile and must-gather generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import DockerfileDirs, GeneratorConfig
from .errors import ConfigError, ResolutionError
from .filters import PathFilter
from .logging import get_logger
from .merger import ExternalMappingMerger, validate_url_format
from .metadata import read_go_mod, read_project_metadata
from .models import EntryPoint, ImageContext, ProjectMetadata
from .naming import capitalize, validate_app_file_fmt
from .rendering import (
    BUILD_IMAGE_TEMPLATE_NAME,
    ENTRY_POINT_TEMPLATES,
    FUNC_UTIL_TEMPLATE_NAME,
    MUST_GATHER_TEMPLATE_NAME,
    SOURCE_IMAGE_TEMPLATE_NAME,
    DescriptorRenderer,
    PackageTemplateSource,
)
from .repo_scanner import RepoScanner
from .resolver import ImageMapping, ImageResolver
from .versions import builder_image, oc_binary_name, oc_cli_artifacts_image

TZDATA_PACKAGE = "tzdata"
# https://access.redhat.com/solutions/5616681
TZDATA_INSTRUCTION = "RUN microdnf update tzdata -y && microdnf reinstall tzdata -y"

_PROJECT_PREFIX = "knative-"


@dataclass
class GeneratedImage:
    """A rendered Dockerfile and the image it resolves to."""

    entry_point: EntryPoint
    dockerfile: Path
    identity: str
    reference: str
    context: ImageContext


@dataclass
class DockerfileRun:
    """Outcome of a dockerfile generation run."""

    entry_points: Tuple[EntryPoint, ...]
    images: List[GeneratedImage]
    mapping: Dict[str, str]
    mapping_path: Path
    builder_image: str
    shared_dockerfiles: List[Path] = field(default_factory=list)
    rpms_lock_path: Optional[Path] = None


def package_instructions(
    packages: Sequence[str], *, rpms_lock: bool = False
) -> Tuple[List[str], bool]:
    """Return extra Dockerfile instructions and whether an rpms lock file is needed.

    `tzdata` cannot be installed on ubi-minimal, only updated and reinstalled,
    and doing so needs the rpms lock file.
    """
    remaining = [package for package in packages if package.strip()]
    instructions: List[str] = []
    if TZDATA_PACKAGE in packages:
        rpms_lock = True
        instructions.append(TZDATA_INSTRUCTION)
        for index, package in enumerate(remaining):
            if package.strip() == TZDATA_PACKAGE:
                del remaining[index]
                break
    if remaining:
        instructions.append(f"RUN microdnf install {' '.join(remaining)}")
    return instructions, rpms_lock


def project_labels(metadata: ProjectMetadata) -> Tuple[str, str]:
    """Return the display and dash-case project prefixes used in image labels."""
    project_name = metadata.project.image_prefix
    if project_name.startswith(_PROJECT_PREFIX):
        project_name = project_name[len(_PROJECT_PREFIX):]
    if not project_name:
        return "", ""
    return capitalize(project_name) + " ", project_name + "-"


class Orchestrator:
    """Coordinates discovery, rendering, resolution, and merging for a run."""

    def __init__(
        self,
        renderer: DescriptorRenderer | None = None,
        merger: ExternalMappingMerger | None = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._renderer = renderer
        self._merger = merger
        self._environ = environ
        self.logger = get_logger("orchestrator")

    def discover(self, config: GeneratorConfig) -> Tuple[EntryPoint, ...]:
        """Return the entry points selected by the configured filters."""
        validate_app_file_fmt(config.app_file_fmt)
        path_filter = PathFilter(config.includes, config.excludes)
        scanner = RepoScanner(path_filter, app_file_fmt=config.app_file_fmt)
        return scanner.discover(config.root)

    def run_dockerfiles(self, config: GeneratorConfig) -> DockerfileRun:
        """Generate one Dockerfile per entry point plus the images.yaml mapping."""
        if config.template_name not in ENTRY_POINT_TEMPLATES:
            supported = ", ".join(ENTRY_POINT_TEMPLATES)
            raise ConfigError(
                f"Unknown template name: {config.template_name} (supported: {supported})"
            )
        if config.images_from:
            validate_url_format(config.images_from_url_format)
        self.logger.info("Starting dockerfile run for %s", config.root)
        renderer = self._resolve_renderer(config)
        entry_points = self.discover(config)

        go_module = read_go_mod(config.root)
        builder = builder_image(config.builder_image_fmt, go_module.go_version)
        metadata = self._load_metadata(config.project_file, required=False)
        output = config.output.resolve()
        dirs = config.dockerfile_dirs
        targets = self._plan_targets(entry_points, output, dirs)

        shared_context = {"builder": builder}
        shared_dockerfiles = [
            renderer.render(BUILD_IMAGE_TEMPLATE_NAME, shared_context, output / dirs.build_image),
            renderer.render(SOURCE_IMAGE_TEMPLATE_NAME, shared_context, output / dirs.source_image),
        ]

        instructions, rpms_lock = package_instructions(
            config.additional_packages, rpms_lock=config.generate_rpms_lock_file
        )
        if config.template_name == FUNC_UTIL_TEMPLATE_NAME:
            rpms_lock = True

        project, project_dashcase = project_labels(metadata)
        resolver = ImageResolver(
            go_module.path,
            registry_fmt=config.registry_image_fmt,
            environ=self._environ,
        )
        mapping = ImageMapping()
        images: List[GeneratedImage] = []
        for entry_point, target in zip(entry_points, targets):
            names = entry_point.names
            context = {
                "main": entry_point.path,
                "app_file": names.binary_install_path,
                "builder": builder,
                "version": metadata.project.tag,
                "project": project,
                "project_dashcase": project_dashcase,
                "component": names.display,
                "component_dashcase": names.dashcase,
                "additional_instructions": list(instructions),
            }
            dockerfile = renderer.render(config.template_name, context, target)

            resolved = resolver.resolve(entry_point, dockerfile, metadata)
            mapping.add_local(resolved.identity, resolved.reference, entry_point.path)
            images.append(
                GeneratedImage(
                    entry_point=entry_point,
                    dockerfile=dockerfile,
                    identity=resolved.identity,
                    reference=resolved.reference,
                    context=resolved.context,
                )
            )

        rpms_lock_path = None
        if rpms_lock and entry_points:
            rpms_lock_path = renderer.write_rpms_lock(config.root)

        merger = self._merger or ExternalMappingMerger(timeout=config.request_timeout)
        merger.merge(
            config.images_from,
            metadata,
            config.images_from_url_format,
            mapping,
        )

        mapping_path = mapping.write(output)
        self.logger.info("Wrote %d image references to %s", len(mapping), mapping_path)
        return DockerfileRun(
            entry_points=entry_points,
            images=images,
            mapping=dict(mapping),
            mapping_path=mapping_path,
            builder_image=builder,
            shared_dockerfiles=shared_dockerfiles,
            rpms_lock_path=rpms_lock_path,
        )

    def run_must_gather(self, config: GeneratorConfig) -> Path:
        """Generate the must-gather Dockerfile and the rpms lock file."""
        self.logger.info("Starting must-gather run for %s", config.root)
        renderer = self._resolve_renderer(config)
        metadata = self._load_metadata(config.project_file, required=True)

        ocp_min = metadata.requirements.ocp_version.min
        project_name = MUST_GATHER_TEMPLATE_NAME
        context = {
            "main": project_name,
            "oc_cli_artifacts": oc_cli_artifacts_image(ocp_min),
            "oc_binary_name": oc_binary_name(metadata),
            "version": metadata.project.version,
            "project": capitalize(project_name),
            "project_dashcase": project_name + "-",
        }
        output = config.output.resolve()
        dockerfile = renderer.render(
            MUST_GATHER_TEMPLATE_NAME,
            context,
            output / config.dockerfile_dirs.images / project_name,
        )
        renderer.write_rpms_lock(config.root)
        return dockerfile

    def _plan_targets(
        self,
        entry_points: Sequence[EntryPoint],
        output: Path,
        dirs: DockerfileDirs,
    ) -> List[Path]:
        """Return each entry point's output folder, refusing a folder shared by two."""
        targets: List[Path] = []
        folders: Dict[Path, str] = {}
        for entry_point in entry_points:
            target_dir = dirs.images
            if entry_point.context is ImageContext.TEST:
                target_dir = dirs.test_images
            target = output / target_dir / entry_point.names.binary_filename
            previous = folders.get(target)
            if previous is not None:
                raise ResolutionError(
                    f"Entry points {previous} and {entry_point.path} both resolve to "
                    f"output folder {target}"
                )
            folders[target] = entry_point.path
            targets.append(target)
        return targets

    def _resolve_renderer(self, config: GeneratorConfig) -> DescriptorRenderer:
        if self._renderer is not None:
            return self._renderer
        return DescriptorRenderer(PackageTemplateSource(config.templates_dir))

    def _load_metadata(self, project_file: Path, *, required: bool) -> ProjectMetadata:
        try:
            return read_project_metadata(project_file)
        except FileNotFoundError as exc:
            if required:
                raise ConfigError(f"could not read metadata file {project_file}: {exc}") from exc
            self.logger.info("File %s not found", project_file)
            return ProjectMetadata()
