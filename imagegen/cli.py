"""CLI entrypoints for imagegen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import GeneratorConfig, load_config
from .errors import ConfigError, ImageGenError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .rendering import ENTRY_POINT_TEMPLATES


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write debug logs to this file.",
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    _add_log_file_option(parser, suppress_default=True)
    parser.add_argument(
        "--root-dir",
        default=".",
        help="Root directory to start scanning (defaults to current directory).",
    )
    parser.add_argument(
        "--includes",
        action="append",
        default=None,
        help="File or directory regex to include; repeat for several.",
    )
    parser.add_argument(
        "--excludes",
        action="append",
        default=None,
        help="File or directory regex to exclude; repeat for several.",
    )
    parser.add_argument(
        "--app-file-fmt",
        default=None,
        help="Target application binary path format.",
    )


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--output", default=None, help="Output directory.")
    parser.add_argument(
        "--project-file",
        default=None,
        help="Project metadata file path.",
    )
    parser.add_argument(
        "--dockerfile-dir",
        default=None,
        help="Dockerfiles output directory for project images relative to --output.",
    )
    parser.add_argument(
        "--templates-dir",
        default=None,
        help="Directory whose templates shadow the bundled ones.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imagegen",
        description="Generate Dockerfiles and image mappings for Go entry points.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    discover_parser = subparsers.add_parser(
        "discover",
        help="List the main package paths selected by the filters.",
    )
    _add_common_options(discover_parser)

    dockerfile_parser = subparsers.add_parser(
        "dockerfile",
        help="Generate Dockerfiles for every entry point and write images.yaml.",
    )
    _add_common_options(dockerfile_parser)
    _add_output_options(dockerfile_parser)
    dockerfile_parser.add_argument(
        "--dockerfile-test-dir",
        default=None,
        help="Dockerfiles output directory for test images relative to --output.",
    )
    dockerfile_parser.add_argument(
        "--dockerfile-build-dir",
        default=None,
        help="Dockerfiles output directory for the build image relative to --output.",
    )
    dockerfile_parser.add_argument(
        "--dockerfile-source-dir",
        default=None,
        help="Dockerfiles output directory for the source image relative to --output.",
    )
    dockerfile_parser.add_argument(
        "--dockerfile-image-builder-fmt",
        default=None,
        help="Builder image format; a single %%s receives the go.mod Go version.",
    )
    dockerfile_parser.add_argument(
        "--registry-image-fmt",
        default=None,
        help="Container registry image format taking image name and tag.",
    )
    dockerfile_parser.add_argument(
        "--images-from",
        action="append",
        default=None,
        help="Repository whose images.yaml is merged in; repeat for several.",
    )
    dockerfile_parser.add_argument(
        "--images-from-url-format",
        default=None,
        help="URL format for --images-from taking repository and branch.",
    )
    dockerfile_parser.add_argument(
        "--additional-packages",
        action="append",
        default=None,
        help="Additional package to install in the image; repeat for several.",
    )
    dockerfile_parser.add_argument(
        "--template-name",
        default=None,
        choices=ENTRY_POINT_TEMPLATES,
        help="Dockerfile template to use for entry points.",
    )
    dockerfile_parser.add_argument(
        "--generate-rpms-lock-file",
        action="store_true",
        default=None,
        help="Write rpms.lock.yaml at the root directory.",
    )

    must_gather_parser = subparsers.add_parser(
        "must-gather-dockerfile",
        help="Generate the must-gather Dockerfile from project metadata.",
    )
    _add_verbose_option(must_gather_parser, suppress_default=True)
    _add_log_file_option(must_gather_parser, suppress_default=True)
    must_gather_parser.add_argument(
        "--root-dir",
        default=".",
        help="Root directory receiving rpms.lock.yaml (defaults to current directory).",
    )
    _add_output_options(must_gather_parser)

    return parser


def _config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    if not str(args.root_dir).strip():
        raise ConfigError("root-dir cannot be empty")
    config = load_config(Path(args.root_dir))

    simple_overrides = {
        "app_file_fmt": "app_file_fmt",
        "dockerfile_image_builder_fmt": "builder_image_fmt",
        "registry_image_fmt": "registry_image_fmt",
        "images_from_url_format": "images_from_url_format",
        "template_name": "template_name",
        "generate_rpms_lock_file": "generate_rpms_lock_file",
        "includes": "includes",
        "excludes": "excludes",
        "images_from": "images_from",
        "additional_packages": "additional_packages",
    }
    for arg_name, field_name in simple_overrides.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            setattr(config, field_name, value)

    for arg_name in ("output", "project_file", "templates_dir"):
        value = getattr(args, arg_name, None)
        if value is not None:
            setattr(config, arg_name, Path(value))

    dir_overrides = {
        "dockerfile_dir": "images",
        "dockerfile_test_dir": "test_images",
        "dockerfile_build_dir": "build_image",
        "dockerfile_source_dir": "source_image",
    }
    for arg_name, field_name in dir_overrides.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            setattr(config.dockerfile_dirs, field_name, value)
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for imagegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    try:
        logger = configure_logging(verbose=bool(args.verbose), log_file=log_file)
    except ImageGenError as exc:
        parser.exit(1, f"imagegen {args.command} failed: {exc}\n")
    orchestrator = Orchestrator()

    try:
        config = _config_from_args(args)
        if args.command == "discover":
            for entry_point in orchestrator.discover(config):
                print(entry_point.path)
        elif args.command == "dockerfile":
            result = orchestrator.run_dockerfiles(config)
            print(
                f"Generated {len(result.images)} Dockerfiles; "
                f"image mapping at {_relativize(result.mapping_path)}"
            )
        elif args.command == "must-gather-dockerfile":
            dockerfile = orchestrator.run_must_gather(config)
            print(f"Must-gather Dockerfile written to {_relativize(dockerfile)}")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (ImageGenError, OSError) as exc:
        logger.debug("imagegen %s failed", args.command, exc_info=True)
        parser.exit(1, f"imagegen {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
