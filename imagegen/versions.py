"""Version-dependent naming rules for builder images and the oc client."""

from __future__ import annotations

import re
from typing import Optional, Tuple

from .errors import ResolutionError
from .models import ProjectMetadata

BUILDER_IMAGE_FMT = (
    "registry.ci.openshift.org/openshift/release:rhel-8-release-golang-%s-openshift-4.17"
)
OC_CLI_ARTIFACTS_FMT = "registry.ci.openshift.org/ocp/%s:cli-artifacts"

# Last OpenShift minor shipping a single, unsuffixed `oc` binary in cli-artifacts.
LAST_UNSUFFIXED_OC_MINOR = 14

# First Serverless release built on RHEL 9.
_RHEL9_SO_VERSION = (1, 33)

_SEMVER = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$")


def builder_go_version(go_version: str) -> str:
    """Keep only major.minor; builder images are not published per patch."""
    if go_version.count(".") > 1:
        return ".".join(go_version.split(".")[:2])
    return go_version


def builder_image(builder_fmt: str, go_version: Optional[str]) -> str:
    """Return the builder image, formatting it only when it has one `%s` slot."""
    if builder_fmt.count("%s") != 1:
        return builder_fmt
    if not go_version:
        raise ResolutionError(
            f"Builder image format {builder_fmt!r} needs a Go version but go.mod declares none"
        )
    return builder_fmt % builder_go_version(go_version)


def parse_semver(version: str) -> Tuple[int, int, int]:
    match = _SEMVER.match(version.strip())
    if match is None:
        raise ResolutionError(f"{version!r} is not in dotted tri-part version format")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch)


def rhel_for_so_version(version: str) -> str:
    """Return the RHEL major version a Serverless release is built on."""
    major, minor, _ = parse_semver(version)
    if (major, minor) < _RHEL9_SO_VERSION:
        return "8"
    return "9"


def ocp_minor(ocp_version: str) -> int:
    parts = ocp_version.split(".", 1)
    if len(parts) != 2:
        raise ResolutionError(f"invalid OCP version: {ocp_version}")
    try:
        return int(parts[1])
    except ValueError as exc:
        raise ResolutionError(f"could not convert OCP minor to int ({ocp_version!r}): {exc}") from exc


def oc_binary_name(metadata: ProjectMetadata) -> str:
    """Return the oc binary name inside the cli-artifacts image.

    Up to OCP 4.14 the image ships plain `oc`; from 4.15 it ships one binary
    per RHEL release (`oc.rhel8`, `oc.rhel9`).
    """
    minor = ocp_minor(metadata.requirements.ocp_version.min)
    if minor <= LAST_UNSUFFIXED_OC_MINOR:
        return "oc"
    try:
        rhel = rhel_for_so_version(metadata.project.version)
    except ResolutionError as exc:
        raise ResolutionError(f"could not determine rhel version: {exc}") from exc
    return f"oc.rhel{rhel}"


def oc_cli_artifacts_image(ocp_min: str) -> str:
    return OC_CLI_ARTIFACTS_FMT % ocp_min


__all__ = [
    "BUILDER_IMAGE_FMT",
    "LAST_UNSUFFIXED_OC_MINOR",
    "OC_CLI_ARTIFACTS_FMT",
    "builder_go_version",
    "builder_image",
    "oc_binary_name",
    "oc_cli_artifacts_image",
    "ocp_minor",
    "parse_semver",
    "rhel_for_so_version",
]
