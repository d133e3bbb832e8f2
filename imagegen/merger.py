"""Pulls image mappings published by sibling repositories."""

from __future__ import annotations

from http.client import HTTPException
from typing import Callable, Dict, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import yaml

from .errors import ConfigError, FetchError
from .logging import get_logger
from .models import ProjectMetadata
from .resolver import ImageMapping

IMAGES_FROM_URL_FMT = (
    "https://raw.githubusercontent.com/openshift-knative/%s/%s/openshift/images.yaml"
)


def branch_for_tag(tag: str) -> str:
    """Map a project tag such as `knative-v1.8` to its branch `release-v1.8`."""
    branch = tag.replace("knative", "release", 1)
    return branch.replace("nightly", "next", 1)


def images_url(url_fmt: str, repository: str, branch: str) -> str:
    try:
        return url_fmt % (repository, branch)
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Images URL format {url_fmt!r} must take repository and branch %s values: {exc}"
        ) from exc


def validate_url_format(url_fmt: str) -> None:
    """Raise ConfigError unless the format accepts a repository and a branch."""
    images_url(url_fmt, "repository", "branch")


def parse_images_document(content: bytes | str, *, source: str) -> Dict[str, str]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise FetchError(f"failed to parse images from {source}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FetchError(f"failed to parse images from {source}: expected a mapping")
    images: Dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise FetchError(
                f"failed to parse images from {source}: entry {key!r} is not a string mapping"
            )
        images[key] = value
    return images


class ExternalMappingMerger:
    """Merges sibling repository images without overwriting local entries."""

    def __init__(
        self,
        fetcher: Callable[[str], bytes] | None = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._fetcher = fetcher or self._http_fetch
        self.timeout = timeout
        self.logger = get_logger("merger")

    def merge(
        self,
        repositories: Sequence[str],
        metadata: ProjectMetadata,
        url_fmt: str,
        mapping: ImageMapping,
    ) -> None:
        """Fetch each repository's mapping in order and add only unknown identities."""
        if not repositories:
            return
        branch = branch_for_tag(metadata.project.tag)
        for repository in repositories:
            images = self.download_images(repository, branch, url_fmt)
            for identity, reference in images.items():
                if mapping.add_external(identity, reference):
                    self.logger.info(
                        "Additional image from %s %s %s", repository, identity, reference
                    )

    def download_images(self, repository: str, branch: str, url_fmt: str) -> Dict[str, str]:
        url = images_url(url_fmt, repository, branch)
        try:
            content = self._fetcher(url)
        except HTTPError as exc:
            raise FetchError(
                f"failed to get images for repository {repository} from {url}: "
                f"status code {exc.code}"
            ) from exc
        except (URLError, OSError, HTTPException, ValueError) as exc:
            reason = getattr(exc, "reason", None) or exc
            raise FetchError(
                f"failed to get images for repository {repository} from {url}: {reason}"
            ) from exc
        return parse_images_document(
            content, source=f"repository {repository} at {url}"
        )

    def _http_fetch(self, url: str) -> bytes:
        request = Request(url, headers={"Accept": "application/yaml, text/plain, */*"})
        kwargs: Dict[str, float] = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        with urlopen(request, **kwargs) as response:  # type: ignore[arg-type]
            status = getattr(response, "status", 200)
            if status >= 400:
                raise HTTPError(url, status, "error status", response.headers, None)
            return response.read()


__all__ = [
    "ExternalMappingMerger",
    "IMAGES_FROM_URL_FMT",
    "branch_for_tag",
    "images_url",
    "parse_images_document",
    "validate_url_format",
]
