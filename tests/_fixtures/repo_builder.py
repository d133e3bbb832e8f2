"""Helper utilities for constructing temporary Go repositories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from imagegen.config import GeneratorConfig
from imagegen.models import EntryPoint
from imagegen.repo_scanner import RepoScanner


class RepoBuilder:
    """Utility for writing files into a throwaway repository and rescanning it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._scanner = RepoScanner()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def main_package(self, directory: str, filename: str = "main.go") -> None:
        """Write a minimal `package main` program into directory."""
        self.write({f"{directory}/{filename}": "package main\n\nfunc main() {}\n"})

    def go_mod(self, module: str = "github.com/openshift-knative/hack", go: str = "1.22.3") -> None:
        self.write({"go.mod": f"module {module}\n\ngo {go}\n"})

    def project_file(
        self,
        *,
        tag: str = "knative-v1.8",
        image_prefix: str = "knative",
        version: str = "1.8.0",
        ocp_min: str = "4.12",
    ) -> Path:
        self.write(
            {
                "openshift/project.yaml": f"""
                project:
                  tag: {tag}
                  imagePrefix: {image_prefix}
                  version: {version}
                requirements:
                  ocpVersion:
                    min: "{ocp_min}"
                """
            }
        )
        return self.root / "openshift" / "project.yaml"

    def discover(self) -> tuple[EntryPoint, ...]:
        """Return the entry points found with default filters."""
        return self._scanner.discover(self.root)

    def config(self, **overrides: object) -> GeneratorConfig:
        """Return a config rooted at the repository writing into `<repo>/openshift`."""
        config = GeneratorConfig(
            root=self.root,
            output=self.root / "openshift",
            project_file=self.root / "openshift" / "project.yaml",
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder"]
