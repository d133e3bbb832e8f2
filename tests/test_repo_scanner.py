"""Tests for imagegen.repo_scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from imagegen.errors import DiscoveryError
from imagegen.filters import PathFilter
from imagegen.repo_scanner import RepoScanner, read_package_name
from tests._fixtures.repo_builder import RepoBuilder


def test_discover_returns_sorted_main_packages(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package("cmd/webhook")
    repo_builder.main_package("cmd/controller")
    repo_builder.main_package("test/test_images/event-sender")
    repo_builder.write({"pkg/reconciler/reconciler.go": "package reconciler\n"})

    paths = [entry.path for entry in repo_builder.discover()]

    assert paths == ["cmd/controller", "cmd/webhook", "test/test_images/event-sender"]


def test_discover_collapses_multiple_files_per_directory(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package("cmd/controller", "main.go")
    repo_builder.main_package("cmd/controller", "flags.go")

    entry_points = repo_builder.discover()

    assert [entry.path for entry in entry_points] == ["cmd/controller"]


def test_discover_skips_non_main_packages_under_commands(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "cmd/internal/flags/flags.go": "package flags\n",
            "cmd/controller/README.md": "package main\n",
        }
    )

    assert repo_builder.discover() == ()


def test_discover_applies_excludes(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package("cmd/controller")
    repo_builder.main_package("vendor/k8s.io/code-generator/cmd/client-gen")

    paths = [entry.path for entry in repo_builder.discover()]

    assert paths == ["cmd/controller"]


def test_discover_with_empty_includes_scans_everything(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package(".")
    repo_builder.main_package("hack/tools")

    scanner = RepoScanner(PathFilter(includes=[], excludes=[]))
    paths = [entry.path for entry in scanner.discover(repo_builder.path())]

    assert paths == [".", "hack/tools"]


def test_discover_derives_names(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package("cmd/mt_broker/filter")

    (entry_point,) = repo_builder.discover()

    assert entry_point.names.display == "Mt Broker Filter"
    assert entry_point.names.dashcase == "mt-broker-filter"
    assert entry_point.names.binary_filename == "filter"
    assert entry_point.names.binary_install_path == "/usr/bin/filter"


def test_discover_fails_on_unparseable_source(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package("cmd/controller")
    repo_builder.write({"cmd/webhook/main.go": "func main() {}\n"})

    with pytest.raises(DiscoveryError) as excinfo:
        repo_builder.discover()

    assert "cmd/webhook/main.go" in str(excinfo.value)


def test_discover_ignores_unparseable_source_outside_filters(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package("cmd/controller")
    repo_builder.write({"pkg/broken/broken.go": "this is not go\n"})

    assert [entry.path for entry in repo_builder.discover()] == ["cmd/controller"]


def test_discover_rejects_missing_directory(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    with pytest.raises(FileNotFoundError) as excinfo:
        RepoScanner().discover(missing)

    assert str(missing) in str(excinfo.value)


def test_discover_is_repeatable(repo_builder: RepoBuilder) -> None:
    repo_builder.main_package("cmd/controller")
    repo_builder.main_package("cmd/webhook")

    assert repo_builder.discover() == repo_builder.discover()


def test_read_package_name_skips_comments_and_build_tags(tmp_path: Path) -> None:
    source = tmp_path / "main.go"
    source.write_text(
        "//go:build tools\n"
        "// +build tools\n"
        "\n"
        "/*\n"
        "Copyright 2024 The Knative Authors\n"
        "package notthis\n"
        "*/\n"
        "\n"
        "package main // import \"knative.dev/hack/cmd/tool\"\n",
        encoding="utf-8",
    )

    assert read_package_name(source) == "main"


def test_read_package_name_reports_missing_clause(tmp_path: Path) -> None:
    source = tmp_path / "empty.go"
    source.write_text("// only a comment\n", encoding="utf-8")

    with pytest.raises(DiscoveryError, match="expected 'package'"):
        read_package_name(source)
