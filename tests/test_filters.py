"""Tests for imagegen.filters."""

from __future__ import annotations

import pytest

from imagegen.errors import ConfigError
from imagegen.filters import PathFilter

_PATHS = [
    "cmd/controller",
    "cmd/webhook",
    "test/test_images/event-sender",
    "vendor/k8s.io/code-generator/cmd/client-gen",
    "vendor/knative.dev/pkg/codegen/cmd/injection-gen",
    "pkg/reconciler",
    ".",
]


def test_default_filter_selects_commands_and_test_images() -> None:
    path_filter = PathFilter()

    assert path_filter.classify("cmd/controller") is True
    assert path_filter.classify("test/test_images/event-sender") is True
    assert path_filter.classify("pkg/reconciler") is False
    assert path_filter.classify(".") is False


def test_default_filter_rejects_code_generators() -> None:
    path_filter = PathFilter()

    assert path_filter.classify("vendor/k8s.io/code-generator/cmd/client-gen") is False
    assert path_filter.classify("vendor/knative.dev/pkg/codegen/cmd/injection-gen") is False


def test_patterns_match_fragments_anywhere_in_path() -> None:
    path_filter = PathFilter(includes=["cmd"], excludes=[])

    assert path_filter.classify("vendor/knative.dev/eventing/cmd/heartbeats") is True


@pytest.mark.parametrize("path", _PATHS)
def test_exclude_wins_over_include(path: str) -> None:
    path_filter = PathFilter(includes=[".*"], excludes=["."])

    assert path_filter.classify(path) is False


@pytest.mark.parametrize("path", _PATHS)
def test_empty_includes_behave_like_match_all(path: str) -> None:
    excludes = [r"k8s\.io"]
    empty = PathFilter(includes=[], excludes=excludes)
    match_all = PathFilter(includes=[".*"], excludes=excludes)

    assert empty.classify(path) == match_all.classify(path)


def test_invalid_pattern_fails_when_filter_is_built() -> None:
    with pytest.raises(ConfigError) as excinfo:
        PathFilter(includes=["cmd/("], excludes=[])

    assert "cmd/(" in str(excinfo.value)
    assert "include" in str(excinfo.value)


def test_invalid_exclude_pattern_is_reported_as_exclude() -> None:
    with pytest.raises(ConfigError, match="exclude"):
        PathFilter(includes=[], excludes=["[unclosed"])
