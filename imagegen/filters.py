"""Ordered include/exclude regex filtering of candidate paths."""

from __future__ import annotations

import re
from typing import List, Pattern, Sequence

from .errors import ConfigError

DEFAULT_INCLUDES: tuple[str, ...] = (
    "test/test_images.*",
    "cmd.*",
)

DEFAULT_EXCLUDES: tuple[str, ...] = (
    r".*k8s\.io.*",
    ".*knative.dev/pkg/codegen.*",
)


def compile_patterns(patterns: Sequence[str], *, kind: str = "pattern") -> List[Pattern[str]]:
    """Compile every pattern up front so a bad one fails before scanning."""
    compiled: List[Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ConfigError(f"Invalid {kind} regex {pattern!r}: {exc}") from exc
    return compiled


class PathFilter:
    """Classifies paths against include rules first, then exclude rules.

    An empty include list lets every path through the include stage. A path
    matching any exclude rule is rejected even when an include rule matched.
    Patterns are searched anywhere in the path, not matched against all of it.
    """

    def __init__(
        self,
        includes: Sequence[str] = DEFAULT_INCLUDES,
        excludes: Sequence[str] = DEFAULT_EXCLUDES,
    ) -> None:
        self.includes = compile_patterns(includes, kind="include")
        self.excludes = compile_patterns(excludes, kind="exclude")

    def classify(self, path: str) -> bool:
        """Return True when the path is selected."""
        included = True
        if self.includes:
            included = any(rule.search(path) for rule in self.includes)
        for rule in self.excludes:
            if rule.search(path):
                return False
        return included


__all__ = ["DEFAULT_EXCLUDES", "DEFAULT_INCLUDES", "PathFilter", "compile_patterns"]
