"""Source tree scanning for Go `package main` entry points."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterator, List, Set

from .errors import DiscoveryError
from .filters import PathFilter
from .logging import get_logger
from .models import EntryPoint
from .naming import DEFAULT_APP_FILE_FMT, derive_names

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
}

_SOURCE_SUFFIX = ".go"
_ENTRY_POINT_PACKAGE = "main"

# Whitespace, line comments and block comments may precede the package clause.
_LEADING_TRIVIA = re.compile(r"(?:\s+|//[^\n]*|/\*.*?\*/)*", re.DOTALL)
_PACKAGE_CLAUSE = re.compile(r"package[ \t]+([^\W\d]\w*)")


def read_package_name(path: Path, display_path: str | None = None) -> str:
    """Return the package name declared by a Go source file.

    Only the package clause is parsed; the rest of the file is ignored.
    """
    shown = display_path or str(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise DiscoveryError(f"ReadFile {shown} failed: {exc}") from exc

    position = _LEADING_TRIVIA.match(text).end()
    match = _PACKAGE_CLAUSE.match(text, position)
    if match is None:
        line = text.count("\n", 0, position) + 1
        raise DiscoveryError(f"ParseFile {shown} failed: line {line}: expected 'package'")
    return match.group(1)


def _raise_walk_error(exc: OSError) -> None:
    raise DiscoveryError(f"Walk failed at {exc.filename}: {exc.strerror or exc}") from exc


def _iter_sources(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if not filename.endswith(_SOURCE_SUFFIX):
                continue
            path = current_dir / filename
            if path.is_dir():
                continue
            yield path


class RepoScanner:
    """Walks a source tree and collects directories declaring `package main`."""

    def __init__(
        self,
        path_filter: PathFilter | None = None,
        *,
        app_file_fmt: str = DEFAULT_APP_FILE_FMT,
    ) -> None:
        self.path_filter = path_filter or PathFilter()
        self.app_file_fmt = app_file_fmt
        self.logger = get_logger("scanner")

    def discover(self, root: str | Path) -> tuple[EntryPoint, ...]:
        """Return entry points under root, deduplicated and sorted by path."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Root directory not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Root directory is not a directory: {root}")

        directories: Set[str] = set()
        for path in _iter_sources(root_path):
            rel_file = path.relative_to(root_path).as_posix()
            rel_dir = path.parent.relative_to(root_path).as_posix()
            if not self.path_filter.classify(rel_dir):
                continue
            if read_package_name(path, rel_file) != _ENTRY_POINT_PACKAGE:
                continue
            directories.add(rel_dir)

        entry_points: List[EntryPoint] = []
        for directory in sorted(directories):
            self.logger.info("Main package path %s", directory)
            entry_points.append(
                EntryPoint(path=directory, names=derive_names(directory, self.app_file_fmt))
            )
        return tuple(entry_points)


__all__ = ["RepoScanner", "read_package_name"]
