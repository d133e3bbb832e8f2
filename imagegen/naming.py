"""Naming rules that turn an entry-point path into template variables."""

from __future__ import annotations

from .errors import ConfigError
from .models import EntryPointNames

DEFAULT_APP_FILENAME = "main"
DEFAULT_APP_FILE_FMT = "/usr/bin/%s"

_COMMANDS_ROOT = "cmd/"


def app_filename(path: str) -> str:
    """Return the binary name for an entry point, falling back to `main`."""
    base = path.rstrip("/").rsplit("/", 1)[-1]
    if base in {"", "."}:
        return DEFAULT_APP_FILENAME
    return base


def cmd_sub_path(path: str) -> str:
    """Strip everything up to and including the first `cmd/` segment."""
    _, found, rest = path.partition(_COMMANDS_ROOT)
    return rest if found else path


def dashcase(path: str) -> str:
    sub_path = cmd_sub_path(path)
    return sub_path.replace("/", "-").replace("_", "-").lower()


def _is_word_separator(char: str) -> bool:
    # ASCII punctuation splits words; outside ASCII only whitespace does.
    if char.isascii():
        return not (char.isalnum() or char == "_")
    if char.isalpha() or char.isdigit():
        return False
    return char.isspace()


def capitalize(path: str) -> str:
    """Title-case the sub path, e.g. `mt-broker/v1.filter` -> `Mt Broker V1.Filter`."""
    sub_path = cmd_sub_path(path)
    words = sub_path.replace("/", " ").replace("_", " ").replace("-", " ").lower()
    chars = []
    previous = " "
    for char in words:
        chars.append(char.upper() if _is_word_separator(previous) else char)
        previous = char
    return "".join(chars)


def format_app_file(app_file_fmt: str, binary: str) -> str:
    try:
        return app_file_fmt % binary
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"App file format {app_file_fmt!r} must take a single %s value: {exc}"
        ) from exc


def validate_app_file_fmt(app_file_fmt: str) -> None:
    """Raise ConfigError unless the format accepts exactly one binary name."""
    format_app_file(app_file_fmt, DEFAULT_APP_FILENAME)


def derive_names(path: str, app_file_fmt: str = DEFAULT_APP_FILE_FMT) -> EntryPointNames:
    """Return display, dash-case, and binary names for an entry-point path."""
    binary = app_filename(path)
    return EntryPointNames(
        display=capitalize(path),
        dashcase=dashcase(path),
        binary_filename=binary,
        binary_install_path=format_app_file(app_file_fmt, binary),
    )


__all__ = [
    "DEFAULT_APP_FILENAME",
    "DEFAULT_APP_FILE_FMT",
    "app_filename",
    "capitalize",
    "cmd_sub_path",
    "dashcase",
    "derive_names",
    "format_app_file",
    "validate_app_file_fmt",
]
