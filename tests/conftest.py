from __future__ import annotations

from pathlib import Path

import pytest

from imagegen.logging import reset_logging
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _detach_cli_logging():
    """Drop handlers bound to a captured stderr once the test ends."""
    yield
    reset_logging()
