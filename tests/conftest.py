"""Pytest configuration and fixtures for ohlocal tests.

Makes the package importable without installation and keeps the
developer's own OpenHands environment out of the tests.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add src directory to path for development testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from ohlocal.agent_config import CONFIG_KEYS  # noqa: E402
from ohlocal.config import (  # noqa: E402
    ENV_LOG_DIR,
    ENV_LOG_RETENTION_DAYS,
    ENV_PROJECTS_DIR,
    ENV_RUNTIME_VERSION,
    ENV_VERSION,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset every variable the tool reads."""
    for name in (
        ENV_VERSION,
        ENV_RUNTIME_VERSION,
        ENV_PROJECTS_DIR,
        ENV_LOG_DIR,
        ENV_LOG_RETENTION_DAYS,
        "OHLOCAL_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    for entry in CONFIG_KEYS.values():
        monkeypatch.delenv(entry.env, raising=False)


@pytest.fixture
def projects_dir(tmp_path: Path) -> Path:
    """Projects root with a couple of git repositories."""
    root = tmp_path / "projects"
    for name in ("client-work/app", "solo"):
        (root / name / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path
