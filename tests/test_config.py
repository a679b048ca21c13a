"""Tests for launcher settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from ohlocal.config import Settings
from ohlocal.errors import ConfigError


class TestSettingsFromEnv:
    """Tests for Settings.from_env."""

    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.version == "0.40"
        assert settings.runtime_version is None
        assert settings.projects_dir == Path("~/projects").expanduser()
        assert settings.log_dir == Path("~/.openhands-logs").expanduser()
        assert settings.log_retention_days == 30

    def test_overrides(self, tmp_path: Path) -> None:
        settings = Settings.from_env(
            {
                "OPENHANDS_DEFAULT_VERSION": "0.38",
                "OPENHANDS_RUNTIME_VERSION": "0.37",
                "OPENHANDS_PROJECTS_DIR": str(tmp_path / "code"),
                "OPENHANDS_LOG_DIR": str(tmp_path / "logs"),
                "OPENHANDS_LOG_RETENTION_DAYS": "7",
            }
        )
        assert settings.version == "0.38"
        assert settings.runtime_version == "0.37"
        assert settings.projects_dir == tmp_path / "code"
        assert settings.log_dir == tmp_path / "logs"
        assert settings.log_retention_days == 7

    def test_empty_values_use_defaults(self) -> None:
        settings = Settings.from_env({"OPENHANDS_DEFAULT_VERSION": ""})
        assert settings.version == "0.40"

    def test_invalid_retention(self) -> None:
        with pytest.raises(ConfigError, match="whole number"):
            Settings.from_env({"OPENHANDS_LOG_RETENTION_DAYS": "a week"})

    def test_negative_retention(self) -> None:
        with pytest.raises(ConfigError, match="negative"):
            Settings.from_env({"OPENHANDS_LOG_RETENTION_DAYS": "-1"})

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENHANDS_DEFAULT_VERSION", "main")
        assert Settings.from_env().version == "main"


class TestImages:
    """Tests for image naming."""

    def test_app_image(self) -> None:
        assert Settings(version="0.40").app_image == (
            "docker.all-hands.dev/all-hands-ai/openhands:0.40"
        )

    def test_runtime_image_follows_version(self) -> None:
        assert Settings(version="0.40").runtime_image == (
            "docker.all-hands.dev/all-hands-ai/runtime:0.40-nikolaik"
        )

    def test_runtime_image_override(self) -> None:
        settings = Settings(version="0.40", runtime_version="0.39")
        assert settings.runtime_image.endswith(":0.39-nikolaik")

    def test_with_version(self, tmp_path: Path) -> None:
        settings = Settings(projects_dir=tmp_path)
        pinned = settings.with_version("0.38")
        assert pinned.version == "0.38"
        assert pinned.projects_dir == tmp_path
        assert settings.version == "0.40"
