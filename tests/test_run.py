"""Tests for the launch workflow."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from ohlocal.cli.run import launch
from ohlocal.config import Settings
from ohlocal.errors import (
    AlreadyRunningError,
    ContainerError,
    DockerNotRunningError,
    PathError,
)
from ohlocal.identity import derive_port
from ohlocal.projects import ProjectTarget


@pytest.fixture
def target(projects_dir: Path) -> ProjectTarget:
    directory = projects_dir / "client-work" / "app"
    return ProjectTarget(path="client-work/app", directory=directory, display="client-work/app")


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(version="0.40", log_dir=tmp_path / "logs")


class TestLaunch:
    """Tests for launch()."""

    def test_docker_not_running(self, target, settings, home) -> None:
        with patch("ohlocal.cli.run.require_docker", side_effect=DockerNotRunningError("down")):
            with pytest.raises(DockerNotRunningError):
                launch(target, settings, environ={}, home=home)

    def test_already_running(self, target, settings, home) -> None:
        with (
            patch("ohlocal.cli.run.require_docker"),
            patch("ohlocal.cli.run.is_running", return_value=True),
            patch("ohlocal.cli.run.running_port", return_value=3555),
            patch("ohlocal.cli.run.docker.run_detached") as mock_run,
        ):
            with pytest.raises(AlreadyRunningError, match="port 3555"):
                launch(target, settings, environ={}, home=home)
            mock_run.assert_not_called()

    def test_success(self, target, settings, home, tmp_path) -> None:
        with (
            patch("ohlocal.cli.run.require_docker"),
            patch("ohlocal.cli.run.is_running", return_value=False),
            patch("ohlocal.cli.run.remove_stale_containers", return_value=1) as mock_stale,
            patch("ohlocal.cli.run.docker.run_detached", return_value="abc123") as mock_run,
        ):
            result = launch(
                target,
                settings,
                environ={"LLM_MODEL": "anthropic/claude"},
                home=home,
                system_config=tmp_path / "missing.toml",
            )

        mock_stale.assert_called_once_with("client-work__app")
        cmd = mock_run.call_args.args[0]
        assert "LLM_MODEL=anthropic/claude" in cmd
        assert result.container == "openhands-app-client-work__app"
        assert result.port == derive_port("client-work__app")
        assert result.url == f"http://localhost:{result.port}"
        assert result.log_dir == tmp_path / "logs"
        assert result.log_dir.is_dir()
        assert (home / ".openhands-state-client-work__app").is_dir()
        assert result.config_warnings == ()

    def test_config_warnings_reported(self, target, settings, home, tmp_path) -> None:
        user_config = home / ".openhands" / "config.toml"
        user_config.parent.mkdir()
        user_config.write_text("[llm\n", encoding="utf-8")
        user_config.chmod(0o600)
        with (
            patch("ohlocal.cli.run.require_docker"),
            patch("ohlocal.cli.run.is_running", return_value=False),
            patch("ohlocal.cli.run.remove_stale_containers", return_value=0),
            patch("ohlocal.cli.run.docker.run_detached", return_value="abc123"),
        ):
            result = launch(
                target, settings, environ={}, home=home, system_config=tmp_path / "none.toml"
            )
        assert len(result.config_warnings) == 1
        assert "invalid TOML" in result.config_warnings[0]

    def test_docker_failure_propagates(self, target, settings, home, tmp_path) -> None:
        with (
            patch("ohlocal.cli.run.require_docker"),
            patch("ohlocal.cli.run.is_running", return_value=False),
            patch("ohlocal.cli.run.remove_stale_containers", return_value=0),
            patch(
                "ohlocal.cli.run.docker.run_detached",
                side_effect=ContainerError("Failed to start container: port is already allocated"),
            ),
        ):
            with pytest.raises(ContainerError, match="already allocated"):
                launch(
                    target, settings, environ={}, home=home, system_config=tmp_path / "none.toml"
                )

    def test_all_projects_skips_project_file(self, projects_dir, settings, home, tmp_path) -> None:
        (projects_dir / ".openhands").mkdir()
        (projects_dir / ".openhands" / "config.toml").write_text(
            '[llm]\nmodel = "root-model"\n', encoding="utf-8"
        )
        target = ProjectTarget(path=".", directory=projects_dir, display=".")
        with (
            patch("ohlocal.cli.run.require_docker"),
            patch("ohlocal.cli.run.is_running", return_value=False),
            patch("ohlocal.cli.run.remove_stale_containers", return_value=0),
            patch("ohlocal.cli.run.docker.run_detached", return_value="abc") as mock_run,
        ):
            result = launch(
                target, settings, environ={}, home=home, system_config=tmp_path / "none.toml"
            )
        assert result.container == "openhands-app-projects-root"
        assert "LLM_MODEL=root-model" not in mock_run.call_args.args[0]

    def test_state_dir_blocked(self, target, settings, home, tmp_path) -> None:
        (home / ".openhands-state-client-work__app").write_text("not a directory")
        with (
            patch("ohlocal.cli.run.require_docker"),
            patch("ohlocal.cli.run.is_running", return_value=False),
            patch("ohlocal.cli.run.remove_stale_containers", return_value=0),
            patch("ohlocal.cli.run.docker.run_detached") as mock_run,
        ):
            with pytest.raises(PathError, match="Cannot create state directory"):
                launch(
                    target, settings, environ={}, home=home, system_config=tmp_path / "none.toml"
                )
            mock_run.assert_not_called()

    def test_log_dir_blocked(self, target, home, tmp_path) -> None:
        blocker = tmp_path / "logs"
        blocker.write_text("not a directory")
        with (
            patch("ohlocal.cli.run.require_docker"),
            patch("ohlocal.cli.run.is_running", return_value=False),
            patch("ohlocal.cli.run.remove_stale_containers", return_value=0),
        ):
            with pytest.raises(PathError, match="Cannot create log directory"):
                launch(
                    target,
                    Settings(log_dir=blocker),
                    environ={},
                    home=home,
                    system_config=tmp_path / "none.toml",
                )
