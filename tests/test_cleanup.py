"""Tests for stop and cleanup operations."""

from __future__ import annotations

from unittest.mock import call, patch

from ohlocal.cli.cleanup import clean_runtimes, remove_stale_containers, stop_all, stop_instance
from ohlocal.docker import DockerTimeoutError

APP_FILTER = "^/?openhands-app-solo$"


class TestRemoveStaleContainers:
    """Tests for remove_stale_containers."""

    def test_removes_leftovers(self) -> None:
        with (
            patch("ohlocal.cli.cleanup.docker.container_ids", side_effect=[[], ["old1"]]),
            patch("ohlocal.cli.cleanup.docker.stop_containers", return_value=[]),
            patch("ohlocal.cli.cleanup.docker.remove_containers", return_value=1) as mock_rm,
        ):
            assert remove_stale_containers("solo") == 1
            mock_rm.assert_called_once_with(["old1"])

    def test_docker_errors_ignored(self) -> None:
        with patch(
            "ohlocal.cli.cleanup.docker.container_ids", side_effect=DockerTimeoutError("slow")
        ):
            assert remove_stale_containers("solo") == 0


class TestStopInstance:
    """Tests for stop_instance."""

    def test_stops_app_and_runtimes(self) -> None:
        with (
            patch(
                "ohlocal.cli.cleanup.docker.container_ids", side_effect=[["app1"], ["app1"]]
            ) as mock_ids,
            patch(
                "ohlocal.cli.cleanup.runtime_containers",
                return_value=["openhands-runtime-abc"],
            ),
            patch(
                "ohlocal.cli.cleanup.docker.stop_containers",
                return_value=["app1", "openhands-runtime-abc"],
            ) as mock_stop,
            patch("ohlocal.cli.cleanup.docker.remove_containers") as mock_rm,
        ):
            assert stop_instance("solo") == 2

        mock_stop.assert_called_once_with(["app1", "openhands-runtime-abc"])
        mock_rm.assert_called_once_with(["app1", "openhands-runtime-abc"])
        assert mock_ids.call_args_list == [
            call(APP_FILTER),
            call(APP_FILTER, all_containers=True),
        ]

    def test_nothing_running(self) -> None:
        with (
            patch("ohlocal.cli.cleanup.docker.container_ids", return_value=[]),
            patch("ohlocal.cli.cleanup.runtime_containers") as mock_runtimes,
            patch("ohlocal.cli.cleanup.docker.stop_containers", return_value=[]),
            patch("ohlocal.cli.cleanup.docker.remove_containers") as mock_rm,
        ):
            assert stop_instance("solo") == 0
            mock_runtimes.assert_not_called()
            mock_rm.assert_not_called()


class TestStopAll:
    """Tests for stop_all."""

    def test_stops_everything(self) -> None:
        with (
            patch(
                "ohlocal.cli.cleanup.docker.container_ids",
                side_effect=[["a", "b"], ["a", "b", "c"]],
            ) as mock_ids,
            patch("ohlocal.cli.cleanup.docker.stop_containers") as mock_stop,
            patch("ohlocal.cli.cleanup.docker.remove_containers") as mock_rm,
        ):
            assert stop_all() == 2
            assert mock_ids.call_args_list == [
                call("^/?openhands-"),
                call("^/?openhands-", all_containers=True),
            ]
            mock_stop.assert_called_once_with(["a", "b"])
            mock_rm.assert_called_once_with(["a", "b", "c"])

    def test_nothing_running(self) -> None:
        with (
            patch("ohlocal.cli.cleanup.docker.container_ids", return_value=[]),
            patch("ohlocal.cli.cleanup.docker.stop_containers") as mock_stop,
        ):
            assert stop_all() == 0
            mock_stop.assert_not_called()


class TestCleanRuntimes:
    """Tests for clean_runtimes."""

    def test_removes_exited(self) -> None:
        with (
            patch("ohlocal.cli.cleanup.docker.container_ids", return_value=["r1"]) as mock_ids,
            patch("ohlocal.cli.cleanup.docker.remove_containers") as mock_rm,
        ):
            assert clean_runtimes() == 1
            mock_ids.assert_called_once_with(
                "^/?openhands-runtime-", all_containers=True, status_filter="exited"
            )
            mock_rm.assert_called_once_with(["r1"])

    def test_nothing_to_clean(self) -> None:
        with (
            patch("ohlocal.cli.cleanup.docker.container_ids", return_value=[]),
            patch("ohlocal.cli.cleanup.docker.remove_containers") as mock_rm,
        ):
            assert clean_runtimes() == 0
            mock_rm.assert_not_called()
