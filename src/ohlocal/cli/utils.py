"""CLI utilities for ohlocal.

Console setup, Docker availability checks and shared message helpers.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console

from .. import docker
from ..errors import DockerNotRunningError

console = Console(legacy_windows=False, highlight=False)
err_console = Console(stderr=True, legacy_windows=False, highlight=False)

ERR_DOCKER_NOT_RUNNING = "Docker is not running! Please start Docker Desktop."


def check_docker() -> bool:
    """Check if Docker is available and running."""
    return docker.check_docker_status()


def require_docker() -> None:
    """Raise unless the Docker daemon answers.

    Raises:
        DockerNotRunningError: If Docker is missing or not running.
    """
    if not check_docker():
        raise DockerNotRunningError(ERR_DOCKER_NOT_RUNNING)


def print_error(message: str) -> None:
    err_console.print(f"[red]✗ Error: {message}[/red]")


def print_warnings(warnings: Iterable[str]) -> None:
    for warning in warnings:
        err_console.print(f"[yellow]⚠ Warning: {warning}[/yellow]")
