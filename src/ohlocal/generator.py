"""docker run command generation for OpenHands app containers."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from .config import Settings
from .constants import (
    APP_CONTAINER_PORT,
    CONTAINER_STATE_DIR,
    CONTAINER_WORKSPACE,
    DOCKER_SOCKET,
)
from .identity import app_container_name, state_dir_name
from .projects import ProjectTarget


def host_uid() -> int:
    """UID the sandbox should run as (1000 where the OS has no UIDs)."""
    getuid = getattr(os, "getuid", None)
    return getuid() if getuid is not None else 1000


def state_dir(fragment: str, home: Path | None = None) -> Path:
    """Host directory holding OpenHands state for a project."""
    return (home if home is not None else Path.home()) / state_dir_name(fragment)


def build_container_env(
    settings: Settings,
    target: ProjectTarget,
    agent_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Environment for the app container.

    Built-in defaults first; values from the resolved agent configuration
    replace them (e.g. a configured SANDBOX_VOLUMES wins).
    """
    env = {
        "SANDBOX_RUNTIME_CONTAINER_IMAGE": settings.runtime_image,
        "SANDBOX_USER_ID": str(host_uid()),
        "SANDBOX_VOLUMES": f"{target.directory}:{CONTAINER_WORKSPACE}:rw",
        "LOG_ALL_EVENTS": "true",
    }
    if agent_env:
        env.update(agent_env)
    return env


def get_docker_run_cmd(
    settings: Settings,
    target: ProjectTarget,
    port: int,
    agent_env: Mapping[str, str] | None = None,
    *,
    home: Path | None = None,
) -> list[str]:
    """Generate the detached docker run command for a project.

    Args:
        settings: Launcher settings (image versions).
        target: Project to mount.
        port: Host port for the UI.
        agent_env: Resolved agent configuration (real, unmasked values).
        home: Home directory override for the state mount.
    """
    fragment = target.fragment

    cmd = ["docker", "run", "-d", "--rm"]

    for name, value in build_container_env(settings, target, agent_env).items():
        cmd.extend(["-e", f"{name}={value}"])

    cmd.extend(
        [
            # OpenHands starts sandbox runtimes through the host daemon
            "-v",
            f"{DOCKER_SOCKET}:{DOCKER_SOCKET}",
            "-v",
            f"{state_dir(fragment, home)}:{CONTAINER_STATE_DIR}",
            "-p",
            f"{port}:{APP_CONTAINER_PORT}",
            "--add-host",
            "host.docker.internal:host-gateway",
            "--name",
            app_container_name(fragment),
            settings.app_image,
        ]
    )
    return cmd
