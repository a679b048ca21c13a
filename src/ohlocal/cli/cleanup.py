"""Stop and cleanup operations for ohlocal.

Handles stopping one project, stopping everything, and removing exited
runtime containers. Every function returns a count so the caller decides
what to print.
"""

from __future__ import annotations

from .. import docker
from ..constants import CONTAINER_PREFIX, RUNTIME_CONTAINER_PREFIX
from ..identity import app_container_name
from ..logging import get_logger
from .instances import exact_name_filter, prefix_name_filter, runtime_containers

logger = get_logger(__name__)


def remove_stale_containers(fragment: str) -> int:
    """Best-effort stop/remove of leftover containers for a project.

    Run before a launch so a crashed or exited app container does not
    block the name. Failures are ignored.

    Returns:
        Number of containers removed.
    """
    name_filter = exact_name_filter(app_container_name(fragment))
    try:
        docker.stop_containers(docker.container_ids(name_filter))
        return docker.remove_containers(docker.container_ids(name_filter, all_containers=True))
    except docker.DockerError as e:
        logger.debug("Stale container cleanup failed: %s", e)
        return 0


def stop_instance(fragment: str) -> int:
    """Stop a project's app container and the runtimes it started.

    Runtimes are looked up before the app stops, while its logs are
    still available.

    Returns:
        Number of containers stopped; 0 when nothing was running.
    """
    app_ids = docker.container_ids(exact_name_filter(app_container_name(fragment)))
    runtimes = runtime_containers(fragment) if app_ids else []

    stopped = docker.stop_containers([*app_ids, *runtimes])
    if stopped:
        leftover = docker.container_ids(
            exact_name_filter(app_container_name(fragment)), all_containers=True
        )
        docker.remove_containers([*leftover, *runtimes])
    logger.debug("Stopped %d container(s) for %s", len(stopped), fragment)
    return len(stopped)


def stop_all() -> int:
    """Stop and remove every OpenHands container.

    Returns:
        Number of running containers that were stopped.
    """
    name_filter = prefix_name_filter(CONTAINER_PREFIX)
    running = docker.container_ids(name_filter)
    if not running:
        return 0
    docker.stop_containers(running)
    docker.remove_containers(docker.container_ids(name_filter, all_containers=True))
    return len(running)


def clean_runtimes() -> int:
    """Remove exited runtime containers.

    Returns:
        Number of containers removed.
    """
    exited = docker.container_ids(
        prefix_name_filter(RUNTIME_CONTAINER_PREFIX), all_containers=True, status_filter="exited"
    )
    if not exited:
        return 0
    docker.remove_containers(exited)
    return len(exited)
