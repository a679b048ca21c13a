"""Running-instance queries for ohlocal.

An instance is one OpenHands app container plus the runtime containers it
has started for its conversations.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .. import docker
from ..constants import (
    APP_CONTAINER_PORT,
    APP_CONTAINER_PREFIX,
    BACKUP_DIR_NAME,
    RUNTIME_CONTAINER_PREFIX,
)
from ..errors import InstanceNotFoundError, PathError
from ..generator import state_dir
from ..hostlogs import TIMESTAMP_FORMAT
from ..identity import (
    app_container_name,
    conversation_ids,
    display_name,
    fragment_from_container,
    runtime_container_name,
)
from ..logging import get_logger
from ..projects import ProjectTarget

logger = get_logger(__name__)

_PS_FORMAT = "{{.Names}}|{{.Ports}}|{{.Status}}"


@dataclass(frozen=True)
class Instance:
    """A running OpenHands app container."""

    container: str
    project: str
    port: int | None
    status: str


def exact_name_filter(name: str) -> str:
    """Docker name filter matching exactly one container name."""
    return f"^/?{name}$"


def prefix_name_filter(prefix: str) -> str:
    """Docker name filter matching names that start with ``prefix``."""
    return f"^/?{prefix}"


def is_running(fragment: str) -> bool:
    """Whether the app container for a fragment is running."""
    return bool(docker.container_ids(exact_name_filter(app_container_name(fragment))))


def running_port(fragment: str) -> int | None:
    return docker.container_port(app_container_name(fragment), APP_CONTAINER_PORT)


def runtime_containers(fragment: str) -> list[str]:
    """Running runtime containers that belong to a project's app container.

    OpenHands names runtimes after the conversation, not the project, so
    ownership is recovered from the conversation ids in the app logs.

    Returns:
        Container names in the order their conversations first appear in
        the logs, so the last one is the most recently started.
    """
    logs = docker.container_logs(app_container_name(fragment))
    wanted = [runtime_container_name(cid) for cid in conversation_ids(logs)]
    if not wanted:
        return []
    running = set(
        docker.list_containers(name_filter=prefix_name_filter(RUNTIME_CONTAINER_PREFIX))
    )
    return [name for name in wanted if name in running]


def list_instances() -> list[Instance]:
    """All running app containers, sorted by project path."""
    instances = []
    for line in docker.list_containers(
        name_filter=prefix_name_filter(APP_CONTAINER_PREFIX), fmt=_PS_FORMAT
    ):
        name, _, rest = line.partition("|")
        ports, _, status = rest.partition("|")
        fragment = fragment_from_container(name)
        if fragment is None:
            continue
        instances.append(
            Instance(
                container=name,
                project=display_name(fragment),
                port=docker.parse_host_port(ports, APP_CONTAINER_PORT),
                status=status,
            )
        )
    return sorted(instances, key=lambda i: i.project)


def save_session(
    target: ProjectTarget,
    *,
    home: Path | None = None,
    now: datetime | None = None,
) -> Path:
    """Copy a running project's state directory to a timestamped backup.

    Returns:
        The backup directory.

    Raises:
        InstanceNotFoundError: If the project is not running.
        PathError: If the state directory is missing or cannot be copied.
    """
    fragment = target.fragment
    if not is_running(fragment):
        raise InstanceNotFoundError(target.display)

    source = state_dir(fragment, home)
    if not source.is_dir():
        raise PathError(f"State directory {source} does not exist")

    backups = (home if home is not None else Path.home()) / BACKUP_DIR_NAME
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    destination = backups / f"{fragment}-{stamp}"

    logger.debug("Backing up %s to %s", source, destination)
    try:
        shutil.copytree(source, destination / source.name)
    except (OSError, shutil.Error) as e:
        raise PathError(f"Failed to save session: {e}") from e
    return destination
