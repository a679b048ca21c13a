"""Docker operations for ohlocal.

Thin wrappers over the docker CLI, separated from CLI logic so they can be
mocked in tests. Query helpers degrade to empty results when Docker is
missing; commands that change state raise.
"""

from __future__ import annotations

import re
import subprocess
from typing import TYPE_CHECKING

from .constants import DOCKER_COMMAND_TIMEOUT
from .errors import ContainerError, DockerError, DockerNotFoundError, DockerTimeoutError
from .logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "DockerError",
    "DockerNotFoundError",
    "DockerTimeoutError",
    "safe_docker_run",
    "check_docker_status",
    "list_containers",
    "container_ids",
    "container_port",
    "parse_host_port",
    "stop_containers",
    "remove_containers",
    "run_detached",
    "container_logs",
    "stream_logs",
]


def safe_docker_run(
    cmd: Sequence[str],
    *,
    timeout: int | None = DOCKER_COMMAND_TIMEOUT,
    capture_output: bool = True,
    check: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run a Docker command with consistent error handling.

    Args:
        cmd: Command to run (should start with 'docker').
        timeout: Command timeout in seconds; None waits indefinitely.
        capture_output: Capture stdout/stderr if True.
        check: Raise CalledProcessError on non-zero exit.

    Raises:
        DockerNotFoundError: If docker command is not found.
        DockerTimeoutError: If command times out.
        subprocess.CalledProcessError: If check=True and command fails.
    """
    cmd_str = " ".join(cmd[:4]) + ("..." if len(cmd) > 4 else "")
    logger.debug("Running Docker command: %s", cmd_str)
    try:
        result = subprocess.run(
            cmd,
            capture_output=capture_output,
            text=True,
            check=check,
            timeout=timeout,
        )
        logger.debug("Docker command completed: exit=%d", result.returncode)
        return result
    except FileNotFoundError as e:
        logger.error("Docker not found in PATH: %s", cmd_str)
        raise DockerNotFoundError(f"Docker not found in PATH. Command: {cmd_str}") from e
    except subprocess.TimeoutExpired as e:
        logger.error("Docker command timed out after %ss: %s", timeout, cmd_str)
        raise DockerTimeoutError(
            f"Docker command timed out after {timeout}s. Command: {cmd_str}"
        ) from e


def check_docker_status() -> bool:
    """Check if Docker daemon is responsive."""
    try:
        result = safe_docker_run(["docker", "info"])
        return result.returncode == 0
    except (DockerNotFoundError, DockerTimeoutError):
        return False


def _lines(output: str | None) -> list[str]:
    return [line for line in (output or "").strip().split("\n") if line]


def list_containers(
    name_filter: str | None = None,
    status_filter: str | None = None,
    *,
    all_containers: bool = False,
    fmt: str = "{{.Names}}",
) -> list[str]:
    """List containers matching filters, one formatted line per container.

    Args:
        name_filter: Filter by container name (Docker treats it as a regex).
        status_filter: Filter by status (running, exited, etc.).
        all_containers: Include stopped containers if True.
        fmt: Go template passed to ``--format``.

    Returns:
        Formatted lines, or an empty list on failure.
    """
    cmd = ["docker", "ps", "--format", fmt]
    if all_containers:
        cmd.append("-a")
    if name_filter:
        cmd.extend(["--filter", f"name={name_filter}"])
    if status_filter:
        cmd.extend(["--filter", f"status={status_filter}"])
    try:
        result = safe_docker_run(cmd)
    except (DockerNotFoundError, DockerTimeoutError):
        return []
    if result.returncode != 0:
        return []
    return _lines(result.stdout)


def container_ids(
    name_filter: str, *, all_containers: bool = False, status_filter: str | None = None
) -> list[str]:
    """IDs of containers whose name matches ``name_filter``."""
    return list_containers(
        name_filter,
        status_filter,
        all_containers=all_containers,
        fmt="{{.ID}}",
    )


def parse_host_port(ports: str, container_port: int) -> int | None:
    """Find the host port bound to ``container_port`` in a ``docker ps`` Ports column.

    Examples:
        >>> parse_host_port("0.0.0.0:3042->3000/tcp, :::3042->3000/tcp", 3000)
        3042
    """
    match = re.search(rf":(\d+)->{container_port}/", ports)
    return int(match.group(1)) if match else None


def container_port(container_name: str, private_port: int) -> int | None:
    """Host port published for a container's private port, or None."""
    try:
        result = safe_docker_run(["docker", "port", container_name, str(private_port)])
    except (DockerNotFoundError, DockerTimeoutError):
        return None
    if result.returncode != 0:
        return None
    for line in _lines(result.stdout):
        _, _, port = line.rpartition(":")
        if port.isdigit():
            return int(port)
    return None


def stop_containers(ids: Sequence[str]) -> list[str]:
    """Stop containers, returning the ones Docker reports as stopped."""
    if not ids:
        return []
    result = safe_docker_run(["docker", "stop", *ids])
    if result.returncode != 0:
        logger.warning("docker stop failed: %s", (result.stderr or "").strip())
    return _lines(result.stdout)


def remove_containers(ids: Sequence[str], *, force: bool = False) -> int:
    """Remove containers; returns the number Docker reports as removed."""
    if not ids:
        return 0
    cmd = ["docker", "rm"]
    if force:
        cmd.append("-f")
    cmd.extend(ids)
    result = safe_docker_run(cmd)
    if result.returncode != 0:
        logger.debug("docker rm reported: %s", (result.stderr or "").strip())
    return len(_lines(result.stdout))


def run_detached(cmd: Sequence[str], *, timeout: int | None = None) -> str:
    """Run a ``docker run -d`` command.

    Returns:
        The new container ID.

    Raises:
        ContainerError: If Docker refuses to start the container.
    """
    result = safe_docker_run(cmd, timeout=timeout)
    if result.returncode != 0:
        detail = (result.stderr or "").strip() or f"exit code {result.returncode}"
        raise ContainerError(f"Failed to start container: {detail}")
    return (result.stdout or "").strip()


def _logs_cmd(
    container_name: str,
    *,
    follow: bool = False,
    tail: int | None = None,
    since: str | None = None,
) -> list[str]:
    cmd = ["docker", "logs"]
    if follow:
        cmd.append("-f")
    if tail is not None:
        cmd.extend(["-n", str(tail)])
    if since:
        cmd.extend(["--since", since])
    cmd.append(container_name)
    return cmd


def container_logs(
    container_name: str, *, tail: int | None = None, since: str | None = None
) -> str:
    """Captured logs of a container (stdout and stderr combined), or "" on failure."""
    try:
        result = safe_docker_run(_logs_cmd(container_name, tail=tail, since=since))
    except (DockerNotFoundError, DockerTimeoutError):
        return ""
    if result.returncode != 0:
        return ""
    return (result.stdout or "") + (result.stderr or "")


def stream_logs(
    container_name: str,
    *,
    follow: bool = False,
    tail: int | None = None,
    since: str | None = None,
) -> int:
    """Print container logs straight to the terminal.

    With ``follow`` this blocks until the user interrupts it.

    Returns:
        The docker exit code.
    """
    cmd = _logs_cmd(container_name, follow=follow, tail=tail, since=since)
    result = safe_docker_run(cmd, timeout=None, capture_output=False)
    return result.returncode
