"""Unified exception hierarchy for ohlocal.

All custom exceptions inherit from OHLocalError for consistent error handling.
The CLI catches these and converts them to a red message plus exit status 1.

Dependency direction:
    This module has NO internal dependencies (leaf module).
    It may be imported by: all other ohlocal modules.
    It should NOT import from any other ohlocal modules.
"""

from __future__ import annotations


class OHLocalError(Exception):
    """Base exception for all ohlocal errors."""


class ConfigError(OHLocalError):
    """Tool configuration errors.

    Examples:
        - Non-numeric OPENHANDS_LOG_RETENTION_DAYS

    Agent configuration problems are never raised; the resolver
    returns them as warnings instead.
    """


class ValidationError(OHLocalError):
    """Input validation errors.

    Examples:
        - Empty project path
        - Project path that cannot be encoded as a container name
    """


class PathError(OHLocalError):
    """Path resolution errors."""


class ProjectNotFoundError(PathError):
    """Raised when a project directory does not exist.

    Carries the known projects so the caller can suggest one.
    """

    def __init__(self, directory: str, known_projects: list[str] | None = None) -> None:
        super().__init__(f"Project directory {directory} not found")
        self.directory = directory
        self.known_projects = known_projects or []


class DockerError(OHLocalError):
    """Docker operation errors.

    Base class for all Docker-related exceptions.
    """


class DockerNotFoundError(DockerError):
    """Raised when Docker is not installed or not in PATH."""


class DockerTimeoutError(DockerError):
    """Raised when a Docker operation times out."""


class DockerNotRunningError(DockerError):
    """Raised when Docker daemon is not running."""


class ContainerError(DockerError):
    """Raised when container operations fail."""


class AlreadyRunningError(ContainerError):
    """Raised when an instance is already running for a project."""

    def __init__(self, project: str, port: int | None = None) -> None:
        where = f" on port {port}" if port is not None else ""
        super().__init__(f"OpenHands is already running for {project}{where}")
        self.project = project
        self.port = port


class InstanceNotFoundError(ContainerError):
    """Raised when a command needs a running instance and there is none."""

    def __init__(self, project: str) -> None:
        super().__init__(f"No running OpenHands instance for {project}")
        self.project = project
