"""Project path resolution for ohlocal.

Turns what the user typed (or the directory they are in) into a
ProjectTarget: the project path used for naming, the directory to mount,
and the label to show.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .constants import ALL_PROJECTS, MAX_PROJECT_HINTS
from .errors import ProjectNotFoundError
from .identity import derive_container_name, normalize_project_path
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProjectTarget:
    """A resolved project.

    Attributes:
        path: Project path under the projects root, ``.`` for the root
            itself, or the basename for a directory outside the root.
        directory: Absolute directory mounted into the sandbox.
        display: Label for console output.
        external: True when the directory is outside the projects root.
    """

    path: str
    directory: Path
    display: str
    external: bool = False

    @property
    def fragment(self) -> str:
        """Container-name fragment for this project."""
        return derive_container_name(self.path)

    @property
    def is_all_projects(self) -> bool:
        return self.path == ALL_PROJECTS


def relative_project_path(directory: Path, projects_dir: Path) -> str | None:
    """Path of ``directory`` relative to the projects root.

    Returns:
        ``.`` for the root itself, the relative path for directories below
        it, or None for directories outside it.
    """
    root = projects_dir.expanduser().resolve()
    resolved = directory.expanduser().resolve()
    if resolved == root:
        return ALL_PROJECTS
    try:
        return resolved.relative_to(root).as_posix()
    except ValueError:
        return None


def target_from_directory(directory: Path, projects_dir: Path) -> ProjectTarget:
    """Resolve a directory (usually the working directory) to a project."""
    resolved = directory.expanduser().resolve()
    rel_path = relative_project_path(resolved, projects_dir)
    if rel_path is not None:
        return ProjectTarget(path=rel_path, directory=resolved, display=rel_path)

    logger.debug("Directory %s is outside %s, using basename", resolved, projects_dir)
    return ProjectTarget(
        path=resolved.name,
        directory=resolved,
        display=f"{resolved.name} (external)",
        external=True,
    )


def resolve_project(
    project: str | None,
    projects_dir: Path,
    *,
    cwd: Path | None = None,
    must_exist: bool = True,
) -> ProjectTarget:
    """Resolve a CLI project argument.

    Args:
        project: Path relative to the projects root, ``.`` for the root,
            or None for the working directory.
        projects_dir: The projects root.
        cwd: Working directory override (defaults to ``Path.cwd()``).
        must_exist: Raise if the project directory is missing. Commands that
            only address containers (stop, logs) pass False.

    Raises:
        ProjectNotFoundError: If ``must_exist`` and the directory is missing.
    """
    if project is None:
        return target_from_directory(cwd if cwd is not None else Path.cwd(), projects_dir)

    path = normalize_project_path(project)
    root = projects_dir.expanduser()
    directory = root if path == ALL_PROJECTS else root / path

    if must_exist and not directory.is_dir():
        raise ProjectNotFoundError(str(directory), list_projects(root)[:MAX_PROJECT_HINTS])

    return ProjectTarget(path=path, directory=directory.resolve(), display=path)


def list_projects(projects_dir: Path) -> list[str]:
    """List git repositories under the projects root, as project paths.

    Does not descend into a repository once found, and skips editor
    ``.history`` trees.
    """
    root = projects_dir.expanduser()
    if not root.is_dir():
        return []

    found: list[str] = []
    for dirpath, dirnames, _ in os.walk(root):
        if ".history" in dirnames:
            dirnames.remove(".history")
        if ".git" in dirnames:
            rel = Path(dirpath).relative_to(root).as_posix()
            if rel != ".":
                found.append(rel)
            dirnames.clear()
    return sorted(found)
