"""Launch workflow for ohlocal.

Resolves configuration, checks for an existing instance, clears stale
containers and starts the OpenHands app container for a project.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import click
from rich.panel import Panel

from .. import docker
from ..agent_config import resolve_config
from ..config import Settings
from ..constants import BROWSER_OPEN_DELAY, DOCKER_RUN_TIMEOUT
from ..errors import AlreadyRunningError, PathError
from ..generator import get_docker_run_cmd, state_dir
from ..hostlogs import clean_old_logs, ensure_log_dir
from ..identity import app_container_name, derive_port
from ..logging import get_logger
from ..projects import ProjectTarget
from .cleanup import remove_stale_containers
from .instances import is_running, running_port
from .utils import console, print_warnings, require_docker

logger = get_logger(__name__)


@dataclass(frozen=True)
class LaunchResult:
    """What a successful launch produced."""

    container: str
    port: int
    log_dir: Path
    config_warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"


def launch(
    target: ProjectTarget,
    settings: Settings,
    *,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
    system_config: Path | None = None,
) -> LaunchResult:
    """Start OpenHands for a project.

    Args:
        target: Resolved project.
        settings: Launcher settings.
        environ: Environment consulted for config overrides.
        home: Home directory override (config, state).
        system_config: System config file override.

    Raises:
        DockerNotRunningError: If Docker is not running.
        AlreadyRunningError: If the project already has a running instance.
        ContainerError: If Docker fails to start the container.
        PathError: If the log or state directory cannot be created.
        ValidationError: If the project path cannot name a container.
    """
    fragment = target.fragment
    require_docker()

    if is_running(fragment):
        raise AlreadyRunningError(target.display, running_port(fragment))

    removed = remove_stale_containers(fragment)
    if removed:
        logger.debug("Removed %d stale container(s) for %s", removed, fragment)

    project_dir = None if target.is_all_projects else target.directory
    resolved, warnings = resolve_config(
        project_dir, environ=environ, home=home, system_path=system_config
    )
    logger.debug("Resolved %d agent config value(s)", len(resolved))

    port = derive_port(fragment)

    ensure_log_dir(settings.log_dir)
    clean_old_logs(settings.log_dir, settings.log_retention_days)

    state = state_dir(fragment, home)
    try:
        state.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PathError(f"Cannot create state directory {state}: {e}") from e

    cmd = get_docker_run_cmd(settings, target, port, resolved.as_env(), home=home)
    container_id = docker.run_detached(cmd, timeout=DOCKER_RUN_TIMEOUT)
    logger.info("Started %s (%s)", app_container_name(fragment), container_id[:12])

    return LaunchResult(
        container=app_container_name(fragment),
        port=port,
        log_dir=settings.log_dir,
        config_warnings=tuple(warnings),
    )


def run(
    target: ProjectTarget,
    settings: Settings,
    *,
    open_browser: bool = True,
) -> LaunchResult:
    """Launch with console output (the ``oh`` / ``oh start`` commands)."""
    console.print(f"[blue]🚀 Starting OpenHands for {target.display}...[/blue]")
    result = launch(target, settings)
    print_warnings(result.config_warnings)

    console.print(
        Panel.fit(
            f"📁 Project: {target.directory}\n"
            f"🔌 Port: {result.port}\n"
            f"🏷️  Version: {settings.version}\n"
            f"📝 Log snapshots: {result.log_dir} (oh logs --save)",
            title=f"[bold]{target.display}[/bold]",
            border_style="blue",
        )
    )
    console.print("[green]✅ OpenHands started successfully![/green]")
    console.print(f"\n🌐 URL: [bold]{result.url}[/bold]\n")
    console.print("[dim]💡 Tips:[/dim]")
    console.print("[dim]  - Start a NEW conversation in the UI for fresh workspace mounts[/dim]")
    console.print(f"[dim]  - View logs with: oh logs {target.path}[/dim]")
    console.print(f"[dim]  - Follow logs with: oh logs -f {target.path}[/dim]")

    if open_browser:
        time.sleep(BROWSER_OPEN_DELAY)
        click.launch(result.url)
    return result
