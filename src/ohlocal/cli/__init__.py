"""CLI package for ohlocal.

This package contains the CLI commands and supporting modules:
- run: Launch workflow
- cleanup: Stop and cleanup operations
- instances: Running-instance queries and session backups
- utils: Console, Docker checks, message helpers
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import NoReturn

# Rich prints emoji and box characters; keep Windows consoles from choking on them
if sys.platform == "win32":
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    if hasattr(sys.stderr, "reconfigure"):
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click
from rich.table import Table

from .. import __version__, docker
from ..agent_config import (
    ConfigScope,
    config_file_path,
    parse_config_text,
    permission_warning,
    resolve_config,
)
from ..config import Settings
from ..constants import ALL_PROJECTS, MAX_PROJECT_HINTS
from ..errors import AlreadyRunningError, OHLocalError, PathError, ProjectNotFoundError
from ..hostlogs import ensure_log_dir, log_file_path
from ..identity import app_container_name
from ..logging import set_debug
from ..projects import ProjectTarget, list_projects, resolve_project
from .cleanup import clean_runtimes, stop_all, stop_instance
from .instances import is_running, list_instances, runtime_containers, save_session
from .utils import console, err_console, print_error, print_warnings

CONFIG_TEMPLATE = """\
# OpenHands agent configuration.
# Environment variables always override values set here.

[llm]
# model = "anthropic/claude-sonnet-4-20250514"
# api_key = ""

[sandbox]
# enable_gpu = false

[security]
# confirmation_mode = true
"""


def _fail(error: OHLocalError) -> NoReturn:
    """Print an error (with any hint it carries) and exit 1."""
    print_error(str(error))
    if isinstance(error, ProjectNotFoundError) and error.known_projects:
        err_console.print("Available projects:")
        for name in error.known_projects:
            err_console.print(f"  {name}")
    sys.exit(1)


def _settings() -> Settings:
    try:
        return Settings.from_env()
    except OHLocalError as e:
        _fail(e)


def _target(project: str | None, *, must_exist: bool) -> tuple[Settings, ProjectTarget]:
    settings = _settings()
    try:
        return settings, resolve_project(project, settings.projects_dir, must_exist=must_exist)
    except OHLocalError as e:
        _fail(e)


def _complete_projects(
    ctx: click.Context, param: click.Parameter, incomplete: str
) -> list[str]:
    """Shell completion: git repositories under the projects root."""
    try:
        root = Settings.from_env().projects_dir
    except OHLocalError:
        return []
    return [name for name in list_projects(root) if name.startswith(incomplete)]


def _launch(project: str | None, oh_version: str | None, no_browser: bool) -> None:
    # Lazy import: keeps --help fast
    from .run import run as _run

    settings, target = _target(project, must_exist=True)
    if oh_version:
        settings = settings.with_version(oh_version)
    try:
        _run(target, settings, open_browser=not no_browser)
    except AlreadyRunningError as e:
        print_error(str(e))
        err_console.print(f"Stop it first with: oh stop {target.path}")
        sys.exit(1)
    except OHLocalError as e:
        _fail(e)


@click.group(invoke_without_command=True)
@click.option(
    "--project",
    "-p",
    shell_complete=_complete_projects,
    help="Project path under the projects root (default: current directory)",
)
@click.option("--oh-version", "-V", help="OpenHands version to launch (e.g. 0.38, main)")
@click.option("--no-browser", is_flag=True, help="Do not open the UI in a browser")
@click.option("--debug", "-d", is_flag=True, help="Show diagnostic logging")
@click.version_option(version=__version__, prog_name="oh")
@click.pass_context
def cli(
    ctx: click.Context,
    project: str | None,
    oh_version: str | None,
    no_browser: bool,
    debug: bool,
) -> None:
    """oh - Run OpenHands for your local projects.

    Run 'oh' in a project directory to launch it, or 'oh start PROJECT'
    for a project under OPENHANDS_PROJECTS_DIR.
    """
    if debug:
        set_debug(True)
    if ctx.invoked_subcommand is not None:
        return
    _launch(project, oh_version, no_browser)


@cli.command()
@click.argument("project", required=False, shell_complete=_complete_projects)
@click.option("--oh-version", "-V", help="OpenHands version to launch (e.g. 0.38, main)")
@click.option("--no-browser", is_flag=True, help="Do not open the UI in a browser")
def start(project: str | None, oh_version: str | None, no_browser: bool) -> None:
    """Launch OpenHands for PROJECT ('.' for the whole projects root)."""
    _launch(project, oh_version, no_browser)


@cli.command(name="list")
def list_command() -> None:
    """List running OpenHands instances."""
    instances = list_instances()
    if not instances:
        console.print("[dim]No instances running[/dim]")
        return

    table = Table(title="Running OpenHands instances")
    table.add_column("Project", style="cyan")
    table.add_column("Port", justify="right")
    table.add_column("Status")
    for instance in instances:
        port = str(instance.port) if instance.port is not None else "-"
        table.add_row(instance.project, port, instance.status)
    console.print(table)


@cli.command()
@click.argument("project", required=False, shell_complete=_complete_projects)
def stop(project: str | None) -> None:
    """Stop OpenHands for PROJECT (default: current directory)."""
    _, target = _target(project, must_exist=False)
    console.print(f"[blue]🛑 Stopping OpenHands for {target.display}...[/blue]")
    try:
        stopped = stop_instance(target.fragment)
    except OHLocalError as e:
        _fail(e)
    if stopped:
        console.print(f"[green]✅ Stopped OpenHands for {target.display}[/green]")
    else:
        console.print(f"[yellow]⚠️  No running instance found for {target.display}[/yellow]")


@cli.command(name="stop-all")
def stop_all_command() -> None:
    """Stop all OpenHands instances."""
    console.print("[blue]🛑 Stopping all OpenHands instances...[/blue]")
    try:
        count = stop_all()
    except OHLocalError as e:
        _fail(e)
    if count:
        console.print(f"[green]✅ Stopped {count} instance(s)[/green]")
    else:
        console.print("[yellow]⚠️  No running instances found[/yellow]")


@cli.command()
def clean() -> None:
    """Remove stopped OpenHands runtime containers."""
    console.print("[blue]🧹 Cleaning up old OpenHands containers...[/blue]")
    try:
        count = clean_runtimes()
    except OHLocalError as e:
        _fail(e)
    if count:
        console.print(f"[green]✅ Removed {count} container(s)[/green]")
    else:
        console.print("[green]✅ No cleanup needed[/green]")


@cli.command()
@click.argument("project", required=False, shell_complete=_complete_projects)
@click.option("--follow", "-f", is_flag=True, help="Follow log output (Ctrl+C to stop)")
@click.option("--lines", "-n", type=click.IntRange(min=0), help="Show only the last N lines")
@click.option("--since", help="Show logs since TIME (e.g. 10m, 1h)")
@click.option("--runtime", is_flag=True, help="Show the latest runtime container instead")
@click.option("--save", is_flag=True, help="Write a snapshot to the host log directory")
def logs(
    project: str | None,
    follow: bool,
    lines: int | None,
    since: str | None,
    runtime: bool,
    save: bool,
) -> None:
    """Show Docker logs for PROJECT (default: current directory)."""
    settings, target = _target(project, must_exist=False)
    try:
        fragment = target.fragment
        if not is_running(fragment):
            print_error(f"No running OpenHands instance for {target.display}")
            err_console.print(f"Start it with: oh start {target.path}")
            sys.exit(1)

        container = app_container_name(fragment)
        if runtime:
            runtimes = runtime_containers(fragment)
            if not runtimes:
                print_error(f"No runtime container found for {target.display}")
                sys.exit(1)
            # ordered by first appearance in the app logs
            container = runtimes[-1]

        if save:
            text = docker.container_logs(container, tail=lines, since=since)
            path = log_file_path(ensure_log_dir(settings.log_dir), target.fragment)
            try:
                path.write_text(text, encoding="utf-8")
            except OSError as e:
                raise PathError(f"Cannot write {path}: {e}") from e
            console.print(f"[green]📝 Saved logs to {path}[/green]")
            return

        console.print(f"[blue]📄 Showing logs for {target.display}[/blue]")
        returncode = docker.stream_logs(container, follow=follow, tail=lines, since=since)
    except KeyboardInterrupt:
        returncode = 0
    except OHLocalError as e:
        _fail(e)
    if returncode != 0:
        sys.exit(returncode)


@cli.command()
@click.argument("project", required=False, shell_complete=_complete_projects)
def save(project: str | None) -> None:
    """Back up session state for PROJECT (default: current directory)."""
    _, target = _target(project, must_exist=False)
    console.print(f"[blue]💾 Saving session for {target.display}...[/blue]")
    try:
        destination = save_session(target)
    except OHLocalError as e:
        _fail(e)
    console.print(f"[green]✅ Saved session to {destination}[/green]")


@cli.group()
def config() -> None:
    """Show or edit the layered agent configuration."""


def _project_dir(target: ProjectTarget) -> Path | None:
    return None if target.is_all_projects else target.directory


@config.command(name="show")
@click.argument("project", required=False, shell_complete=_complete_projects)
def config_show(project: str | None) -> None:
    """Show the merged configuration for PROJECT (secrets masked)."""
    _, target = _target(project, must_exist=False)
    resolved, warnings = resolve_config(_project_dir(target))
    print_warnings(warnings)

    if not resolved:
        console.print("[dim]No configuration values set[/dim]")
    else:
        table = Table(title=f"OpenHands configuration: {target.display}")
        table.add_column("Variable", style="cyan")
        table.add_column("Value")
        table.add_column("Source", style="dim")
        for name, value, source in resolved.display_items():
            table.add_row(name, value, source)
        console.print(table)

    for path in resolved.files:
        console.print(f"[dim]Loaded: {path}[/dim]")


@config.command(name="path")
@click.argument("project", required=False, shell_complete=_complete_projects)
def config_path(project: str | None) -> None:
    """Show where configuration files are looked up."""
    _, target = _target(project, must_exist=False)
    for scope in ConfigScope:
        path = config_file_path(scope, project_dir=_project_dir(target))
        if path is None:
            console.print(f"{scope.value:<8} [dim](not used for '{ALL_PROJECTS}')[/dim]")
            continue
        mark = "[green]✓[/green]" if path.is_file() else "[dim]-[/dim]"
        console.print(f"{scope.value:<8} {mark} {path}")


@config.command(name="edit")
@click.argument("project", required=False, shell_complete=_complete_projects)
@click.option(
    "--system", "scope", flag_value=ConfigScope.SYSTEM.value, help="Edit the system file"
)
@click.option(
    "--user", "scope", flag_value=ConfigScope.USER.value, default=True, help="Edit the user file"
)
@click.option(
    "--project-file",
    "scope",
    flag_value=ConfigScope.PROJECT.value,
    help="Edit the project file",
)
def config_edit(project: str | None, scope: str) -> None:
    """Open a configuration file in $EDITOR (created if missing)."""
    _, target = _target(project, must_exist=False)
    path = config_file_path(ConfigScope(scope), project_dir=_project_dir(target))
    if path is None:
        print_error(f"The '{ALL_PROJECTS}' target has no project configuration file")
        sys.exit(1)

    try:
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
            os.chmod(path, 0o600)
    except OSError as e:
        print_error(f"Cannot create {path}: {e}")
        sys.exit(1)

    click.edit(filename=str(path))

    # Report problems right away instead of at the next launch
    warnings: list[str] = []
    try:
        _, warnings = parse_config_text(path.read_text(encoding="utf-8"), origin=str(path))
    except (OSError, ValueError, RuntimeError) as e:
        warnings.append(f"{path}: {e}")
    perm = permission_warning(path)
    if perm:
        warnings.append(perm)
    print_warnings(warnings)
    if not warnings:
        console.print(f"[green]✅ Saved {path}[/green]")


@cli.command(name="projects")
def projects_command() -> None:
    """List projects (git repositories) under the projects root."""
    settings = _settings()
    names = list_projects(settings.projects_dir)
    if not names:
        console.print(f"[dim]No projects found in {settings.projects_dir}[/dim]")
        return
    for name in names[:MAX_PROJECT_HINTS]:
        console.print(f"  {name}")
    if len(names) > MAX_PROJECT_HINTS:
        console.print(f"[dim]  ... and {len(names) - MAX_PROJECT_HINTS} more[/dim]")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
