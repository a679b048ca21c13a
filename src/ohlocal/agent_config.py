"""Layered agent configuration for ohlocal.

OpenHands is configured through environment variables inside the app
container (LLM_MODEL, LLM_API_KEY, SANDBOX_VOLUMES, ...). This module lets
users keep those in TOML files instead:

    1. /etc/openhands/config.toml              (system, lowest priority)
    2. ~/.openhands/config.toml                (user)
    3. <project>/.openhands/config.toml        (project)
    4. environment variables                   (always win)

Only the keys in CONFIG_KEYS are recognized; anything else in a file is
ignored. Every file is optional. A broken file costs a warning, never the
whole resolution: warnings are returned to the caller, not raised.

Secrets are returned as-is (they must reach Docker intact). Use
display_value() whenever a value is shown to a human.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .constants import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    SECRET_MASK,
    SECRET_MIN_MASKABLE_LENGTH,
    SECRET_VISIBLE_CHARS,
    SYSTEM_CONFIG_PATH,
)
from .logging import get_logger

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ModuleNotFoundError:  # pragma: no cover
        tomllib = None  # type: ignore[assignment]

logger = get_logger(__name__)

ENVIRONMENT_SOURCE = "environment"


@dataclass(frozen=True)
class ConfigKey:
    """A recognized configuration key and the variable it feeds."""

    env: str
    secret: bool = False


CONFIG_KEYS: Mapping[str, ConfigKey] = MappingProxyType(
    {
        "llm.model": ConfigKey("LLM_MODEL"),
        "llm.api_key": ConfigKey("LLM_API_KEY", secret=True),
        "llm.search_api_key": ConfigKey("SEARCH_API_KEY", secret=True),
        "llm.num_retries": ConfigKey("LLM_NUM_RETRIES"),
        "llm.retry_min_wait": ConfigKey("LLM_RETRY_MIN_WAIT"),
        "llm.retry_max_wait": ConfigKey("LLM_RETRY_MAX_WAIT"),
        "llm.timeout": ConfigKey("LLM_TIMEOUT"),
        "llm.temperature": ConfigKey("LLM_TEMPERATURE"),
        "llm.top_p": ConfigKey("LLM_TOP_P"),
        "llm.max_input_tokens": ConfigKey("LLM_MAX_INPUT_TOKENS"),
        "llm.max_output_tokens": ConfigKey("LLM_MAX_OUTPUT_TOKENS"),
        "llm.disable_vision": ConfigKey("LLM_DISABLE_VISION"),
        "sandbox.runtime_container_image": ConfigKey("SANDBOX_RUNTIME_CONTAINER_IMAGE"),
        "sandbox.enable_gpu": ConfigKey("SANDBOX_ENABLE_GPU"),
        "sandbox.volumes": ConfigKey("SANDBOX_VOLUMES"),
        "sandbox.user_id": ConfigKey("SANDBOX_USER_ID"),
        "core.max_iterations": ConfigKey("CORE_MAX_ITERATIONS"),
        "core.max_budget_per_task": ConfigKey("CORE_MAX_BUDGET_PER_TASK"),
        "agent.enable_cli": ConfigKey("AGENT_ENABLE_CLI"),
        "agent.enable_browsing_delegate": ConfigKey("AGENT_ENABLE_BROWSING_DELEGATE"),
        "security.confirmation_mode": ConfigKey("SECURITY_CONFIRMATION_MODE"),
        "security.security_level": ConfigKey("SECURITY_LEVEL"),
    }
)

# Target variable -> key, for display and masking
_KEYS_BY_ENV: dict[str, str] = {entry.env: key for key, entry in CONFIG_KEYS.items()}
SECRET_ENV_NAMES = frozenset(entry.env for entry in CONFIG_KEYS.values() if entry.secret)


class ConfigScope(str, Enum):
    """Where a configuration file lives, in ascending priority."""

    SYSTEM = "system"
    USER = "user"
    PROJECT = "project"


@dataclass(frozen=True)
class ResolvedConfig:
    """Merged configuration, keyed by target environment variable.

    Attributes:
        values: Variable -> value (real values, secrets unmasked).
        sources: Variable -> where the winning value came from
            (a ConfigScope value or "environment").
        files: Configuration files that were found, lowest priority first.
    """

    values: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    sources: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    files: tuple[Path, ...] = ()

    def __len__(self) -> int:
        return len(self.values)

    def __bool__(self) -> bool:
        return bool(self.values)

    def get(self, env_name: str, default: str | None = None) -> str | None:
        return self.values.get(env_name, default)

    def as_env(self) -> dict[str, str]:
        """Plain dict copy, for handing to the container launcher."""
        return dict(self.values)

    def display_items(self) -> list[tuple[str, str, str]]:
        """(variable, masked value, source) rows, sorted by variable."""
        return [
            (name, display_value(name, value), self.sources.get(name, ""))
            for name, value in sorted(self.values.items())
        ]


def config_file_path(
    scope: ConfigScope,
    *,
    project_dir: Path | None = None,
    home: Path | None = None,
    system_path: Path | None = None,
) -> Path | None:
    """Location of the configuration file for a scope.

    Returns:
        The path (which may not exist), or None for the project scope
        when there is no project directory.
    """
    if scope is ConfigScope.SYSTEM:
        return system_path if system_path is not None else Path(SYSTEM_CONFIG_PATH)
    if scope is ConfigScope.USER:
        base = home if home is not None else Path.home()
        return base / CONFIG_DIR_NAME / CONFIG_FILE_NAME
    if project_dir is None:
        return None
    return project_dir / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _format_value(value: Any) -> str | None:
    """Render a TOML scalar the way it should appear in the environment."""
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    return None


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def parse_config_text(text: str, origin: str = "<string>") -> tuple[dict[str, str], list[str]]:
    """Parse TOML text into recognized environment settings.

    Args:
        text: TOML document.
        origin: Name used in warnings.

    Returns:
        (variable -> value, warnings).

    Raises:
        tomllib.TOMLDecodeError: If the text is not valid TOML.
        RuntimeError: If no TOML parser is installed.
    """
    if tomllib is None:
        raise RuntimeError("No TOML parser available (install 'tomli' on Python < 3.11)")

    values: dict[str, str] = {}
    warnings: list[str] = []
    for dotted, raw in _flatten(tomllib.loads(text)).items():
        entry = CONFIG_KEYS.get(dotted)
        if entry is None:
            logger.debug("Ignoring unrecognized key %s in %s", dotted, origin)
            continue
        formatted = _format_value(raw)
        if formatted is None:
            warnings.append(
                f"{origin}: '{dotted}' must be a string, number or boolean; ignored"
            )
            continue
        values[entry.env] = formatted
    return values, warnings


def permission_warning(path: Path) -> str | None:
    """Warn about a config file other users can read (it may hold API keys)."""
    if os.name == "nt":
        return None
    try:
        mode = path.stat().st_mode
    except OSError:
        return None
    if mode & (stat.S_IRGRP | stat.S_IROTH):
        return (
            f"{path} is readable by other users (mode {stat.S_IMODE(mode):o}); "
            f"restrict it with: chmod 600 {path}"
        )
    return None


def discover_config_files(
    project_dir: Path | None = None,
    *,
    home: Path | None = None,
    system_path: Path | None = None,
) -> list[tuple[ConfigScope, Path]]:
    """Existing configuration files, lowest priority first.

    Pass ``project_dir=None`` to skip the project scope (the "all projects"
    target has no project file).
    """
    found: list[tuple[ConfigScope, Path]] = []
    for scope in ConfigScope:
        path = config_file_path(
            scope, project_dir=project_dir, home=home, system_path=system_path
        )
        if path is not None and path.is_file():
            found.append((scope, path))
    return found


def resolve_config(
    project_dir: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
    system_path: Path | None = None,
) -> tuple[ResolvedConfig, list[str]]:
    """Merge system, user and project files, then the environment.

    Later files overwrite earlier ones key by key. A variable already set
    in the environment is never replaced: its value is kept unchanged.

    Args:
        project_dir: Project directory, or None to skip the project file.
        environ: Environment to read (once) for overrides; defaults to
            ``os.environ``.
        home: Home directory override.
        system_path: System file override.

    Returns:
        (ResolvedConfig, warnings). Warnings cover unreadable files, parse
        errors, loose permissions and a missing TOML parser.
    """
    env = dict(os.environ if environ is None else environ)
    files = discover_config_files(project_dir, home=home, system_path=system_path)

    values: dict[str, str] = {}
    sources: dict[str, str] = {}
    warnings: list[str] = []

    if files and tomllib is None:
        warnings.append(
            "No TOML parser available; configuration files are ignored "
            "(install 'tomli' on Python < 3.11)"
        )
        files_to_parse: list[tuple[ConfigScope, Path]] = []
    else:
        files_to_parse = files

    for _scope, path in files:
        perm = permission_warning(path)
        if perm:
            warnings.append(perm)

    for scope, path in files_to_parse:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            warnings.append(f"Cannot read {path}: {e}")
            continue
        try:
            parsed, parse_warnings = parse_config_text(text, origin=str(path))
        except tomllib.TOMLDecodeError as e:
            warnings.append(f"Skipping {path}: invalid TOML ({e})")
            continue
        warnings.extend(parse_warnings)
        logger.debug("Loaded %d value(s) from %s config %s", len(parsed), scope.value, path)
        for name, value in parsed.items():
            values[name] = value
            sources[name] = scope.value

    for name in _KEYS_BY_ENV:
        # Set-but-empty counts as unset, like a shell -z test
        if env.get(name):
            if name in values:
                logger.debug("Environment overrides %s from %s config", name, sources[name])
            values[name] = env[name]
            sources[name] = ENVIRONMENT_SOURCE

    resolved = ResolvedConfig(
        values=MappingProxyType(values),
        sources=MappingProxyType(sources),
        files=tuple(path for _, path in files),
    )
    return resolved, warnings


def mask_secret(value: str) -> str:
    """Mask a secret for display.

    Long values keep a short prefix and suffix so users can tell keys
    apart; short values are replaced entirely.

    Examples:
        >>> mask_secret("sk-abcdefghijklmnopq")
        'sk-a...nopq'
        >>> mask_secret("abc123")
        '********'
    """
    if len(value) < SECRET_MIN_MASKABLE_LENGTH:
        return SECRET_MASK
    return f"{value[:SECRET_VISIBLE_CHARS]}...{value[-SECRET_VISIBLE_CHARS:]}"


def is_secret(env_name: str) -> bool:
    return env_name in SECRET_ENV_NAMES


def display_value(env_name: str, value: str) -> str:
    """Value as it may be shown to a human: masked for secret variables."""
    return mask_secret(value) if is_secret(env_name) else value
