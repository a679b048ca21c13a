"""Tool settings for ohlocal.

These are the knobs of the launcher itself (which OpenHands version, where
projects live, where host logs go). They come from ``OPENHANDS_*``
environment variables and are read once into an immutable value.

Agent configuration (LLM model, API keys, sandbox options) is a separate
concern, handled by agent_config.py.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .constants import (
    APP_IMAGE,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_RETENTION_DAYS,
    DEFAULT_OPENHANDS_VERSION,
    DEFAULT_PROJECTS_DIR,
    RUNTIME_IMAGE,
    RUNTIME_IMAGE_SUFFIX,
)
from .errors import ConfigError

ENV_VERSION = "OPENHANDS_DEFAULT_VERSION"
ENV_RUNTIME_VERSION = "OPENHANDS_RUNTIME_VERSION"
ENV_PROJECTS_DIR = "OPENHANDS_PROJECTS_DIR"
ENV_LOG_DIR = "OPENHANDS_LOG_DIR"
ENV_LOG_RETENTION_DAYS = "OPENHANDS_LOG_RETENTION_DAYS"


@dataclass(frozen=True)
class Settings:
    """Launcher settings.

    Immutable; use ``with_version`` to launch a one-off version.
    """

    version: str = DEFAULT_OPENHANDS_VERSION
    runtime_version: str | None = None  # None follows ``version``
    projects_dir: Path = Path(DEFAULT_PROJECTS_DIR).expanduser()
    log_dir: Path = Path(DEFAULT_LOG_DIR).expanduser()
    log_retention_days: int = DEFAULT_LOG_RETENTION_DAYS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Read settings from ``OPENHANDS_*`` variables.

        Raises:
            ConfigError: If the log retention is not a non-negative integer.
        """
        env = os.environ if environ is None else environ

        retention_raw = env.get(ENV_LOG_RETENTION_DAYS, "").strip()
        retention = DEFAULT_LOG_RETENTION_DAYS
        if retention_raw:
            try:
                retention = int(retention_raw)
            except ValueError as e:
                raise ConfigError(
                    f"{ENV_LOG_RETENTION_DAYS} must be a whole number of days, "
                    f"got '{retention_raw}'"
                ) from e
            if retention < 0:
                raise ConfigError(f"{ENV_LOG_RETENTION_DAYS} cannot be negative")

        return cls(
            version=env.get(ENV_VERSION) or DEFAULT_OPENHANDS_VERSION,
            runtime_version=env.get(ENV_RUNTIME_VERSION) or None,
            projects_dir=Path(env.get(ENV_PROJECTS_DIR) or DEFAULT_PROJECTS_DIR).expanduser(),
            log_dir=Path(env.get(ENV_LOG_DIR) or DEFAULT_LOG_DIR).expanduser(),
            log_retention_days=retention,
        )

    def with_version(self, version: str) -> Settings:
        """Copy of these settings pinned to another OpenHands version."""
        return Settings(
            version=version,
            runtime_version=self.runtime_version,
            projects_dir=self.projects_dir,
            log_dir=self.log_dir,
            log_retention_days=self.log_retention_days,
        )

    @property
    def app_image(self) -> str:
        """OpenHands app image for the configured version."""
        return f"{APP_IMAGE}:{self.version}"

    @property
    def runtime_image(self) -> str:
        """Sandbox runtime image matching the app version."""
        return f"{RUNTIME_IMAGE}:{self.runtime_version or self.version}-{RUNTIME_IMAGE_SUFFIX}"
