"""Diagnostic logging for ohlocal.

Two output channels, never mixed:
- Rich console (cli/utils.py) for everything the user is meant to read
- logging module for Docker commands, config discovery and other
  diagnostics, off unless asked for

Usage:
    from ohlocal.logging import get_logger
    logger = get_logger(__name__)
    logger.debug("Resolved %d config values", len(values))

Debug output is enabled by:
    - CLI flag: oh --debug
    - Environment: OHLOCAL_DEBUG=1 (also true/yes/on)
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER = "ohlocal"
DEBUG_ENV = "OHLOCAL_DEBUG"
_TRUTHY = ("1", "true", "yes", "on")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_handler: logging.Handler | None = None


def debug_requested(environ: dict[str, str] | None = None) -> bool:
    """Check the environment for the debug switch."""
    env = os.environ if environ is None else environ
    return env.get(DEBUG_ENV, "").strip().lower() in _TRUTHY


def _formatter(debug: bool) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if debug else LOG_FORMAT, datefmt=DATE_FORMAT)


def _ensure_handler() -> None:
    """Attach the stderr handler to the package logger (once)."""
    global _handler
    if _handler is not None:
        return

    debug = debug_requested()
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG if debug else logging.WARNING)

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(_formatter(debug))
    root.addHandler(_handler)


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the ohlocal namespace.

    Args:
        name: Module name (typically __name__).
    """
    _ensure_handler()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_debug(enabled: bool = True) -> None:
    """Switch debug output on or off at runtime (used by ``oh --debug``)."""
    _ensure_handler()
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG if enabled else logging.WARNING)
    if _handler is not None:
        _handler.setFormatter(_formatter(enabled))
