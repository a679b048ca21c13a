"""Container identity and port assignment for projects.

A project path such as ``client-work/app`` becomes the container-name
fragment ``client-work__app``; the app container is then
``openhands-app-client-work__app``. The port is a checksum of the fragment,
so the same project always gets the same port without any stored state.

Nothing here talks to Docker: every function is pure.

Escaping policy:
    ``/`` is encoded as ``__``. Paths that already contain ``__`` would
    decode differently, so they are rejected up front instead of silently
    colliding with another project. The same goes for characters Docker
    does not accept in container names.
"""

from __future__ import annotations

import posixpath
import re

from .constants import (
    ALL_PROJECTS,
    ALL_PROJECTS_FRAGMENT,
    APP_CONTAINER_PREFIX,
    NAME_ESCAPE,
    NAME_SEPARATOR,
    PORT_BASE,
    PORT_RANGE,
    RUNTIME_CONTAINER_PREFIX,
    STATE_DIR_PREFIX,
)
from .errors import ValidationError

# Docker container names: [a-zA-Z0-9][a-zA-Z0-9_.-]*; the prefix supplies the first char
_VALID_PATH = re.compile(r"^[A-Za-z0-9_.\-/]+$")
_CONVERSATION_ID = re.compile(r"conversation_id=([A-Za-z0-9_-]+)")


def _build_crc_table() -> tuple[int, ...]:
    """CRC-32 table for polynomial 0x04C11DB7 (MSB-first, as POSIX cksum)."""
    table = []
    for i in range(256):
        crc = i << 24
        for _ in range(8):
            if crc & 0x80000000:
                crc = ((crc << 1) ^ 0x04C11DB7) & 0xFFFFFFFF
            else:
                crc = (crc << 1) & 0xFFFFFFFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_crc_table()


def cksum(data: bytes) -> int:
    """POSIX ``cksum`` checksum of a byte string.

    Stable across processes and platforms, unlike ``hash()``.

    Examples:
        >>> cksum(b"")
        4294967295
        >>> cksum(b"123456789")
        930766865
    """
    crc = 0
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[(crc >> 24) ^ byte]

    # cksum folds the length in, least significant byte first
    length = len(data)
    while length:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[(crc >> 24) ^ (length & 0xFF)]
        length >>= 8

    return ~crc & 0xFFFFFFFF


def normalize_project_path(path: str) -> str:
    """Normalize a project path to one spelling per directory.

    Backslashes become ``/``; duplicate and trailing slashes and ``.``/``..``
    segments are collapsed, so ``./client-work/app`` and ``client-work/app/``
    name the same project.

    Raises:
        ValidationError: If the path climbs above the projects root.
    """
    normalized = path.strip().replace("\\", NAME_SEPARATOR)
    if not normalized:
        return normalized
    normalized = posixpath.normpath(normalized)
    if normalized == ".." or normalized.startswith("../"):
        raise ValidationError(f"Project path must stay inside the projects root: {path}")
    return normalized


def derive_container_name(path: str) -> str:
    """Derive the container-name fragment for a project path.

    Args:
        path: Project path relative to the projects root, ``.`` for the
            root itself, or the basename of an external directory.

    Returns:
        Fragment safe to embed in a Docker container name.

    Raises:
        ValidationError: If the path is empty, contains the escape sequence,
            uses the reserved fragment, or has characters Docker rejects.

    Examples:
        >>> derive_container_name("client-work/app")
        'client-work__app'
        >>> derive_container_name(".")
        'projects-root'
    """
    if not path or not path.strip():
        raise ValidationError("Project path cannot be empty")

    normalized = normalize_project_path(path)
    if normalized == ALL_PROJECTS:
        return ALL_PROJECTS_FRAGMENT
    if normalized.startswith(NAME_SEPARATOR):
        raise ValidationError(f"Project path must be relative: {path}")
    if NAME_ESCAPE in normalized:
        raise ValidationError(
            f"Project path cannot contain '{NAME_ESCAPE}' (ambiguous container name): {path}"
        )
    if normalized == ALL_PROJECTS_FRAGMENT:
        raise ValidationError(f"'{ALL_PROJECTS_FRAGMENT}' is a reserved project name")
    if not _VALID_PATH.match(normalized):
        raise ValidationError(
            f"Project path contains characters not allowed in container names: {path}"
        )

    fragment = normalized.replace(NAME_SEPARATOR, NAME_ESCAPE)
    # "a_/b" escapes to "a___b", which decodes as "a/_b"
    if display_name(fragment) != normalized:
        raise ValidationError(
            f"Project path segments cannot end with '_' (ambiguous container name): {path}"
        )
    return fragment


def display_name(fragment: str) -> str:
    """Recover the project path from a container-name fragment.

    Examples:
        >>> display_name("client-work__app")
        'client-work/app'
        >>> display_name("projects-root")
        '.'
    """
    if not fragment:
        raise ValidationError("Container name fragment cannot be empty")
    if fragment == ALL_PROJECTS_FRAGMENT:
        return ALL_PROJECTS
    return fragment.replace(NAME_ESCAPE, NAME_SEPARATOR)


def derive_port(name: str, base: int = PORT_BASE, span: int = PORT_RANGE) -> int:
    """Map a container-name fragment to a port in ``[base, base + span)``.

    The checksum input carries a trailing newline so assignments match the
    ``echo name | cksum`` ports handed out by the shell functions.

    Distinct names may share a port. Nothing is reserved: a clash only
    shows up when Docker fails to bind.
    """
    if span <= 0:
        raise ValidationError(f"Port range must be positive, got {span}")
    return base + cksum(f"{name}\n".encode()) % span


def app_container_name(fragment: str) -> str:
    """Name of the OpenHands app container for a fragment."""
    return f"{APP_CONTAINER_PREFIX}{fragment}"


def fragment_from_container(container_name: str) -> str | None:
    """Extract the fragment from an app container name, or None if not an app container."""
    if not container_name.startswith(APP_CONTAINER_PREFIX):
        return None
    fragment = container_name[len(APP_CONTAINER_PREFIX) :]
    return fragment or None


def runtime_container_name(conversation_id: str) -> str:
    """Name of the sandbox runtime container OpenHands starts for a conversation."""
    return f"{RUNTIME_CONTAINER_PREFIX}{conversation_id}"


def state_dir_name(fragment: str) -> str:
    """Per-project state directory name (under the home directory)."""
    return f"{STATE_DIR_PREFIX}{fragment}"


def conversation_ids(log_text: str) -> list[str]:
    """Find the conversation ids an app container has logged.

    Each conversation runs in its own runtime container, so these ids are
    how runtime containers are traced back to the project that owns them.

    Returns:
        Distinct ids, in order of first appearance.
    """
    seen: dict[str, None] = {}
    for match in _CONVERSATION_ID.finditer(log_text):
        seen.setdefault(match.group(1), None)
    return list(seen)
