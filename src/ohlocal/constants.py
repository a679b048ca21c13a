"""Constants module for ohlocal.

All timeout values and shared constants are defined here (SSOT).
"""

from __future__ import annotations

# === Docker Timeouts (seconds) ===
DOCKER_COMMAND_TIMEOUT = 30  # Quick docker commands (info, ps, stop)
DOCKER_RUN_TIMEOUT = 120  # Detached run may need to pull the image
BROWSER_OPEN_DELAY = 2  # Give the app a moment before opening the UI

# === Images ===
DEFAULT_OPENHANDS_VERSION = "0.40"
APP_IMAGE = "docker.all-hands.dev/all-hands-ai/openhands"
RUNTIME_IMAGE = "docker.all-hands.dev/all-hands-ai/runtime"
RUNTIME_IMAGE_SUFFIX = "nikolaik"

# === Container Naming ===
CONTAINER_PREFIX = "openhands-"
APP_CONTAINER_PREFIX = "openhands-app-"
RUNTIME_CONTAINER_PREFIX = "openhands-runtime-"
NAME_SEPARATOR = "/"
NAME_ESCAPE = "__"
ALL_PROJECTS = "."  # Sentinel project path: the whole projects root
ALL_PROJECTS_FRAGMENT = "projects-root"

# === Ports ===
APP_CONTAINER_PORT = 3000  # Port the OpenHands UI listens on inside the container
PORT_BASE = 3000
PORT_RANGE = 1000

# === Host Paths ===
DEFAULT_PROJECTS_DIR = "~/projects"
DEFAULT_LOG_DIR = "~/.openhands-logs"
DEFAULT_LOG_RETENTION_DAYS = 30
STATE_DIR_PREFIX = ".openhands-state-"  # Under the home directory
BACKUP_DIR_NAME = ".openhands-backups"  # Under the home directory
DOCKER_SOCKET = "/var/run/docker.sock"

# === Container Paths ===
CONTAINER_WORKSPACE = "/workspace"
CONTAINER_STATE_DIR = "/.openhands-state"

# === Agent Configuration Files ===
SYSTEM_CONFIG_PATH = "/etc/openhands/config.toml"
CONFIG_DIR_NAME = ".openhands"
CONFIG_FILE_NAME = "config.toml"

# === Display ===
MAX_PROJECT_HINTS = 50  # Projects listed when a directory is not found
SECRET_MASK = "********"
SECRET_VISIBLE_CHARS = 4  # Prefix/suffix length shown for masked secrets
SECRET_MIN_MASKABLE_LENGTH = 12
