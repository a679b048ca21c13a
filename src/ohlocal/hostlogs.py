"""Host-side log files for ohlocal.

Each launch gets a timestamped log file path under the log directory;
``oh logs --save`` writes container log snapshots there. Files older than
the retention period are pruned at launch.
"""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path

from .errors import PathError
from .logging import get_logger

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
_SECONDS_PER_DAY = 86400


def ensure_log_dir(log_dir: Path) -> Path:
    """Create the log directory if needed.

    Raises:
        PathError: If the directory cannot be created.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PathError(f"Cannot create log directory {log_dir}: {e}") from e
    return log_dir


def log_file_path(log_dir: Path, fragment: str, now: datetime | None = None) -> Path:
    """Timestamped log file for a project, e.g. ``client-work__app_20250101-120000.log``."""
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return log_dir / f"{fragment}_{stamp}.log"


def clean_old_logs(log_dir: Path, retention_days: int, now: float | None = None) -> int:
    """Delete ``*.log`` files older than ``retention_days``.

    Returns:
        Number of files deleted.
    """
    if not log_dir.is_dir():
        return 0

    cutoff = (now if now is not None else time.time()) - retention_days * _SECONDS_PER_DAY
    removed = 0
    for path in log_dir.glob("*.log"):
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
        except OSError as e:
            logger.debug("Could not prune %s: %s", path, e)
    if removed:
        logger.debug("Pruned %d log file(s) from %s", removed, log_dir)
    return removed
