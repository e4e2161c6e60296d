"""
L4 Execution — Config directory backup.

Moves an existing configuration aside (``PATH.bak.YYYYMMDD_HHMMSS``)
before a fresh one is installed in its place.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from dotsetup.core.errors import InstallError

logger = logging.getLogger(__name__)


def backup_path(path: Path, *, now: float | None = None) -> Path:
    """Timestamped sibling name for ``path``."""
    ts = time.strftime("%Y%m%d_%H%M%S", time.localtime(now))
    return path.with_name(f"{path.name}.bak.{ts}")


def move_aside(path: Path, *, now: float | None = None) -> Path:
    """Rename ``path`` to its timestamped backup name.  Returns the new path.

    Two backups within the same second get a numeric suffix.
    """
    path = Path(path)
    dest = backup_path(path, now=now)
    n = 1
    while dest.exists():
        dest = dest.with_name(f"{backup_path(path, now=now).name}.{n}")
        n += 1

    try:
        os.rename(path, dest)
    except OSError as e:
        raise InstallError(
            f"Failed to back up {path}: {e}",
            remedy=f"Move {path} out of the way manually and retry.",
        ) from e

    logger.info("Backed up %s → %s", path, dest)
    return dest
