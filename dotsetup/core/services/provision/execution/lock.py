"""
L4 Execution — Run lock.

One provisioning run per user at a time.  Non-blocking ``flock`` on
a file under the cache directory; the kernel drops the lock when the
process dies, so a crashed run never leaves it stuck.
"""

from __future__ import annotations

import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from dotsetup.core.errors import LockError

logger = logging.getLogger(__name__)


@contextmanager
def run_lock(path: Path) -> Iterator[Path]:
    """Hold an exclusive lock on ``path`` for the duration of the block.

    Raises:
        LockError: Another run holds the lock, or the file cannot be opened.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as e:
        raise LockError(f"Cannot open lock file {path}: {e}") from e

    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            raise LockError(
                "Another dotsetup run is in progress",
                remedy=f"Wait for it to finish (lock: {path}).",
            ) from e
        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        logger.debug("Acquired run lock %s", path)
        try:
            yield path
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)
