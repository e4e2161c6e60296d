"""
L4 Execution — Installer script download and integrity check.

Third-party installer scripts (zoxide) are downloaded to a tempfile,
optionally checked against a SHA256, and only then executed, instead
of ``curl | sh``.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from dotsetup.core.errors import DownloadError
from dotsetup.core.services.provision.execution.download import download_file

logger = logging.getLogger(__name__)


def download_script(
    url: str,
    expected_sha256: str | None = None,
    *,
    timeout: int = 120,
) -> dict[str, Any]:
    """Download a script to a tempfile and optionally verify its SHA256.

    Returns::

        {"ok": True, "path": "/tmp/xxx.sh", "sha256": "abc...", "size_bytes": N}
        or
        {"ok": False, "error": "SHA256 mismatch ..."}

    The caller owns ``path`` and should ``cleanup_script`` it.
    """
    fd, path = tempfile.mkstemp(suffix=".sh", prefix="dotsetup_script_")
    os.close(fd)
    try:
        download_file(url, Path(path), timeout=timeout)
    except DownloadError as e:
        cleanup_script(path)
        return {"ok": False, "error": str(e)}

    content = Path(path).read_bytes()
    actual = hashlib.sha256(content).hexdigest()

    if expected_sha256:
        expected = expected_sha256.removeprefix("sha256:").lower()
        if actual != expected:
            cleanup_script(path)
            return {
                "ok": False,
                "error": (
                    f"SHA256 mismatch for {url}\n"
                    f"Expected: {expected}\n"
                    f"Got:      {actual}\n"
                    f"The script may have been tampered with."
                ),
                "expected_sha256": expected,
                "actual_sha256": actual,
            }
    else:
        logger.debug("No checksum configured for %s (sha256=%s)", url, actual)

    os.chmod(path, 0o700)
    return {"ok": True, "path": path, "sha256": actual, "size_bytes": len(content)}


def cleanup_script(path: str) -> None:
    try:
        os.unlink(path)
    except OSError:
        pass
