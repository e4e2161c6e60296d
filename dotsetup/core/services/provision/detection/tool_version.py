"""
L3 Detection — Tool version checking.

Read-only probes: runs ``--version`` and parses the banner.
"""

from __future__ import annotations

import logging
import subprocess

from dotsetup.core.services.provision.detection.host_probe import command_exists
from dotsetup.core.services.provision.domain.version import extract_version, version_at_least

logger = logging.getLogger(__name__)


def get_tool_version(cmd: str, *, timeout: int = 10) -> str | None:
    """Installed version of ``cmd`` (a name on PATH or an executable path).

    Reads the first line of ``cmd --version`` (stdout and stderr; some
    builds print the banner to stderr).

    Returns:
        ``"0.11.2"``-style string, or None if missing or unparsable.
    """
    exe = command_exists(cmd)
    if not exe:
        return None

    try:
        r = subprocess.run(
            [exe, "--version"],
            capture_output=True, text=True, timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("%s --version failed: %s", cmd, e)
        return None

    output = (r.stdout or "") + (r.stderr or "")
    first_line = output.strip().splitlines()[0] if output.strip() else ""
    return extract_version(first_line)


def meets_minimum(cmd: str, minimum: str) -> bool:
    """True if ``cmd`` is installed and at least ``minimum``."""
    return version_at_least(get_tool_version(cmd), minimum)
