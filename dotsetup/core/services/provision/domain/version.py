"""
L1 Domain — Version parsing and comparison (pure).

No I/O, no subprocess.
"""

from __future__ import annotations

import re

_VERSION_RE = re.compile(r"v?(\d+)\.(\d+)\.(\d+)")


def extract_version(text: str) -> str | None:
    """Pull the first ``MAJOR.MINOR.PATCH`` out of a version banner.

    ``"NVIM v0.11.2"`` → ``"0.11.2"``.  Returns None when there is none.
    """
    m = _VERSION_RE.search(text or "")
    if not m:
        return None
    return ".".join(m.groups())


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse ``"v0.11.2"`` / ``"0.11.2"`` into an int triple.

    Raises:
        ValueError: If the string has no ``X.Y.Z`` component.
    """
    m = _VERSION_RE.search(version or "")
    if not m:
        raise ValueError(f"Not a version string: {version!r}")
    major, minor, patch = (int(x) for x in m.groups())
    return major, minor, patch


def version_at_least(installed: str | None, minimum: str) -> bool:
    """True if ``installed`` >= ``minimum``.  Unparsable → False."""
    if not installed:
        return False
    try:
        return parse_version(installed) >= parse_version(minimum)
    except ValueError:
        return False
