"""
L1 Domain — Size helpers (pure).

Size formatting, KB → GB conversion and archive magic checks.
No I/O, no subprocess.
"""

from __future__ import annotations

from dotsetup.core.services.provision.data.constants import GZIP_CONTENT_TYPES, GZIP_MAGIC


def fmt_size(n: int | float) -> str:
    """Format byte count to human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"


def kb_to_gb(kb: int) -> int:
    """Whole gigabytes in ``kb`` kilobytes, rounded down.

    2047 MB (2047 * 1024 KB) → 1.
    """
    return kb // 1024 // 1024


def has_gzip_magic(head: bytes) -> bool:
    """True if the first two bytes are the gzip magic number."""
    return head[:2] == GZIP_MAGIC


def is_gzip_content_type(content_type: str | None, content_encoding: str | None = None) -> bool:
    """True if HTTP headers describe a gzip (or gzipped tar) body."""
    if content_encoding and "gzip" in content_encoding.lower():
        return True
    if not content_type:
        return False
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime in GZIP_CONTENT_TYPES
