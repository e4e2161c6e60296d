"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Package-manager detection order.  The first binary found on PATH wins,
# even when several are installed (e.g. apt plus a hand-installed pacman).
PACKAGE_MANAGER_PRIORITY: tuple[str, ...] = ("apt", "dnf", "yum", "pacman", "zypper")

# Raw ``uname -m`` → release-asset architecture.  Anything else falls
# back to x86_64 with a warning.
ARCH_MAP: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "arm64",
    "arm64": "arm64",
}

GZIP_MAGIC = b"\x1f\x8b"

# Content types that still count as gzip when the magic bytes are off
GZIP_CONTENT_TYPES: tuple[str, ...] = (
    "application/gzip",
    "application/x-gzip",
    "application/x-tar",
    "application/x-gtar",
    "application/x-compressed-tar",
)

# Token in the shipped .zshrc replaced by the selected system-info tool
FETCH_TOOL_TOKEN = "fastfetch"

# Neovim release asset naming: nvim-linux-<arch>.tar.gz → nvim-linux-<arch>/bin/nvim
NVIM_ASSET_TEMPLATE = "nvim-linux-{arch}.tar.gz"
NVIM_DIR_TEMPLATE = "nvim-linux-{arch}"

USER_AGENT = "dotsetup/0.1"

LOCAL_BIN_EXPORT = 'export PATH="$HOME/.local/bin:$PATH"'
