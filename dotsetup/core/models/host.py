"""
Host models — what the probe learned about the machine.

``HostCapabilities`` is computed once at startup and never mutated.
``UserPaths`` and ``Selections`` are the other inputs threaded into
the plan builders; there is no module-level state.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class PackageManager(str, Enum):
    """Supported system package managers."""

    APT = "apt"
    DNF = "dnf"
    YUM = "yum"
    PACMAN = "pacman"
    ZYPPER = "zypper"
    NONE = "none"


class Architecture(str, Enum):
    """CPU architectures with published Neovim release builds."""

    X86_64 = "x86_64"
    ARM64 = "arm64"


class HostCapabilities(BaseModel):
    """Immutable snapshot of the host."""

    model_config = ConfigDict(frozen=True)

    package_manager: PackageManager = PackageManager.NONE
    is_root: bool = False
    architecture: Architecture = Architecture.X86_64
    available_disk_gb: int | None = None  # None → df unavailable, check skipped


class UserPaths(BaseModel):
    """User directories resolved from the environment."""

    model_config = ConfigDict(frozen=True)

    home: Path
    cache_home: Path
    data_home: Path
    config_home: Path
    local_bin: Path

    @property
    def nvim_config(self) -> Path:
        return self.config_home / "nvim"

    @property
    def font_dir(self) -> Path:
        return self.data_home / "fonts"

    @property
    def fzf_dir(self) -> Path:
        return self.home / ".fzf"


class Selections(BaseModel):
    """Choices derived from the capabilities, fixed for one run."""

    model_config = ConfigDict(frozen=True)

    fetch_tool: str = "neofetch"
