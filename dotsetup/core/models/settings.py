"""
Settings — the validated contents of ``dotsetup.yml``.

Every field has a default, so an absent config file is a valid
configuration.  Distro package names are data, not settings; they
live in ``services/provision/data/packages.py``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

MIB = 1024 * 1024


class NeovimSettings(BaseModel):
    """Neovim binary release source and acceptance rules."""

    model_config = ConfigDict(extra="forbid")

    repo: str = "neovim/neovim"
    min_version: str = "0.11.2"
    min_tarball_bytes: int = Field(default=MIB, ge=0)


class RepoSettings(BaseModel):
    """Git repositories cloned during provisioning."""

    model_config = ConfigDict(extra="forbid")

    fzf: str = "https://github.com/junegunn/fzf.git"
    lazyvim_starter: str = "https://github.com/LazyVim/starter.git"


class ZoxideSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    script_url: str = "https://raw.githubusercontent.com/ajeetdsouza/zoxide/main/install.sh"
    script_sha256: str | None = None


class FontSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = "https://github.com/ryanoasis/nerd-fonts/releases/latest/download/FiraCode.zip"


class Settings(BaseModel):
    """Root settings model."""

    model_config = ConfigDict(extra="forbid")

    payload_dir: Path | None = None      # None → payloads shipped with the package
    min_disk_gb: int = Field(default=2, ge=0)
    fetch_tool: str | None = None        # None → chosen from the package manager
    command_timeout: int = Field(default=600, gt=0)
    download_timeout: int = Field(default=120, gt=0)
    api_timeout: int = Field(default=15, gt=0)
    lock_file: Path | None = None        # None → $XDG_CACHE_HOME/dotsetup/dotsetup.lock

    neovim: NeovimSettings = Field(default_factory=NeovimSettings)
    repos: RepoSettings = Field(default_factory=RepoSettings)
    zoxide: ZoxideSettings = Field(default_factory=ZoxideSettings)
    font: FontSettings = Field(default_factory=FontSettings)
