"""
L0 Data — Package manager command and package-name tables.

Distro package names are configuration data.  Keys are
``PackageManager`` values.  No logic here; the execution layer
turns these into commands.
"""

from __future__ import annotations

# Repository metadata refresh.  pacman deliberately has none: a partial
# ``-Sy`` on Arch is unsafe and a full ``-Syu`` is left to the user.
SYNC_COMMANDS: dict[str, list[str]] = {
    "apt": ["apt-get", "update"],
    "dnf": ["dnf", "makecache"],
    "yum": ["yum", "makecache"],
    "zypper": ["zypper", "--non-interactive", "refresh"],
}

INSTALL_COMMANDS: dict[str, list[str]] = {
    "apt": ["apt-get", "install", "-y"],
    "dnf": ["dnf", "install", "-y"],
    "yum": ["yum", "install", "-y"],
    "pacman": ["pacman", "-S", "--needed", "--noconfirm"],
    "zypper": ["zypper", "--non-interactive", "install"],
}

REMOVE_COMMANDS: dict[str, list[str]] = {
    "apt": ["apt-get", "purge", "-y"],
    "dnf": ["dnf", "remove", "-y"],
    "yum": ["yum", "remove", "-y"],
    "pacman": ["pacman", "-R", "--noconfirm"],
    "zypper": ["zypper", "--non-interactive", "remove"],
}

# Compiler toolchain installed alongside the core packages
BUILD_TOOLCHAIN: dict[str, list[str]] = {
    "apt": ["build-essential"],
    "dnf": ["gcc", "gcc-c++", "make"],
    "yum": ["gcc", "gcc-c++", "make"],
    "pacman": ["base-devel"],
    "zypper": ["gcc", "gcc-c++", "make"],
}

# Core packages: the fetch tool name is appended at plan time
CORE_PACKAGES: tuple[str, ...] = ("zsh", "neovim")

# Extra repository for lolcat on RHEL-family hosts
EPEL_PACKAGE = "epel-release"
EPEL_MANAGERS: frozenset[str] = frozenset({"dnf", "yum"})

RUBY_PACKAGES: dict[str, list[str]] = {
    "apt": ["ruby", "ruby-dev"],
    "dnf": ["ruby", "ruby-devel"],
    "yum": ["ruby", "ruby-devel"],
    "pacman": ["ruby"],
    "zypper": ["ruby", "ruby-devel"],
}

# Nerd Font packages, where the distro ships one
FONT_PACKAGES: dict[str, list[str]] = {
    "apt": ["fonts-firacode"],
    "dnf": ["fira-code-fonts"],
}

# System-info tool per package manager (anything missing → neofetch)
FETCH_TOOLS: dict[str, str] = {
    "pacman": "fastfetch",
}
DEFAULT_FETCH_TOOL = "neofetch"
