"""
L5 Orchestration — The nvim profile.

Replaces any distro-packaged Neovim with the upstream release binary
(LazyVim needs a recent one), installs the LazyVim starter config and
deploys the custom keymaps.

Root installs under ``/usr/local``, everyone else under ``~/.local``;
the canonical command is ``<root>/bin/nvim``, a symlink into the
unpacked release.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from dotsetup.core.errors import InstallError, OptionalInstallError
from dotsetup.core.models.artifact import ArchiveFormat, RemoteArtifact
from dotsetup.core.models.host import HostCapabilities, PackageManager, UserPaths
from dotsetup.core.models.settings import Settings
from dotsetup.core.models.step import ProvisioningStep
from dotsetup.core.services.provision.data.constants import (
    LOCAL_BIN_EXPORT,
    NVIM_ASSET_TEMPLATE,
    NVIM_DIR_TEMPLATE,
)
from dotsetup.core.services.provision.detection.system_deps import is_package_installed
from dotsetup.core.services.provision.detection.tool_version import get_tool_version, meets_minimum
from dotsetup.core.services.provision.execution.backup import move_aside
from dotsetup.core.services.provision.execution.download import fetch, resolve_release_url
from dotsetup.core.services.provision.execution.git_ops import clone
from dotsetup.core.services.provision.execution.packages import remove_packages
from dotsetup.core.services.provision.execution.shell_setup import ensure_lines
from dotsetup.core.services.provision.orchestration.common import (
    deploy_step,
    directories_step,
    prerequisites_step,
)

logger = logging.getLogger(__name__)

SYSTEM_PREFIX = Path("/usr/local")


def install_prefix(paths: UserPaths, caps: HostCapabilities) -> Path:
    """``/usr/local`` for root, ``~/.local`` otherwise."""
    return SYSTEM_PREFIX if caps.is_root else paths.home / ".local"


def build_nvim_steps(
    paths: UserPaths,
    settings: Settings,
    caps: HostCapabilities,
) -> list[ProvisioningStep]:
    """Ordered steps of the nvim profile."""
    prefix = install_prefix(paths, caps)
    return [
        prerequisites_step(("git",)),
        directories_step((paths.cache_home, paths.data_home)),
        _remove_packaged_step(settings),
        _neovim_binary_step(prefix, settings),
        _local_bin_path_step(paths),
        _lazyvim_starter_step(paths, settings),
        deploy_step(
            "keymaps", "nvim/lua/config/keymaps.lua",
            paths.nvim_config / "lua" / "config" / "keymaps.lua", settings,
        ),
    ]


def _remove_packaged_step(settings: Settings) -> ProvisioningStep:
    def precondition(caps: HostCapabilities) -> bool:
        pm = caps.package_manager
        return pm != PackageManager.NONE and is_package_installed("neovim", pm.value)

    def apply(caps: HostCapabilities) -> str:
        return remove_packages(
            caps.package_manager, ["neovim"],
            timeout=settings.command_timeout, error_cls=OptionalInstallError,
        )

    return ProvisioningStep(
        name="remove-packaged-neovim",
        required=False,
        precondition=precondition,
        apply=apply,
        verify=lambda caps: not is_package_installed("neovim", caps.package_manager.value),
        description="Remove the distro neovim package",
        remedy="Remove the distro neovim package manually; it may shadow the release binary.",
    )


def _neovim_binary_step(prefix: Path, settings: Settings) -> ProvisioningStep:
    nvim = settings.neovim
    link = prefix / "bin" / "nvim"

    def apply(caps: HostCapabilities) -> str:
        arch = caps.architecture.value
        url, tag = resolve_release_url(
            nvim.repo, NVIM_ASSET_TEMPLATE.format(arch=arch), api_timeout=settings.api_timeout,
        )
        member = NVIM_DIR_TEMPLATE.format(arch=arch)
        artifact = RemoteArtifact(
            url=url,
            expected_min_bytes=nvim.min_tarball_bytes,
            archive_format=ArchiveFormat.GZIP,
            member=member,
            binary="bin/nvim",
        )
        fetch(artifact, prefix / member, link=link, timeout=settings.download_timeout)
        version = get_tool_version(str(link)) or "unknown"
        return f"nvim {version} ({tag or 'latest'}) at {link}"

    return ProvisioningStep(
        name="neovim-binary",
        precondition=lambda _caps: not meets_minimum(str(link), nvim.min_version),
        apply=apply,
        verify=lambda _caps: meets_minimum(str(link), nvim.min_version),
        description=f"Install Neovim >= {nvim.min_version} from the release tarball",
        remedy=f"Install Neovim >= {nvim.min_version} from https://github.com/{nvim.repo}/releases",
    )


def _on_path(directory: Path) -> bool:
    entries = os.environ.get("PATH", "").split(os.pathsep)
    return str(directory) in entries or str(directory).rstrip("/") in entries


def _local_bin_path_step(paths: UserPaths) -> ProvisioningStep:
    rc_files = (paths.home / ".bashrc", paths.home / ".zshrc")

    def exported(rc: Path) -> bool:
        try:
            return LOCAL_BIN_EXPORT in rc.read_text()
        except OSError:
            return False

    def precondition(caps: HostCapabilities) -> bool:
        if caps.is_root or _on_path(paths.local_bin):
            return False
        return not all(exported(rc) for rc in rc_files)

    def apply(_caps: HostCapabilities) -> str:
        written = sum(ensure_lines(rc, [LOCAL_BIN_EXPORT], error_cls=OptionalInstallError) for rc in rc_files)
        logger.warning("~/.local/bin was not on PATH; restart your shell to pick it up")
        return f"PATH export added to {written} file(s)"

    return ProvisioningStep(
        name="local-bin-path",
        required=False,
        precondition=precondition,
        apply=apply,
        verify=lambda _caps: all(exported(rc) for rc in rc_files),
        description="Put ~/.local/bin on PATH in ~/.bashrc and ~/.zshrc",
        remedy=f"Add this line to your shell rc file: {LOCAL_BIN_EXPORT}",
    )


def _starter_present(config: Path) -> bool:
    return (config / "lua" / "config" / "lazy.lua").is_file()


def _lazyvim_starter_step(paths: UserPaths, settings: Settings) -> ProvisioningStep:
    config = paths.nvim_config

    def apply(_caps: HostCapabilities) -> str:
        backup = None
        if config.is_dir() and not config.is_symlink():
            if (config / "init.lua").exists() or (config / "init.vim").exists():
                backup = move_aside(config)
            else:
                logger.info("Removing nvim config directory without init file: %s", config)
                shutil.rmtree(config)
        elif config.exists() or config.is_symlink():
            backup = move_aside(config)

        clone(
            settings.repos.lazyvim_starter, config,
            timeout=settings.command_timeout, drop_git=True, error_cls=InstallError,
        )
        if backup is not None:
            return f"installed (previous config saved to {backup})"
        return "installed"

    return ProvisioningStep(
        name="lazyvim-starter",
        precondition=lambda _caps: not _starter_present(config),
        apply=apply,
        verify=lambda _caps: (config / "init.lua").is_file(),
        description="Install the LazyVim starter configuration",
        remedy=f"Run 'git clone {settings.repos.lazyvim_starter} {config}' manually.",
    )
