"""
L5 Orchestration — The zsh profile.

Installs zsh with its companions (system-info tool, lolcat, fzf,
zoxide, a Nerd Font), deploys ``.zshrc`` / ``.p10k.zsh`` and makes
zsh the login shell.

The plan is a static list of steps; per-host decisions are made
inside the step callables from the ``HostCapabilities`` snapshot.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path

from dotsetup.core.errors import ExtractError, OptionalInstallError, ProvisionError
from dotsetup.core.models.host import HostCapabilities, PackageManager, Selections, UserPaths
from dotsetup.core.models.settings import Settings
from dotsetup.core.models.step import Alternative, ProvisioningStep
from dotsetup.core.services.provision.data.constants import FETCH_TOOL_TOKEN
from dotsetup.core.services.provision.data.packages import (
    BUILD_TOOLCHAIN,
    CORE_PACKAGES,
    EPEL_MANAGERS,
    EPEL_PACKAGE,
    FONT_PACKAGES,
    RUBY_PACKAGES,
)
from dotsetup.core.services.provision.detection.host_probe import command_exists
from dotsetup.core.services.provision.detection.system_deps import (
    is_package_installed,
    missing_packages,
)
from dotsetup.core.services.provision.execution.download import download_file
from dotsetup.core.services.provision.execution.git_ops import clone_or_pull
from dotsetup.core.services.provision.execution.packages import install_packages, sync_repositories
from dotsetup.core.services.provision.execution.script_verify import cleanup_script, download_script
from dotsetup.core.services.provision.execution.shell_setup import change_login_shell, register_shell
from dotsetup.core.services.provision.execution.subprocess_runner import check_result, run_command
from dotsetup.core.services.provision.orchestration.common import (
    deploy_step,
    directories_step,
    prerequisites_step,
)

logger = logging.getLogger(__name__)


def build_zsh_steps(
    paths: UserPaths,
    settings: Settings,
    selections: Selections,
) -> list[ProvisioningStep]:
    """Ordered steps of the zsh profile."""
    return [
        prerequisites_step(("git", "curl")),
        directories_step((paths.cache_home, paths.data_home, paths.config_home)),
        _disk_space_step(settings.min_disk_gb),
        _core_packages_step(selections, settings),
        _colorizer_step(settings),
        _fzf_step(paths, settings),
        _zoxide_step(paths, settings),
        _nerd_font_step(paths, settings),
        deploy_step(
            "zshrc", "zshrc", paths.home / ".zshrc", settings,
            {FETCH_TOOL_TOKEN: selections.fetch_tool},
        ),
        deploy_step("p10k", "p10k.zsh", paths.home / ".p10k.zsh", settings),
        _login_shell_step(settings),
    ]


# ── Disk space + core packages ──────────────────────────────────


def _disk_space_step(min_gb: int) -> ProvisioningStep:
    """pacman hosts only: refuse to install on a nearly full root."""

    def apply(caps: HostCapabilities) -> str:
        available = caps.available_disk_gb
        if available is None:
            logger.warning("Could not determine available disk space, skipping check")
            return "unknown free space, check skipped"
        if available < min_gb:
            raise ProvisionError(
                f"Insufficient disk space: {available}GB available, {min_gb}GB required",
                remedy="Free up disk space (e.g. 'sudo pacman -Scc') and re-run.",
            )
        return f"{available}GB available"

    return ProvisioningStep(
        name="disk-space",
        precondition=lambda caps: caps.package_manager == PackageManager.PACMAN,
        apply=apply,
        description=f"Require {min_gb}GB free before installing on Arch",
    )


def _core_package_list(pm: PackageManager, fetch_tool: str) -> list[str]:
    return [CORE_PACKAGES[0], fetch_tool, *CORE_PACKAGES[1:], *BUILD_TOOLCHAIN.get(pm.value, [])]


def _core_packages_step(selections: Selections, settings: Settings) -> ProvisioningStep:
    timeout = settings.command_timeout

    def precondition(caps: HostCapabilities) -> bool:
        if caps.package_manager == PackageManager.NONE:
            return True
        return bool(missing_packages(_core_package_list(caps.package_manager, selections.fetch_tool),
                                     caps.package_manager.value))

    def apply(caps: HostCapabilities) -> str:
        pm = caps.package_manager
        packages = _core_package_list(pm, selections.fetch_tool)
        if pm == PackageManager.PACMAN:
            logger.warning("No repository sync on Arch; run 'sudo pacman -Syu' yourself if the system is stale")
        sync_repositories(pm, timeout=timeout)
        return install_packages(pm, packages, timeout=timeout)

    return ProvisioningStep(
        name="core-packages",
        precondition=precondition,
        apply=apply,
        verify=lambda _caps: command_exists("zsh") is not None,
        description="Install zsh, the system-info tool, neovim and a compiler toolchain",
        remedy=f"Install zsh, {selections.fetch_tool} and neovim manually.",
    )


# ── lolcat ──────────────────────────────────────────────────────


def _gem_bin_dir(timeout: int = 60) -> Path | None:
    """``$(gem env gemdir)/bin``, where gem-installed executables land."""
    if not command_exists("gem"):
        return None
    r = run_command(["gem", "env", "gemdir"], timeout=timeout)
    gemdir = (r.get("stdout") or "").strip()
    if not r["ok"] or not gemdir:
        return None
    return Path(gemdir) / "bin"


def _lolcat_found(_caps: HostCapabilities | None = None) -> bool:
    gem_bin = _gem_bin_dir()
    return command_exists("lolcat", [gem_bin] if gem_bin else []) is not None


def _colorizer_step(settings: Settings) -> ProvisioningStep:
    timeout = settings.command_timeout

    def via_package_manager(caps: HostCapabilities) -> str:
        pm = caps.package_manager
        if pm.value in EPEL_MANAGERS and not is_package_installed(EPEL_PACKAGE, pm.value):
            try:
                install_packages(pm, [EPEL_PACKAGE], timeout=timeout, error_cls=OptionalInstallError)
            except OptionalInstallError as e:
                logger.warning("EPEL not available: %s", e)
        return install_packages(pm, ["lolcat"], timeout=timeout, error_cls=OptionalInstallError)

    def via_gem(_caps: HostCapabilities) -> str:
        if not command_exists("gem"):
            raise OptionalInstallError("gem not available")
        check_result(
            run_command(["gem", "install", "lolcat"], timeout=timeout),
            OptionalInstallError,
            "gem install lolcat failed",
        )
        return "installed with gem"

    def via_ruby(caps: HostCapabilities) -> str:
        ruby = RUBY_PACKAGES.get(caps.package_manager.value)
        if not ruby:
            raise OptionalInstallError("no Ruby package for this package manager")
        install_packages(caps.package_manager, ruby, timeout=timeout, error_cls=OptionalInstallError)
        via_gem(caps)
        return "installed Ruby, then lolcat with gem"

    return ProvisioningStep(
        name="colorizer",
        required=False,
        precondition=lambda caps: not _lolcat_found(caps),
        alternatives=(
            Alternative("package-manager", via_package_manager, _lolcat_found),
            Alternative("gem", via_gem, _lolcat_found),
            Alternative("ruby-then-gem", via_ruby, _lolcat_found),
        ),
        description="Install lolcat",
        remedy="Install it later with 'gem install lolcat' (see https://github.com/busyloop/lolcat).",
    )


# ── fzf + zoxide ────────────────────────────────────────────────


def _fzf_step(paths: UserPaths, settings: Settings) -> ProvisioningStep:
    fzf_dir = paths.fzf_dir
    timeout = settings.command_timeout

    def apply(_caps: HostCapabilities) -> str:
        detail = clone_or_pull(settings.repos.fzf, fzf_dir, timeout=timeout)
        check_result(
            run_command(
                [str(fzf_dir / "install"), "--key-bindings", "--completion", "--no-update-rc"],
                timeout=timeout,
            ),
            ProvisionError,
            "fzf installer failed",
            remedy=f"Run '{fzf_dir / 'install'} --key-bindings --completion --no-update-rc' manually.",
        )
        return detail

    return ProvisioningStep(
        name="fzf",
        apply=apply,
        verify=lambda _caps: (fzf_dir / "bin" / "fzf").is_file(),
        description="Clone or update fzf and run its installer",
        remedy=f"Clone {settings.repos.fzf} into {fzf_dir} and run its install script.",
    )


def _zoxide_step(paths: UserPaths, settings: Settings) -> ProvisioningStep:
    def found(_caps: HostCapabilities) -> bool:
        return command_exists("zoxide", [paths.local_bin]) is not None

    def apply(_caps: HostCapabilities) -> str:
        script = download_script(
            settings.zoxide.script_url,
            settings.zoxide.script_sha256,
            timeout=settings.download_timeout,
        )
        if not script["ok"]:
            raise OptionalInstallError(script["error"])
        try:
            check_result(
                run_command(["bash", script["path"]], timeout=settings.command_timeout),
                OptionalInstallError,
                "zoxide installer failed",
            )
        finally:
            cleanup_script(script["path"])
        return "installed"

    return ProvisioningStep(
        name="zoxide",
        required=False,
        precondition=lambda caps: not found(caps),
        apply=apply,
        verify=found,
        description="Install zoxide with its installer script",
        remedy='zoxide may be in ~/.local/bin; add it to PATH: export PATH="$HOME/.local/bin:$PATH"',
    )


# ── Nerd Font ───────────────────────────────────────────────────


def _font_present(font_dir: Path) -> bool:
    if any(font_dir.glob("FiraCode*.ttf")):
        return True
    if not command_exists("fc-list"):
        return False
    r = run_command(["fc-list"], timeout=30)
    out = (r.get("stdout") or "").lower()
    return r["ok"] and ("firacode" in out or "fira code" in out)


def _nerd_font_step(paths: UserPaths, settings: Settings) -> ProvisioningStep:
    font_dir = paths.font_dir
    timeout = settings.command_timeout

    def via_package_manager(caps: HostCapabilities) -> str:
        pkgs = FONT_PACKAGES.get(caps.package_manager.value)
        if not pkgs:
            raise OptionalInstallError("no font package for this package manager")
        return install_packages(caps.package_manager, pkgs, timeout=timeout, error_cls=OptionalInstallError)

    def via_release_zip(_caps: HostCapabilities) -> str:
        font_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="dotsetup-font-") as tmp:
            archive = Path(tmp) / "font.zip"
            download_file(settings.font.url, archive, timeout=settings.download_timeout)
            count = _install_fonts(archive, font_dir)
        r = run_command(["fc-cache", "-f", str(font_dir)], timeout=timeout)
        if not r["ok"]:
            logger.warning("fc-cache failed: %s", r.get("error"))
        return f"installed {count} font file(s) into {font_dir}"

    return ProvisioningStep(
        name="nerd-font",
        required=False,
        precondition=lambda _caps: not _font_present(font_dir),
        alternatives=(
            Alternative("package-manager", via_package_manager),
            Alternative("release-zip", via_release_zip, lambda _caps: any(font_dir.glob("*.ttf"))),
        ),
        description="Install the FiraCode Nerd Font",
        remedy=f"Download {settings.font.url} and unpack the .ttf files into {font_dir}.",
    )


def _install_fonts(archive: Path, font_dir: Path) -> int:
    """Copy every .ttf in ``archive`` into ``font_dir``.  Returns the count."""
    count = 0
    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                name = Path(info.filename).name
                if info.is_dir() or not name.lower().endswith(".ttf"):
                    continue
                with zf.open(info) as src, open(font_dir / name, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                count += 1
    except (zipfile.BadZipFile, OSError) as e:
        raise ExtractError(f"Failed to unpack {archive.name}: {e}") from e
    if not count:
        raise ExtractError(f"No .ttf files in {archive.name}")
    return count


# ── Login shell ─────────────────────────────────────────────────


def _login_shell_step(settings: Settings) -> ProvisioningStep:
    def precondition(_caps: HostCapabilities) -> bool:
        return os.path.basename(os.environ.get("SHELL", "")) != "zsh"

    def apply(_caps: HostCapabilities) -> str:
        zsh = command_exists("zsh")
        if not zsh:
            raise ProvisionError("zsh not found in PATH", remedy="Install zsh, then run 'chsh -s $(which zsh)'.")
        register_shell(zsh)
        return change_login_shell(zsh, timeout=settings.command_timeout)

    return ProvisioningStep(
        name="login-shell",
        precondition=precondition,
        apply=apply,
        description="Make zsh the login shell",
        remedy="Run 'chsh -s $(which zsh)' and log in again.",
    )
