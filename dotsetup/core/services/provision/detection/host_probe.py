"""
L3 Detection — Host capability probe.

Read-only probes for the package manager, effective user, CPU
architecture and free disk space.  ``probe()`` runs once per
provisioning run; its ``HostCapabilities`` snapshot is consulted by
every step after it.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Mapping

from dotsetup.core.errors import ProbeError
from dotsetup.core.models.host import (
    Architecture,
    HostCapabilities,
    PackageManager,
    UserPaths,
)
from dotsetup.core.services.provision.data.constants import ARCH_MAP, PACKAGE_MANAGER_PRIORITY
from dotsetup.core.services.provision.domain.sizes import kb_to_gb

logger = logging.getLogger(__name__)


def probe(*, root: str = "/", path: str | None = None) -> HostCapabilities:
    """Take the capability snapshot.

    Args:
        root: Filesystem whose free space is measured.
        path: PATH string to search for binaries (default: ``$PATH``).

    Returns:
        Frozen ``HostCapabilities``.

    Raises:
        ProbeError: If ``root`` cannot be queried at all.  Every other
            gap (no ``df``, odd ``uname -m``) degrades with a warning.
    """
    try:
        os.stat(root)
    except OSError as e:
        raise ProbeError(
            f"Cannot query filesystem at {root}: {e}",
            remedy="Check that the filesystem is mounted and readable.",
        ) from e

    caps = HostCapabilities(
        package_manager=detect_package_manager(path=path),
        is_root=os.geteuid() == 0,
        architecture=detect_architecture(),
        available_disk_gb=available_disk_gb(root, path=path),
    )
    logger.info(
        "Host: package_manager=%s root=%s arch=%s disk=%sGB",
        caps.package_manager.value,
        caps.is_root,
        caps.architecture.value,
        caps.available_disk_gb if caps.available_disk_gb is not None else "?",
    )
    return caps


def detect_package_manager(*, path: str | None = None) -> PackageManager:
    """First package manager on PATH, in ``PACKAGE_MANAGER_PRIORITY`` order."""
    for name in PACKAGE_MANAGER_PRIORITY:
        if shutil.which(name, path=path):
            logger.debug("Package manager: %s", name)
            return PackageManager(name)
    logger.warning("No supported package manager found (%s)", ", ".join(PACKAGE_MANAGER_PRIORITY))
    return PackageManager.NONE


def detect_architecture(machine: str | None = None) -> Architecture:
    """Map ``uname -m`` to a release architecture; unknown → x86_64."""
    raw = (machine if machine is not None else platform.machine()).strip()
    mapped = ARCH_MAP.get(raw.lower())
    if mapped is None:
        logger.warning("Unknown architecture: %s, defaulting to x86_64", raw or "unknown")
        return Architecture.X86_64
    return Architecture(mapped)


def available_disk_gb(root: str = "/", *, path: str | None = None) -> int | None:
    """Free space under ``root`` in whole GB, from ``df -k``.

    Returns None (check skipped) when ``df`` is missing or its output
    cannot be parsed.
    """
    df = shutil.which("df", path=path)
    if not df:
        logger.warning("df command not found, skipping disk space check")
        return None

    try:
        r = subprocess.run(
            [df, "-P", "-k", root],
            capture_output=True, text=True, timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("df failed (%s), skipping disk space check", e)
        return None

    kb = parse_df_available_kb(r.stdout)
    if kb is None:
        logger.warning("Could not determine available disk space, skipping check")
        return None
    return kb_to_gb(kb)


def parse_df_available_kb(output: str) -> int | None:
    """Available KB from POSIX ``df -P -k`` output (4th column, last line)."""
    lines = [ln for ln in (output or "").strip().splitlines() if ln.strip()]
    if len(lines) < 2:
        return None
    fields = lines[-1].split()
    if len(fields) < 4:
        return None
    try:
        return int(fields[3])
    except ValueError:
        return None


def resolve_user_paths(environ: Mapping[str, str] | None = None) -> UserPaths:
    """Resolve HOME and the XDG directories, with the usual defaults."""
    env = os.environ if environ is None else environ
    home = Path(env.get("HOME") or Path.home()).expanduser()

    def _xdg(var: str, default: Path) -> Path:
        value = env.get(var)
        return Path(value).expanduser() if value else default

    return UserPaths(
        home=home,
        cache_home=_xdg("XDG_CACHE_HOME", home / ".cache"),
        data_home=_xdg("XDG_DATA_HOME", home / ".local" / "share"),
        config_home=_xdg("XDG_CONFIG_HOME", home / ".config"),
        local_bin=home / ".local" / "bin",
    )


def command_exists(name: str, extra_dirs: Iterable[Path | str] = ()) -> str | None:
    """Locate ``name`` on PATH plus ``extra_dirs``.  Returns its path or None.

    An absolute path to an executable file is accepted as-is.
    """
    if os.sep in name:
        return name if os.path.isfile(name) and os.access(name, os.X_OK) else None

    search = os.environ.get("PATH", "")
    extra = os.pathsep.join(str(d) for d in extra_dirs)
    if extra:
        search = f"{extra}{os.pathsep}{search}" if search else extra
    return shutil.which(name, path=search)
