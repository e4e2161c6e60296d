"""
L4 Execution — System package operations.

Turns the L0 command tables into privileged ``run_command`` calls.
Failures raise the caller-chosen error class so the same helper
serves required steps (``PackageInstallError``) and optional ones
(``OptionalInstallError``).
"""

from __future__ import annotations

import logging

from dotsetup.core.errors import PackageInstallError, ProvisionError
from dotsetup.core.models.host import PackageManager
from dotsetup.core.services.provision.data.packages import (
    INSTALL_COMMANDS,
    REMOVE_COMMANDS,
    SYNC_COMMANDS,
)
from dotsetup.core.services.provision.execution.subprocess_runner import check_result, run_command

logger = logging.getLogger(__name__)


def _require_manager(pm: PackageManager, error_cls: type[ProvisionError]) -> str:
    if pm == PackageManager.NONE or pm.value not in INSTALL_COMMANDS:
        raise error_cls(
            "Unsupported package manager",
            remedy="Install the packages manually with your distribution's tools.",
        )
    return pm.value


def sync_repositories(pm: PackageManager, *, timeout: int = 600) -> None:
    """Refresh repository metadata.  No-op for managers without a sync step."""
    name = _require_manager(pm, PackageInstallError)
    cmd = SYNC_COMMANDS.get(name)
    if cmd is None:
        logger.debug("No repository sync for %s", name)
        return
    logger.info("Refreshing %s repositories", name)
    check_result(
        run_command(cmd, needs_sudo=True, timeout=timeout),
        PackageInstallError,
        f"Repository sync with {name} failed",
        remedy=f"Run '{' '.join(cmd)}' manually and retry.",
    )


def install_packages(
    pm: PackageManager,
    packages: list[str],
    *,
    timeout: int = 600,
    error_cls: type[ProvisionError] = PackageInstallError,
) -> str:
    """Install ``packages`` with ``pm``.  Returns a short detail string."""
    name = _require_manager(pm, error_cls)
    if not packages:
        return "nothing to install"
    cmd = INSTALL_COMMANDS[name] + list(packages)
    logger.info("Installing with %s: %s", name, " ".join(packages))
    check_result(
        run_command(cmd, needs_sudo=True, timeout=timeout),
        error_cls,
        f"Failed to install {', '.join(packages)}",
        remedy=f"Run '{' '.join(cmd)}' manually.",
    )
    return f"installed {' '.join(packages)}"


def remove_packages(
    pm: PackageManager,
    packages: list[str],
    *,
    timeout: int = 600,
    error_cls: type[ProvisionError] = PackageInstallError,
) -> str:
    name = _require_manager(pm, error_cls)
    cmd = REMOVE_COMMANDS[name] + list(packages)
    logger.info("Removing with %s: %s", name, " ".join(packages))
    check_result(
        run_command(cmd, needs_sudo=True, timeout=timeout),
        error_cls,
        f"Failed to remove {', '.join(packages)}",
        remedy=f"Run '{' '.join(cmd)}' manually.",
    )
    return f"removed {' '.join(packages)}"
