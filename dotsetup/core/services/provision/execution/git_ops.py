"""
L4 Execution — Git clone / update.

Shallow clones for fzf and the LazyVim starter.  Runs as the invoking
user, never under sudo.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from dotsetup.core.errors import InstallError, ProvisionError
from dotsetup.core.services.provision.execution.subprocess_runner import check_result, run_command

logger = logging.getLogger(__name__)


def run_git(*args: str, cwd: Path | None = None, timeout: int = 600) -> dict:
    """Run a git command through the shared runner."""
    return run_command(["git", *args], cwd=str(cwd) if cwd else None, timeout=timeout)


def clone(
    url: str,
    dest: Path,
    *,
    timeout: int = 600,
    drop_git: bool = False,
    error_cls: type[ProvisionError] = InstallError,
) -> str:
    """Shallow-clone ``url`` into ``dest``.

    With ``drop_git`` the ``.git`` directory is removed afterwards, so
    the checkout becomes a plain copy the user owns.
    """
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Cloning %s → %s", url, dest)
    check_result(
        run_git("clone", "--depth", "1", url, str(dest), timeout=timeout),
        error_cls,
        f"Failed to clone {url}",
        remedy=f"Run 'git clone {url} {dest}' manually.",
    )
    if drop_git:
        shutil.rmtree(dest / ".git", ignore_errors=True)
    return f"cloned {url}"


def clone_or_pull(
    url: str,
    dest: Path,
    *,
    timeout: int = 600,
    error_cls: type[ProvisionError] = InstallError,
) -> str:
    """Clone ``url`` into ``dest``, or fast-forward an existing checkout."""
    dest = Path(dest)
    if (dest / ".git").is_dir():
        logger.info("Updating %s", dest)
        check_result(
            run_git("pull", "--ff-only", cwd=dest, timeout=timeout),
            error_cls,
            f"Failed to update {dest}",
            remedy=f"Run 'git -C {dest} pull' manually, or remove {dest} and retry.",
        )
        return f"updated {dest}"
    return clone(url, dest, timeout=timeout, error_cls=error_cls)
