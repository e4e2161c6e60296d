"""
L4 Execution — Shell registration and profile edits.

Three idempotent writes:

- register a shell in ``/etc/shells`` (privileged append)
- make it the login shell with ``chsh -s``
- append lines (PATH exports) to rc files, skipping lines already present
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from dotsetup.core.errors import InstallError, ProvisionError
from dotsetup.core.services.provision.execution.subprocess_runner import check_result, run_command

logger = logging.getLogger(__name__)

ETC_SHELLS = Path("/etc/shells")
_MARKER = "# Added by dotsetup"


def is_registered_shell(shell_path: str, shells_file: Path = ETC_SHELLS) -> bool:
    """True if ``shell_path`` is an exact line of ``/etc/shells``."""
    try:
        lines = shells_file.read_text().splitlines()
    except OSError:
        return False
    return shell_path in (ln.strip() for ln in lines)


def register_shell(shell_path: str, shells_file: Path = ETC_SHELLS, *, timeout: int = 60) -> bool:
    """Append ``shell_path`` to ``/etc/shells`` if missing.  Returns True if written."""
    if is_registered_shell(shell_path, shells_file):
        logger.debug("%s already listed in %s", shell_path, shells_file)
        return False

    logger.info("Adding %s to %s", shell_path, shells_file)
    result = _append_privileged(shell_path, shells_file, timeout=timeout)
    check_result(
        result,
        InstallError,
        f"Failed to add {shell_path} to {shells_file}",
        remedy=f"Run: echo {shell_path} | sudo tee -a {shells_file}",
    )
    return True


def _append_privileged(line: str, target: Path, *, timeout: int) -> dict[str, Any]:
    """``line`` → ``sudo tee -a target``.  Root writes the file directly."""
    if os.geteuid() == 0:
        try:
            with open(target, "a") as f:
                f.write(f"{line}\n")
        except OSError as e:
            return {"ok": False, "error": f"Cannot write {target}: {e}"}
        return {"ok": True}

    try:
        r = subprocess.run(
            ["sudo", "tee", "-a", str(target)],
            input=f"{line}\n",
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"sudo tee timed out ({timeout}s)"}
    except FileNotFoundError:
        return {"ok": False, "error": "sudo is not installed"}
    except OSError as e:
        return {"ok": False, "error": f"Cannot run sudo: {e}"}
    if r.returncode != 0:
        return {"ok": False, "error": f"tee failed (exit {r.returncode})", "stderr": r.stderr or ""}
    return {"ok": True}


def change_login_shell(shell_path: str, *, timeout: int = 300) -> str:
    """Run ``chsh -s`` for the current user.  chsh prompts on the terminal."""
    logger.info("Changing login shell to %s", shell_path)
    check_result(
        run_command(["chsh", "-s", shell_path], interactive=True, timeout=timeout),
        InstallError,
        "Failed to change default shell",
        remedy=f"Run 'chsh -s {shell_path}' manually.",
    )
    return f"login shell set to {shell_path} (takes effect at next login)"


def ensure_lines(
    target: Path,
    lines: list[str],
    *,
    error_cls: type[ProvisionError] = InstallError,
) -> int:
    """Append each of ``lines`` not already in ``target``.

    Returns:
        Number of lines written (0 when everything was present).
    """
    target = Path(target)
    existing = ""
    if target.is_file():
        try:
            existing = target.read_text()
        except OSError as e:
            raise error_cls(f"Cannot read {target}: {e}") from e

    new_lines = [ln for ln in lines if ln.strip() and ln not in existing]
    if not new_lines:
        return 0

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a") as f:
            if existing and not existing.endswith("\n"):
                f.write("\n")
            f.write(f"\n{_MARKER}\n")
            for ln in new_lines:
                f.write(f"{ln}\n")
    except OSError as e:
        raise error_cls(
            f"Failed to write {target}: {e}",
            remedy=f"Add these lines to {target} manually: {'; '.join(new_lines)}",
        ) from e

    logger.info("Added %d line(s) to %s", len(new_lines), target)
    return len(new_lines)
