"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for provisioning
commands.  Privilege escalation, timeouts and output trimming are
centralised here.

The runner never raises for command failures: it returns a result
dict (``{"ok": True, ...}`` / ``{"ok": False, "error": ...}``).  Step
actions turn a failed dict into a typed error with ``check_result``.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from typing import Any

from dotsetup.core.errors import ProvisionError

logger = logging.getLogger(__name__)

_TAIL = 2000


def run_command(
    cmd: list[str],
    *,
    needs_sudo: bool = False,
    timeout: int = 600,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
    interactive: bool = False,
) -> dict[str, Any]:
    """Run a command with optional sudo and env overrides.

    Sudo rules:
    - already root → no prefix
    - otherwise ``sudo`` is prepended; sudo prompts on the terminal
      itself, the password never passes through this process
    - no ``sudo`` binary → failure result, nothing is run

    Args:
        cmd: Command list for ``subprocess.run()``.
        needs_sudo: Whether the command requires root.
        timeout: Seconds before the command is killed.
        env_overrides: Extra env vars, ``$VAR`` references expanded.
        cwd: Working directory for the command.
        interactive: Inherit stdin/stdout/stderr instead of capturing
            (for commands that prompt, like ``chsh``).

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", ...}`` on failure.
    """
    if needs_sudo and os.geteuid() != 0:
        if not shutil.which("sudo"):
            return {
                "ok": False,
                "needs_sudo": True,
                "error": f"'{cmd[0]}' needs root and sudo is not installed",
            }
        cmd = ["sudo"] + cmd

    env = os.environ.copy()
    if env_overrides:
        for key, value in env_overrides.items():
            env[key] = os.path.expandvars(value)

    logger.debug("Running: %s (cwd=%s, timeout=%ss)", " ".join(cmd), cwd, timeout)
    start = time.monotonic()
    try:
        if interactive:
            result = subprocess.run(cmd, timeout=timeout, env=env, cwd=cwd)
        else:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                stdin=subprocess.DEVNULL,
                env=env,
                cwd=cwd,
            )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s): {' '.join(cmd)}"}
    except FileNotFoundError:
        return {"ok": False, "error": f"Command not found: {cmd[0]}"}
    except OSError as e:
        logger.debug("Subprocess error for %s", cmd, exc_info=True)
        return {"ok": False, "error": f"Cannot run {cmd[0]}: {e}"}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = (result.stdout or "")[-_TAIL:] if not interactive else ""
    stderr = (result.stderr or "")[-_TAIL:] if not interactive else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"{cmd[0]} failed (exit {result.returncode})",
        "returncode": result.returncode,
        "stderr": stderr,
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }


def check_result(
    result: dict[str, Any],
    error_cls: type[ProvisionError],
    message: str,
    *,
    remedy: str = "",
) -> dict[str, Any]:
    """Raise ``error_cls`` if ``result`` is a failure; pass it through otherwise."""
    if result.get("ok"):
        return result
    reason = result.get("error", "unknown error")
    stderr = (result.get("stderr") or "").strip()
    if stderr:
        reason = f"{reason}: {stderr.splitlines()[-1]}"
    raise error_cls(f"{message} ({reason})", remedy=remedy)
