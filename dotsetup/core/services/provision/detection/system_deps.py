"""
L3 Detection — System package checks.

Read-only probes: asks the package database whether a package is
installed.  Used to find a distro-packaged neovim before the binary
release replaces it.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

# manager → query command prefix (package name appended)
_QUERY_COMMANDS: dict[str, list[str]] = {
    "apt": ["dpkg-query", "-W", "-f=${Status}"],
    "dnf": ["rpm", "-q"],
    "yum": ["rpm", "-q"],
    "zypper": ["rpm", "-q"],
    "pacman": ["pacman", "-Q"],
}


def is_package_installed(pkg: str, pkg_manager: str) -> bool:
    """Check if a single system package is installed.

    apt is judged by the dpkg status string (``install ok installed``);
    the rpm and pacman queries by their exit code.

    Returns:
        True if installed, False if not installed, unknown manager,
        or the check itself failed.
    """
    prefix = _QUERY_COMMANDS.get(pkg_manager)
    if prefix is None:
        return False

    try:
        r = subprocess.run(
            prefix + [pkg],
            capture_output=True, text=True, timeout=10,
        )
    except FileNotFoundError:
        logger.warning("Package checker %s not found (checking %s)", prefix[0], pkg)
        return False
    except subprocess.TimeoutExpired:
        logger.warning("Timeout checking package %s with pm=%s", pkg, pkg_manager)
        return False
    except OSError as exc:
        logger.warning("OS error checking package %s with pm=%s: %s", pkg, pkg_manager, exc)
        return False

    if pkg_manager == "apt":
        return "install ok installed" in (r.stdout or "")
    return r.returncode == 0


def missing_packages(packages: list[str], pkg_manager: str) -> list[str]:
    """Subset of ``packages`` that is not installed, in input order."""
    return [p for p in packages if not is_package_installed(p, pkg_manager)]
