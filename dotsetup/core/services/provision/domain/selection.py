"""
L1 Domain — Per-host choices (pure).

Derives the ``Selections`` record from the capabilities.  The
selections are computed once and passed explicitly to the plan
builders.
"""

from __future__ import annotations

from dotsetup.core.models.host import HostCapabilities, Selections
from dotsetup.core.services.provision.data.packages import DEFAULT_FETCH_TOOL, FETCH_TOOLS


def select_fetch_tool(caps: HostCapabilities, override: str | None = None) -> str:
    """fastfetch on pacman hosts, neofetch everywhere else.

    A configured ``override`` wins over the table.
    """
    if override:
        return override
    return FETCH_TOOLS.get(caps.package_manager.value, DEFAULT_FETCH_TOOL)


def make_selections(caps: HostCapabilities, *, fetch_tool: str | None = None) -> Selections:
    return Selections(fetch_tool=select_fetch_tool(caps, fetch_tool))
