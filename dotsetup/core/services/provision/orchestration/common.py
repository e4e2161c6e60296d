"""
L5 Orchestration — Step factories shared by the zsh and nvim plans.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence

from dotsetup.core.errors import ProvisionError
from dotsetup.core.models.host import HostCapabilities
from dotsetup.core.models.settings import Settings
from dotsetup.core.models.step import ProvisioningStep
from dotsetup.core.services.provision.detection.host_probe import command_exists
from dotsetup.core.services.provision.execution.deploy import deploy, is_deployed, payload_path

logger = logging.getLogger(__name__)


def prerequisites_step(tools: Sequence[str]) -> ProvisioningStep:
    """Fail the run early when a tool the plan shells out to is missing."""

    def apply(_caps: HostCapabilities) -> str:
        missing = [t for t in tools if not command_exists(t)]
        if missing:
            names = ", ".join(missing)
            raise ProvisionError(
                f"{names} required but not installed",
                remedy=f"Install {names} first, then re-run.",
            )
        return f"found {', '.join(tools)}"

    return ProvisioningStep(
        name="prerequisites",
        apply=apply,
        description=f"Check for {', '.join(tools)}",
    )


def directories_step(dirs: Sequence[Path]) -> ProvisioningStep:
    """Create the XDG base directories the later steps write into."""

    def precondition(_caps: HostCapabilities) -> bool:
        return not all(d.is_dir() for d in dirs)

    def apply(_caps: HostCapabilities) -> str:
        for d in dirs:
            d.mkdir(parents=True, exist_ok=True)
        return f"created {len(dirs)} director{'y' if len(dirs) == 1 else 'ies'}"

    return ProvisioningStep(
        name="directories",
        precondition=precondition,
        apply=apply,
        verify=lambda _caps: all(d.is_dir() for d in dirs),
        description="Create cache, data and config directories",
    )


def deploy_step(
    name: str,
    payload: str,
    destination: Path,
    settings: Settings,
    substitutions: Mapping[str, str] | None = None,
    *,
    required: bool = True,
) -> ProvisioningStep:
    """Copy a shipped payload into place.  Skipped when already identical."""
    source = payload_path(payload, settings.payload_dir)

    def apply(_caps: HostCapabilities) -> str:
        deploy(source, destination, substitutions)
        return f"wrote {destination}"

    return ProvisioningStep(
        name=name,
        required=required,
        precondition=lambda _caps: not is_deployed(source, destination, substitutions),
        apply=apply,
        verify=lambda _caps: is_deployed(source, destination, substitutions),
        description=f"Deploy {payload} to {destination}",
        remedy=f"Copy {source} to {destination} manually.",
    )
