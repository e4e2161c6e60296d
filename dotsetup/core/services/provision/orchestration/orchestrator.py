"""
L5 Orchestration — One provisioning run.

    lock → probe → select → build plans → execute → report

The probe runs exactly once; its snapshot and the selections derived
from it are handed to the plan builders and to every step.  Steps of
several profiles run as one ordered list, so a fatal failure in the
zsh profile also stops the nvim profile.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from dotsetup.core.engine.executor import run_steps
from dotsetup.core.engine.report import ExitStatus, RunState, final_state, format_report, summarize
from dotsetup.core.errors import ProbeError
from dotsetup.core.models.host import HostCapabilities, Selections, UserPaths
from dotsetup.core.models.settings import Settings
from dotsetup.core.models.step import ProvisioningStep, StepOutcome, StepResult
from dotsetup.core.services.provision.detection.host_probe import probe, resolve_user_paths
from dotsetup.core.services.provision.domain.selection import make_selections
from dotsetup.core.services.provision.execution.lock import run_lock
from dotsetup.core.services.provision.orchestration.nvim_plan import build_nvim_steps
from dotsetup.core.services.provision.orchestration.zsh_plan import build_zsh_steps

logger = logging.getLogger(__name__)

# Execution order when several profiles are requested
PROFILES: tuple[str, ...] = ("zsh", "nvim")


@dataclass
class ProvisionRun:
    """Everything one run produced.  ``results`` is in execution order."""

    profiles: tuple[str, ...]
    paths: UserPaths
    capabilities: HostCapabilities | None = None
    selections: Selections | None = None
    results: list[StepResult] = field(default_factory=list)
    state: RunState = RunState.PROBING

    @property
    def exit_status(self) -> ExitStatus:
        return summarize(self.results)

    def report(self) -> list[str]:
        """Report lines.  Moves the run to ``reported``."""
        lines = format_report(self.results)
        self.state = RunState.REPORTED
        return lines

    def to_dict(self) -> dict[str, Any]:
        return {
            "profiles": list(self.profiles),
            "capabilities": self.capabilities.model_dump(mode="json") if self.capabilities else None,
            "selections": self.selections.model_dump(mode="json") if self.selections else None,
            "results": [r.model_dump(mode="json") for r in self.results],
            "state": self.state.value,
            "exit_status": int(self.exit_status),
        }


def order_profiles(profiles: Sequence[str]) -> tuple[str, ...]:
    """Deduplicate and sort ``profiles`` into execution order.

    Raises:
        ValueError: On an unknown profile name.
    """
    unknown = sorted(set(profiles) - set(PROFILES))
    if unknown:
        raise ValueError(f"Unknown profile(s): {', '.join(unknown)}")
    return tuple(p for p in PROFILES if p in profiles)


def lock_path(paths: UserPaths, settings: Settings) -> Path:
    return settings.lock_file or paths.cache_home / "dotsetup" / "dotsetup.lock"


def build_steps(
    profiles: Sequence[str],
    paths: UserPaths,
    settings: Settings,
    caps: HostCapabilities,
    selections: Selections,
) -> list[ProvisioningStep]:
    """Concatenate the plans of ``profiles``.

    With more than one profile, step names get a ``<profile>/`` prefix
    so they stay unique.
    """
    plans: dict[str, list[ProvisioningStep]] = {}
    for profile in profiles:
        if profile == "zsh":
            plans[profile] = build_zsh_steps(paths, settings, selections)
        elif profile == "nvim":
            plans[profile] = build_nvim_steps(paths, settings, caps)

    if len(plans) == 1:
        return next(iter(plans.values()))
    return [
        dataclasses.replace(step, name=f"{profile}/{step.name}")
        for profile, steps in plans.items()
        for step in steps
    ]


def provision(
    profiles: Sequence[str],
    settings: Settings,
    *,
    environ: Mapping[str, str] | None = None,
    root: str = "/",
) -> ProvisionRun:
    """Run the requested profiles against this host.

    Raises:
        LockError: Another run holds the lock.
        ValueError: Unknown profile.
    """
    ordered = order_profiles(profiles)
    paths = resolve_user_paths(environ)
    run = ProvisionRun(profiles=ordered, paths=paths)

    with run_lock(lock_path(paths, settings)):
        logger.info("Provisioning: %s", ", ".join(ordered))
        try:
            caps = probe(root=root)
        except ProbeError as e:
            run.results = [
                StepResult(
                    step_name="probe",
                    outcome=StepOutcome.FAILED_FATAL,
                    detail=str(e),
                    remedy=e.remedy,
                ),
            ]
            run.state = RunState.HALTED
            return run

        run.capabilities = caps
        run.selections = make_selections(caps, fetch_tool=settings.fetch_tool)
        logger.info("System-info tool: %s", run.selections.fetch_tool)

        steps = build_steps(ordered, paths, settings, caps, run.selections)
        run.state = RunState.EXECUTING
        run.results = run_steps(steps, caps)
        run.state = final_state(run.results)

    logger.info("Run %s with exit status %d", run.state.value, run.exit_status)
    return run
