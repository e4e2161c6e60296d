"""
Step and StepResult models — the execution contract.

Steps describe work; results describe what happened.  This is the
I/O contract between the plan builders and the engine: builders hand
over ``ProvisioningStep`` definitions, the engine hands back one
``StepResult`` per attempted step.  Step actions may raise; results
never do.

Steps hold callables, so they are plain frozen dataclasses; results
are pydantic models so they serialize for ``--json`` output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from dotsetup.core.models.host import HostCapabilities

Predicate = Callable[[HostCapabilities], bool]
Action = Callable[[HostCapabilities], Optional[str]]


def _always(_caps: HostCapabilities) -> bool:
    return True


@dataclass(frozen=True)
class Alternative:
    """One entry in a step's ordered fallback chain."""

    name: str
    apply: Action
    verify: Predicate = _always


@dataclass(frozen=True)
class ProvisioningStep:
    """A named, idempotent unit of provisioning work.

    ``precondition`` answers "is there work to do?"; False records the
    step as skipped.  ``apply`` performs the work and may return a short
    detail string.  ``verify`` is checked afterwards; False counts as a
    failure.  When ``alternatives`` is non-empty they replace ``apply``
    and are tried in order until one verifies.
    """

    name: str
    required: bool = True
    precondition: Predicate = _always
    apply: Action | None = None
    verify: Predicate = _always
    alternatives: tuple[Alternative, ...] = ()
    description: str = ""
    remedy: str = ""


class StepOutcome(str, Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED_FATAL = "failed_fatal"
    FAILED_OPTIONAL = "failed_optional"


class StepResult(BaseModel):
    """Outcome of one step.  Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    step_name: str
    outcome: StepOutcome
    detail: str = ""
    remedy: str = ""
    alternative: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome in (StepOutcome.SUCCEEDED, StepOutcome.SKIPPED)

    @property
    def fatal(self) -> bool:
        return self.outcome == StepOutcome.FAILED_FATAL

    @property
    def failed(self) -> bool:
        return self.outcome in (StepOutcome.FAILED_FATAL, StepOutcome.FAILED_OPTIONAL)
