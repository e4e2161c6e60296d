"""
Run report — exit status and a human-readable summary.

The exit status only looks at fatal results: optional failures are
reported as warnings but never change it.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Sequence

from dotsetup.core.models.step import StepOutcome, StepResult


class ExitStatus(IntEnum):
    SUCCESS = 0
    FAILURE = 1


class RunState(str, Enum):
    """Lifecycle of one provisioning run.

    probing → executing → (halted | completed) → reported
    """

    PROBING = "probing"
    EXECUTING = "executing"
    HALTED = "halted"
    COMPLETED = "completed"
    REPORTED = "reported"


_LABELS = {
    StepOutcome.SUCCEEDED: "OK",
    StepOutcome.SKIPPED: "SKIP",
    StepOutcome.FAILED_OPTIONAL: "WARN",
    StepOutcome.FAILED_FATAL: "FAIL",
}


def summarize(results: Sequence[StepResult]) -> ExitStatus:
    """FAILURE if any step failed fatally, SUCCESS otherwise."""
    if any(r.fatal for r in results):
        return ExitStatus.FAILURE
    return ExitStatus.SUCCESS


def final_state(results: Sequence[StepResult]) -> RunState:
    """HALTED if the run stopped on a fatal step, else COMPLETED."""
    return RunState.HALTED if results and results[-1].fatal else RunState.COMPLETED


def format_report(results: Sequence[StepResult]) -> list[str]:
    """Render results as report lines, in execution order.

    One line per step, then a remediation section for every failure.
    """
    lines: list[str] = []
    width = max((len(r.step_name) for r in results), default=0)

    for r in results:
        line = f"[{_LABELS[r.outcome]:<4}] {r.step_name:<{width}}"
        if r.detail:
            line += f"  {r.detail}"
        lines.append(line.rstrip())

    failures = [r for r in results if r.failed]
    if failures:
        lines.append("")
        lines.append("Remediation:")
        for r in failures:
            hint = r.remedy or r.detail or "see the log output above"
            kind = "required" if r.fatal else "optional"
            lines.append(f"  - {r.step_name} ({kind}): {hint}")

    succeeded = sum(1 for r in results if r.outcome == StepOutcome.SUCCEEDED)
    skipped = sum(1 for r in results if r.outcome == StepOutcome.SKIPPED)
    lines.append("")
    lines.append(
        f"{len(results)} step(s): {succeeded} succeeded, {skipped} skipped, "
        f"{len(failures)} failed"
    )
    return lines
