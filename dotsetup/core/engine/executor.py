"""
Engine executor — the central provisioning loop.

Takes an ordered list of ``ProvisioningStep`` definitions and the host
capabilities, runs each step through precondition → apply → verify,
and collects one ``StepResult`` per attempted step.

Flow per step:
    precondition false      → skipped
    apply raises / verify false → failed_fatal (required) | failed_optional
    otherwise               → succeeded

A fatal result halts the loop; the steps after it are never attempted.
Errors never escape: everything a step raises becomes a result.
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

from dotsetup.core.errors import ProvisionError
from dotsetup.core.models.host import HostCapabilities
from dotsetup.core.models.step import (
    Alternative,
    ProvisioningStep,
    StepOutcome,
    StepResult,
)

logger = logging.getLogger(__name__)

_MARKERS = {
    StepOutcome.SUCCEEDED: "✓",
    StepOutcome.SKIPPED: "⊘",
    StepOutcome.FAILED_OPTIONAL: "!",
    StepOutcome.FAILED_FATAL: "✗",
}


class _StepFailed(Exception):
    """Internal: carries a failure detail up to the step boundary."""

    def __init__(self, detail: str, remedy: str = "") -> None:
        super().__init__(detail)
        self.detail = detail
        self.remedy = remedy


def run_steps(
    steps: Sequence[ProvisioningStep],
    capabilities: HostCapabilities,
) -> list[StepResult]:
    """Execute steps in order, halting on the first fatal failure.

    Args:
        steps: Statically defined steps.  Names must be unique.
        capabilities: Probe snapshot handed to every predicate and action.

    Returns:
        Results in execution order.  If the last one is ``failed_fatal``
        the run was halted there.

    Raises:
        ValueError: If two steps share a name (checked before running).
    """
    _check_unique_names(steps)

    results: list[StepResult] = []
    for step in steps:
        result = _run_one(step, capabilities)
        results.append(result)
        logger.info("%s %s → %s", _MARKERS[result.outcome], step.name, result.outcome.value)
        if result.fatal:
            logger.error("Step '%s' failed: %s", step.name, result.detail)
            remaining = len(steps) - len(results)
            if remaining:
                logger.debug("Halting, %d step(s) not attempted", remaining)
            break
        if result.outcome == StepOutcome.FAILED_OPTIONAL:
            logger.warning("Optional step '%s' failed: %s", step.name, result.detail)

    return results


def _check_unique_names(steps: Sequence[ProvisioningStep]) -> None:
    seen: set[str] = set()
    for step in steps:
        if step.name in seen:
            raise ValueError(f"Duplicate step name: {step.name!r}")
        seen.add(step.name)


def _run_one(step: ProvisioningStep, caps: HostCapabilities) -> StepResult:
    """Run one step and fold every failure into a result."""
    start = time.monotonic()
    failed = StepOutcome.FAILED_FATAL if step.required else StepOutcome.FAILED_OPTIONAL

    try:
        needed = step.precondition(caps)
    except Exception as e:  # noqa: BLE001
        logger.debug("Precondition of '%s' raised", step.name, exc_info=True)
        return _result(step, failed, start, detail=f"precondition check failed: {e}")

    if not needed:
        return _result(step, StepOutcome.SKIPPED, start, detail="already satisfied")

    try:
        detail, alternative = _apply(step, caps)
        if not step.verify(caps):
            raise _StepFailed("verification failed after apply")
    except _StepFailed as e:
        return _result(step, failed, start, detail=e.detail, remedy=e.remedy or step.remedy)
    except ProvisionError as e:
        logger.debug("Step '%s' raised %s", step.name, type(e).__name__, exc_info=True)
        return _result(step, failed, start, detail=str(e), remedy=e.remedy or step.remedy)
    except Exception as e:  # noqa: BLE001
        logger.debug("Step '%s' raised unexpectedly", step.name, exc_info=True)
        return _result(step, failed, start, detail=f"{type(e).__name__}: {e}", remedy=step.remedy)

    return _result(step, StepOutcome.SUCCEEDED, start, detail=detail, alternative=alternative)


def _apply(step: ProvisioningStep, caps: HostCapabilities) -> tuple[str, str | None]:
    """Run ``apply`` or walk the alternatives.  Returns (detail, alternative)."""
    if not step.alternatives:
        if step.apply is None:
            return "", None
        return step.apply(caps) or "", None

    errors: list[str] = []
    remedy = ""
    for alt in step.alternatives:
        try:
            detail = _try_alternative(alt, caps)
        except _StepFailed as e:
            errors.append(e.detail)
            logger.info("  %s: alternative '%s' did not verify", step.name, alt.name)
            continue
        except ProvisionError as e:
            errors.append(f"{alt.name}: {e}")
            remedy = e.remedy or remedy
            logger.info("  %s: alternative '%s' failed: %s", step.name, alt.name, e)
            continue
        except Exception as e:  # noqa: BLE001
            errors.append(f"{alt.name}: {type(e).__name__}: {e}")
            logger.info("  %s: alternative '%s' raised: %s", step.name, alt.name, e)
            continue
        logger.info("  %s: satisfied via '%s'", step.name, alt.name)
        return detail or f"via {alt.name}", alt.name

    raise _StepFailed("all alternatives failed: " + "; ".join(errors), remedy)


def _try_alternative(alt: Alternative, caps: HostCapabilities) -> str:
    detail = alt.apply(caps) or ""
    if not alt.verify(caps):
        raise _StepFailed(f"{alt.name}: verification failed")
    return detail


def _result(
    step: ProvisioningStep,
    outcome: StepOutcome,
    start: float,
    *,
    detail: str = "",
    remedy: str = "",
    alternative: str | None = None,
) -> StepResult:
    return StepResult(
        step_name=step.name,
        outcome=outcome,
        detail=detail,
        remedy=remedy if outcome in (StepOutcome.FAILED_FATAL, StepOutcome.FAILED_OPTIONAL) else "",
        alternative=alternative,
        duration_ms=int((time.monotonic() - start) * 1000),
    )
