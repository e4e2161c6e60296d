"""Provisioning engine — step execution and reporting."""

from dotsetup.core.engine.executor import run_steps  # noqa: F401
from dotsetup.core.engine.report import (  # noqa: F401
    ExitStatus,
    RunState,
    final_state,
    format_report,
    summarize,
)
