"""
L5 Orchestration — plans and the run.
"""

from dotsetup.core.services.provision.orchestration.nvim_plan import build_nvim_steps  # noqa: F401
from dotsetup.core.services.provision.orchestration.orchestrator import (  # noqa: F401
    PROFILES,
    ProvisionRun,
    build_steps,
    order_profiles,
    provision,
)
from dotsetup.core.services.provision.orchestration.zsh_plan import build_zsh_steps  # noqa: F401
