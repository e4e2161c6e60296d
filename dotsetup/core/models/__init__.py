"""
Domain models for provisioning.

All models are re-exported here for convenient access:

    from dotsetup.core.models import HostCapabilities, ProvisioningStep, StepResult
"""

from dotsetup.core.models.artifact import ArchiveFormat, RemoteArtifact
from dotsetup.core.models.host import (
    Architecture,
    HostCapabilities,
    PackageManager,
    Selections,
    UserPaths,
)
from dotsetup.core.models.settings import (
    FontSettings,
    NeovimSettings,
    RepoSettings,
    Settings,
    ZoxideSettings,
)
from dotsetup.core.models.step import (
    Alternative,
    ProvisioningStep,
    StepOutcome,
    StepResult,
)

__all__ = [
    # step.py
    "Alternative",
    # artifact.py
    "ArchiveFormat",
    # host.py
    "Architecture",
    # settings.py
    "FontSettings",
    "HostCapabilities",
    "NeovimSettings",
    "PackageManager",
    "ProvisioningStep",
    "RemoteArtifact",
    "RepoSettings",
    "Selections",
    "Settings",
    "StepOutcome",
    "StepResult",
    "UserPaths",
    "ZoxideSettings",
]
