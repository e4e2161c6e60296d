"""
Error taxonomy for provisioning steps.

Step actions raise these; the engine catches them at the step boundary
and turns them into ``StepResult`` entries.  Nothing here is allowed to
escape ``run_steps``.

Each error may carry a ``remedy``, the manual fix printed in the
final report.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for every provisioning failure."""

    def __init__(self, message: str, *, remedy: str = "") -> None:
        super().__init__(message)
        self.remedy = remedy


class ProbeError(ProvisionError):
    """Host state (filesystem, process) cannot be read at all."""


class PackageInstallError(ProvisionError):
    """A core package could not be installed."""


class OptionalInstallError(ProvisionError):
    """A non-critical install failed. The run continues."""


class DownloadError(ProvisionError):
    """Remote artifact could not be fetched or failed validation."""


class ExtractError(ProvisionError):
    """Archive could not be unpacked."""


class InstallError(ProvisionError):
    """Payload could not be moved into place or linked."""


class DeployError(ProvisionError):
    """Static configuration payload could not be deployed."""


class LockError(ProvisionError):
    """Another provisioning run holds the lock."""
