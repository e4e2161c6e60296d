"""
L3 Detection — read-only probes of the host.
"""

from dotsetup.core.services.provision.detection.host_probe import (  # noqa: F401
    available_disk_gb,
    command_exists,
    detect_architecture,
    detect_package_manager,
    probe,
    resolve_user_paths,
)
from dotsetup.core.services.provision.detection.system_deps import (  # noqa: F401
    is_package_installed,
    missing_packages,
)
from dotsetup.core.services.provision.detection.tool_version import (  # noqa: F401
    get_tool_version,
    meets_minimum,
)
