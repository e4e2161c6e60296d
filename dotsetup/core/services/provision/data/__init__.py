"""
L0 Data — pure data tables.  No logic, no I/O.
"""

from dotsetup.core.services.provision.data.constants import (  # noqa: F401
    ARCH_MAP,
    FETCH_TOOL_TOKEN,
    GZIP_MAGIC,
    PACKAGE_MANAGER_PRIORITY,
)
from dotsetup.core.services.provision.data.packages import (  # noqa: F401
    BUILD_TOOLCHAIN,
    CORE_PACKAGES,
    INSTALL_COMMANDS,
    REMOVE_COMMANDS,
    SYNC_COMMANDS,
)
