"""
L4 Execution — everything that writes to the host.
"""

from dotsetup.core.services.provision.execution.backup import move_aside  # noqa: F401
from dotsetup.core.services.provision.execution.deploy import (  # noqa: F401
    deploy,
    is_deployed,
    payload_path,
)
from dotsetup.core.services.provision.execution.download import (  # noqa: F401
    download_file,
    fetch,
    resolve_release_url,
)
from dotsetup.core.services.provision.execution.git_ops import clone, clone_or_pull  # noqa: F401
from dotsetup.core.services.provision.execution.lock import run_lock  # noqa: F401
from dotsetup.core.services.provision.execution.packages import (  # noqa: F401
    install_packages,
    remove_packages,
    sync_repositories,
)
from dotsetup.core.services.provision.execution.script_verify import (  # noqa: F401
    cleanup_script,
    download_script,
)
from dotsetup.core.services.provision.execution.shell_setup import (  # noqa: F401
    change_login_shell,
    ensure_lines,
    register_shell,
)
from dotsetup.core.services.provision.execution.subprocess_runner import (  # noqa: F401
    check_result,
    run_command,
)
