"""
L1 Domain — pure logic.  No I/O, no subprocess.
"""

from dotsetup.core.services.provision.domain.selection import (  # noqa: F401
    make_selections,
    select_fetch_tool,
)
from dotsetup.core.services.provision.domain.sizes import (  # noqa: F401
    fmt_size,
    has_gzip_magic,
    is_gzip_content_type,
    kb_to_gb,
)
from dotsetup.core.services.provision.domain.version import (  # noqa: F401
    extract_version,
    parse_version,
    version_at_least,
)
