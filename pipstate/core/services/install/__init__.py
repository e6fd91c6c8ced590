"""
Install directive synthesis — re-exports.

Everything here is pure: requests in, directives out. Nothing in this
package runs a process or touches the filesystem.
"""

from pipstate.core.services.install.guards import (  # noqa: F401
    PackageCheck,
    PipFreezeCheck,
    directory_guard,
    installed_regex,
    package_guard,
    search_guard,
)
from pipstate.core.services.install.synthesis import (  # noqa: F401
    FeatureFlags,
    build_directive,
    pip_binary,
    search_path,
    source_token,
    validate_request,
)
from pipstate.core.services.install.venv import (  # noqa: F401
    build_venv_directive,
    creation_tool,
    minor_version,
)
