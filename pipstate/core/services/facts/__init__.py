"""
Facts — discovered host state, resolved from weighted probes.

These functions READ system state but never WRITE.
"""

from pipstate.core.services.facts.probes import (  # noqa: F401
    PIP_FACTS,
    CommandRunner,
    default_resolver,
    package_db_probe,
    package_state,
    parse_pip_version,
    pip_cli_probe,
)
from pipstate.core.services.facts.resolver import (  # noqa: F401
    WeightedFactResolver,
    detect_platform,
)
