"""
Plan use case — manifest in, directives out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pipstate.core.config.loader import (
    ConfigError,
    find_manifest_file,
    load_manifest,
    manifest_requests,
)
from pipstate.core.models.directive import Directive
from pipstate.core.services.install import build_directive, build_venv_directive


@dataclass
class PlanResult:
    """Directives for every virtualenv and package in a manifest."""

    config_path: Path | None = None
    directives: list[Directive] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        if self.error:
            return {"error": self.error}
        return {
            "config_path": str(self.config_path) if self.config_path else None,
            "directives": [d.to_dict() for d in self.directives],
        }


def plan_manifest(config_path: Path | None = None) -> PlanResult:
    """Synthesize every directive a manifest asks for.

    Virtualenvs come first so packages installed into them find
    their pip. Any ConfigError ends up in ``PlanResult.error``.
    """
    path = config_path or find_manifest_file()
    result = PlanResult(config_path=path)

    try:
        manifest = load_manifest(path)
        directives = [build_venv_directive(v) for v in manifest.virtualenvs]
        directives.extend(build_directive(r) for r in manifest_requests(manifest))
    except ConfigError as e:
        result.error = str(e)
        return result

    result.directives = directives
    return result
