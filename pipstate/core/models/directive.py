"""
Directive and guard models — the output of synthesis.

A Directive is everything an executor needs to bring one resource to
its desired state exactly once: the command, the guard that makes it
idempotent, and where/how to run it. Directives are produced fresh
per request and never mutated afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class GuardKind(str, Enum):
    """How a guard's exit status gates the command.

    ``unless``: exit 0 means the state is already satisfied, skip.
    ``onlyif``: exit 0 means the command is needed, run.
    """

    UNLESS = "unless"
    ONLYIF = "onlyif"


class GuardPredicate(BaseModel):
    """A shell-evaluable pre-check."""

    model_config = ConfigDict(frozen=True)

    kind: GuardKind
    expression: str

    def permits(self, outcome: bool | None) -> bool:
        """Decide whether the command runs given the guard outcome.

        Args:
            outcome: True if the expression exited 0, False if it
                exited non-zero, None if it could not be evaluated.

        Returns:
            True if the command should run. An unevaluable guard
            always lets the command run.
        """
        if outcome is None:
            return True
        if self.kind == GuardKind.UNLESS:
            return not outcome
        return outcome


class Directive(BaseModel):
    """A synthesized command + guard bundle, ready for an executor."""

    model_config = ConfigDict(frozen=True)

    name: str
    primary_command: str
    fallback_command: str | None = None
    preamble: str | None = None
    guard: GuardPredicate
    working_dir: str = "/"
    search_path: tuple[str, ...] = ()
    environment: tuple[str, ...] = ()
    timeout: int = 1800

    @property
    def command(self) -> str:
        """The full shell string handed to the executor.

        The preamble runs once; the fallback only runs when the
        primary command fails.
        """
        body = self.primary_command
        if self.fallback_command:
            body = f"{{ {self.primary_command} || {self.fallback_command} ;}}"
        if self.preamble:
            return f"{self.preamble} ; {body}"
        return body

    @property
    def path_env(self) -> str:
        """``search_path`` rendered as a PATH value."""
        return ":".join(self.search_path)

    def env_overrides(self) -> dict[str, str]:
        """``environment`` entries (``KEY=VALUE``) as a mapping."""
        overrides: dict[str, str] = {}
        for entry in self.environment:
            key, sep, value = entry.partition("=")
            if sep and key:
                overrides[key] = value
        return overrides

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable view, including the rendered command."""
        data = self.model_dump(mode="json")
        data["command"] = self.command
        data["search_path"] = list(self.search_path)
        data["environment"] = list(self.environment)
        return data
