"""
Adapter base — the executor contract.

Directive synthesis never runs anything. Adapters do: they evaluate a
directive's guard and, when the guard permits, run its command. The
engine and the fact probes only talk to executors through this
protocol.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from pydantic import BaseModel

from pipstate.core.models.action import Action, Receipt
from pipstate.core.models.directive import GuardPredicate

logger = logging.getLogger(__name__)


class ExecutionContext(BaseModel):
    """Everything an adapter needs to apply an action."""

    action: Action
    dry_run: bool = False

    @property
    def working_dir(self) -> str:
        return self.action.directive.working_dir


class Adapter(ABC):
    """Abstract base class for executors.

    Adapters perform side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    Subclasses implement ``run`` and ``evaluate_guard``; ``execute``
    combines them into "check, then act".
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter can run commands on this host.

        Should be fast and never raise.
        """

    @abstractmethod
    def run(
        self,
        command: str,
        *,
        cwd: str | None = None,
        search_path: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
        timeout: int = 300,
    ) -> Receipt:
        """Run a shell command and capture its output.

        MUST never raise; a non-zero exit is a failed Receipt.
        """

    @abstractmethod
    def evaluate_guard(
        self,
        guard: GuardPredicate,
        *,
        cwd: str | None = None,
        search_path: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
    ) -> bool | None:
        """Evaluate a guard expression.

        Returns:
            True if it exited 0, False if it exited non-zero, None if
            it could not be evaluated at all (timeout, OS error).
        """

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """
        if not context.action.directive.command.strip():
            return False, "Directive has an empty command"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        """Evaluate the guard, then run the command if it is needed."""
        action = context.action
        directive = action.directive
        env = directive.env_overrides()
        start = time.monotonic()

        outcome = self.evaluate_guard(
            directive.guard,
            cwd=directive.working_dir,
            search_path=directive.search_path,
            environment=env,
        )
        if outcome is None:
            logger.warning(
                "Guard for %s could not be evaluated, running command", directive.name,
            )
        if not directive.guard.permits(outcome):
            return Receipt.skip(
                adapter=self.name,
                action_id=action.id,
                reason=f"{directive.name}: already in desired state",
                duration_ms=int((time.monotonic() - start) * 1000),
                metadata={"guard": directive.guard.kind.value},
            )

        if context.dry_run:
            return Receipt.skip(
                adapter=self.name,
                action_id=action.id,
                reason=f"[dry-run] Would run {directive.name}",
                metadata={"dry_run": True, "command": directive.command},
            )

        receipt = self.run(
            directive.command,
            cwd=directive.working_dir,
            search_path=directive.search_path,
            environment=env,
            timeout=directive.timeout,
        )
        receipt.action_id = action.id
        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
