"""
Engine executor — apply a set of directives, one at a time.

Flow:
    directives → build actions → execute (guard, then command) → collect receipts

Ordering between directives is the caller's: actions run in the order
the directives were given.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pipstate.adapters.registry import AdapterRegistry
from pipstate.core.models.action import Action, Receipt
from pipstate.core.models.directive import Directive

logger = logging.getLogger(__name__)


@dataclass
class ExecutionPlan:
    """A planned set of actions to execute."""

    operation_id: str = ""
    actions: list[Action] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.actions)


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0 or self.skipped > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def build_actions(
    directives: Iterable[Directive],
    operation_id: str,
    adapter: str = "shell",
) -> ExecutionPlan:
    """Wrap directives into actions for one adapter.

    Action ids are ``<operation_id>:<directive name>``.
    """
    plan = ExecutionPlan(operation_id=operation_id)
    for directive in directives:
        plan.actions.append(
            Action(id=f"{operation_id}:{directive.name}", adapter=adapter, directive=directive)
        )
    return plan


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    dry_run: bool = False,
) -> ExecutionReport:
    """Execute all actions in a plan through the adapter registry.

    A failed action does not stop the ones after it.
    """
    report = ExecutionReport(operation_id=plan.operation_id)

    for action in plan.actions:
        receipt = registry.execute_action(action, dry_run=dry_run)
        report.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s %s → %s", status_marker, action.name, receipt.status)
        if receipt.failed:
            logger.debug("%s failed: %s", action.name, receipt.error)

    return report


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
