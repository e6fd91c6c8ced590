"""
Mock adapter — test double for executors.

Records every command and guard it is asked about and answers from
canned responses keyed by the exact command or guard expression.
Used by ``pipstate apply --mock`` and throughout the tests.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from pipstate.adapters.base import Adapter
from pipstate.core.models.action import Receipt
from pipstate.core.models.directive import GuardKind, GuardPredicate


class MockAdapter(Adapter):
    """Executor that never touches the host.

    By default every command succeeds and every guard answers "work is
    needed": ``unless`` guards exit non-zero, ``onlyif`` guards exit 0.
    Pass ``default_guard`` to force one outcome for every guard.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
        default_guard: bool | None = None,
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._default_guard = default_guard
        self._responses: dict[str, Receipt] = {}
        self._guards: dict[str, bool | None] = {}
        self._commands: list[str] = []
        self._guard_log: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def commands(self) -> list[str]:
        """Every command string passed to ``run``, in order."""
        return self._commands

    @property
    def guard_log(self) -> list[str]:
        """Every guard expression evaluated, in order."""
        return self._guard_log

    @property
    def call_count(self) -> int:
        return len(self._commands)

    def is_available(self) -> bool:
        return self._available

    def set_response(self, command: str, receipt: Receipt) -> None:
        """Answer ``command`` with a specific receipt."""
        self._responses[command] = receipt

    def set_output(self, command: str, output: str) -> None:
        """Make ``command`` succeed with the given output."""
        self._responses[command] = Receipt.success(
            adapter=self._name, action_id=command, output=output, return_code=0,
        )

    def set_failure(self, command: str, error: str = "Mock failure", return_code: int = 1) -> None:
        """Make ``command`` fail."""
        self._responses[command] = Receipt.failure(
            adapter=self._name, action_id=command, error=error, return_code=return_code,
        )

    def set_guard(self, expression: str, outcome: bool | None) -> None:
        """Fix the outcome of a guard expression (None = unevaluable)."""
        self._guards[expression] = outcome

    def run(
        self,
        command: str,
        *,
        cwd: str | None = None,
        search_path: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
        timeout: int = 300,
    ) -> Receipt:
        self._commands.append(command)
        if command in self._responses:
            return self._responses[command].model_copy()
        return Receipt.success(
            adapter=self._name,
            action_id=command,
            output=self._default_output,
            return_code=0,
            metadata={"mock": True},
        )

    def evaluate_guard(
        self,
        guard: GuardPredicate,
        *,
        cwd: str | None = None,
        search_path: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
    ) -> bool | None:
        self._guard_log.append(guard.expression)
        if guard.expression in self._guards:
            return self._guards[guard.expression]
        if self._default_guard is not None:
            return self._default_guard
        return guard.kind == GuardKind.ONLYIF

    def reset(self) -> None:
        """Clear logs and canned responses."""
        self._commands.clear()
        self._guard_log.clear()
        self._responses.clear()
        self._guards.clear()
