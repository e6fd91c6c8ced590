"""
Adapter registry — central dispatch for directive execution.

The engine never talks to adapters directly — always through the
registry, which handles lookup, mock mode, validation and dry runs.
"""

from __future__ import annotations

import logging
from typing import Any

from pipstate.adapters.base import Adapter, ExecutionContext
from pipstate.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    In mock mode every action goes to the mock adapter, whatever
    adapter name it asks for.
    """

    def __init__(self, mock_adapter: Adapter | None = None):
        self._adapters: dict[str, Adapter] = {}
        self._mock_adapter = mock_adapter

    @property
    def mock_mode(self) -> bool:
        return self._mock_adapter is not None

    def set_mock_mode(self, mock_adapter: Adapter | None) -> None:
        """Route everything to ``mock_adapter``; None turns mock mode off."""
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters.keys())

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of all registered adapters."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status

    def execute_action(self, action: Action, dry_run: bool = False) -> Receipt:
        """Apply one action through its adapter. Never raises.

        Args:
            action: The action to apply.
            dry_run: Evaluate guards but do not run commands.

        Returns:
            Receipt: ok, skipped (guard satisfied / dry run) or failed.
        """
        adapter = self._mock_adapter or self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(action=action, dry_run=dry_run)

        try:
            is_valid, error_msg = adapter.validate(context)
        except Exception as e:
            return Receipt.failure(
                adapter=adapter.name,
                action_id=action.id,
                error=f"Validation error: {e}",
            )
        if not is_valid:
            return Receipt.failure(
                adapter=adapter.name,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        try:
            return adapter.execute(context)
        except Exception as e:
            # adapters are not supposed to raise
            logger.error("Adapter %s raised during execution: %s", adapter.name, e)
            return Receipt.failure(
                adapter=adapter.name,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )
