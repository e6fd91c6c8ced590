"""Adapters — executors that apply directives to the host.

Public re-exports for convenient access.
"""

from pipstate.adapters.base import Adapter, ExecutionContext
from pipstate.adapters.mock import MockAdapter
from pipstate.adapters.registry import AdapterRegistry
from pipstate.adapters.shell.command import ShellCommandAdapter

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "ShellCommandAdapter",
]
