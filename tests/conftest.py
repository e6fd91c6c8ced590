"""
Shared test fixtures and configuration.
"""

import logging

import pytest

from pipstate.adapters.mock import MockAdapter


@pytest.fixture
def mock_runner() -> MockAdapter:
    """A fresh mock executor."""
    return MockAdapter()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
