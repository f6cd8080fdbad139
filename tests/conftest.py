"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from handoffAgent.config.settings import (  # noqa: E402
    ContextSettings,
    OrchestrationSettings,
    Settings,
    StreamingSettings,
)


@pytest.fixture
def make_settings():
    """Factory for Settings with explicit orchestration overrides (ignores .env values)."""

    def _make(buffer_size: int = 0, **orchestration) -> Settings:
        return Settings(
            orchestration=OrchestrationSettings(**orchestration),
            context=ContextSettings(),
            streaming=StreamingSettings(buffer_size=buffer_size),
        )

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()
