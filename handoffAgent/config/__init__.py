"""Configuration helpers for handoffAgent."""

from .settings import (
    ContextSettings,
    ModelSettings,
    ObservabilitySettings,
    OrchestrationSettings,
    Settings,
    StreamingSettings,
    get_settings,
)

__all__ = [
    "ContextSettings",
    "ModelSettings",
    "ObservabilitySettings",
    "OrchestrationSettings",
    "Settings",
    "StreamingSettings",
    "get_settings",
]
