"""Agent definition, registry and model resolver interface."""

from .agent import Agent, Instructions, ToolSource
from .interfaces import ModelResolver
from .registry import AgentRegistry

__all__ = [
    "Agent",
    "AgentRegistry",
    "Instructions",
    "ModelResolver",
    "ToolSource",
]
