"""Memory provider boundary and configuration."""

from .config import DEFAULT_TEMPLATE, MemoryConfig, format_working_memory, get_working_memory_instructions
from .provider import (
    ChatSession,
    ConversationMessage,
    InMemoryProvider,
    MemoryProvider,
    MemoryScope,
    WorkingMemory,
)

__all__ = [
    "ChatSession",
    "ConversationMessage",
    "DEFAULT_TEMPLATE",
    "InMemoryProvider",
    "MemoryConfig",
    "MemoryProvider",
    "MemoryScope",
    "WorkingMemory",
    "format_working_memory",
    "get_working_memory_instructions",
]
