"""Built-in tools injected by the runner."""

from .search_messages import SEARCH_MESSAGES_TOOL_NAME, create_search_messages_tool
from .shared_memory import shared_memory
from .working_memory import WORKING_MEMORY_TOOL_NAME, create_working_memory_tool

__all__ = [
    "SEARCH_MESSAGES_TOOL_NAME",
    "WORKING_MEMORY_TOOL_NAME",
    "create_search_messages_tool",
    "create_working_memory_tool",
    "shared_memory",
]
