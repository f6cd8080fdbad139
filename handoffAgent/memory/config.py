"""Per-agent memory configuration and working-memory prompt rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from handoffAgent.memory.provider import MemoryProvider, MemoryScope, WorkingMemory

DEFAULT_TEMPLATE = """# Working Memory

## User Profile
- Name:
- Role:
- Preferences:

## Current Focus
- Goal:
- Open questions:

## Key Facts
- """


@dataclass(frozen=True)
class MemoryConfig:
    """What an agent loads from and saves to its MemoryProvider.

    Attributes:
        provider: Backing store
        working_memory: Inject working memory and the update tool
        scope: "chat" (per conversation) or "user" (across conversations)
        template: Initial working-memory document
        history: Load prior chat messages before the run, save after
        history_limit: Messages loaded when ``history`` is on
        chats: Create/update ChatSession records
    """

    provider: MemoryProvider
    working_memory: bool = True
    scope: MemoryScope = "chat"
    template: str = DEFAULT_TEMPLATE
    history: bool = False
    history_limit: int = 10
    chats: bool = False


def format_working_memory(memory: Optional[WorkingMemory], template: str = DEFAULT_TEMPLATE) -> str:
    content = memory.content if memory is not None else template
    return f"<working_memory>\n{content.strip()}\n</working_memory>"


def get_working_memory_instructions(template: str = DEFAULT_TEMPLATE) -> str:
    return (
        "You have a working memory (shown above) that persists across conversations. "
        "When you learn something important about the user or the task, call the "
        "`update_working_memory` tool with the FULL updated document following this structure:\n"
        f"{template.strip()}\n"
        "Do not mention the working memory to the user."
    )


__all__ = ["DEFAULT_TEMPLATE", "MemoryConfig", "format_working_memory", "get_working_memory_instructions"]
