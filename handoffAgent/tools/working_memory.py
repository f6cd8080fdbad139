"""``update_working_memory`` tool bound to one agent's MemoryConfig."""

import logging
from typing import Optional

from langchain_core.tools import BaseTool, StructuredTool

from handoffAgent.memory.config import MemoryConfig

LOGGER = logging.getLogger(__name__)

WORKING_MEMORY_TOOL_NAME = "update_working_memory"


def create_working_memory_tool(
    memory: MemoryConfig,
    chat_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> BaseTool:
    """Build the tool that replaces the working-memory document."""

    async def _update(content: str) -> str:
        await memory.provider.update_working_memory(memory.scope, content, chat_id=chat_id, user_id=user_id)
        LOGGER.info(f"Working memory updated ({memory.scope}, {len(content)} chars)")
        return "Working memory updated."

    return StructuredTool.from_function(
        coroutine=_update,
        name=WORKING_MEMORY_TOOL_NAME,
        description=(
            "Replace the persistent working memory with an updated document. "
            "Always send the FULL document, not a diff."
        ),
    )


__all__ = ["WORKING_MEMORY_TOOL_NAME", "create_working_memory_tool"]
