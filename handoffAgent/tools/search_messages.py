"""``search_messages`` tool over a MemoryProvider's history."""

import json
import logging
from typing import Optional

from langchain_core.tools import BaseTool, StructuredTool

from handoffAgent.memory.provider import MemoryProvider

LOGGER = logging.getLogger(__name__)

SEARCH_MESSAGES_TOOL_NAME = "search_messages"


def create_search_messages_tool(
    provider: MemoryProvider,
    chat_id: Optional[str] = None,
    user_id: Optional[str] = None,
    default_limit: int = 5,
) -> Optional[BaseTool]:
    """Build the search tool, or None when the provider cannot search."""
    if not hasattr(provider, "search_messages"):
        return None

    async def _search(query: str, limit: Optional[int] = None) -> str:
        """Search earlier conversation messages.

        Args:
            query: Text to look for
            limit: Max results
        """
        messages = await provider.search_messages(
            query, chat_id=chat_id, user_id=user_id, limit=limit or default_limit
        )
        LOGGER.debug(f"search_messages({query!r}) -> {len(messages)} hits")
        if not messages:
            return "No matching messages found."
        return json.dumps(
            [
                {"role": m.role, "content": m.content, "timestamp": m.timestamp.isoformat()}
                for m in messages
            ],
            ensure_ascii=False,
        )

    return StructuredTool.from_function(
        coroutine=_search,
        name=SEARCH_MESSAGES_TOOL_NAME,
        description="Search earlier messages of this conversation by text.",
    )


__all__ = ["SEARCH_MESSAGES_TOOL_NAME", "create_search_messages_tool"]
