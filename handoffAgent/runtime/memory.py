"""Run-level history load/save through an agent's MemoryProvider."""

from __future__ import annotations

import logging
from typing import List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from handoffAgent.memory.config import MemoryConfig
from handoffAgent.memory.provider import ChatSession, ConversationMessage

LOGGER = logging.getLogger(__name__)

_TITLE_LENGTH = 50


def _to_message(message: ConversationMessage) -> Optional[BaseMessage]:
    if message.role == "user":
        return HumanMessage(content=message.content)
    if message.role == "assistant":
        return AIMessage(content=message.content)
    if message.role == "system":
        return SystemMessage(content=message.content)
    return None


async def load_history(memory: Optional[MemoryConfig], chat_id: Optional[str]) -> List[BaseMessage]:
    """Prior messages of ``chat_id``; empty when history is off or unsupported."""
    if memory is None or not memory.history or not chat_id:
        return []
    if not hasattr(memory.provider, "get_messages"):
        LOGGER.warning(f"{type(memory.provider).__name__} does not support message history")
        return []
    stored = await memory.provider.get_messages(chat_id, limit=memory.history_limit)
    messages = [message for message in map(_to_message, stored) if message is not None]
    LOGGER.debug(f"Loaded {len(messages)} history message(s) for chat {chat_id}")
    return messages


async def save_exchange(
    memory: Optional[MemoryConfig],
    chat_id: Optional[str],
    user_id: Optional[str],
    user_text: str,
    assistant_text: str,
) -> None:
    """Persist the user input and final answer, creating the chat record if needed."""
    if memory is None or not chat_id:
        return
    provider = memory.provider

    if memory.chats and hasattr(provider, "get_chat") and hasattr(provider, "save_chat"):
        if await provider.get_chat(chat_id) is None:
            title = user_text[:_TITLE_LENGTH].strip() or None
            await provider.save_chat(ChatSession(chat_id=chat_id, user_id=user_id, title=title))
            LOGGER.info(f"Created chat {chat_id}")

    if memory.history and hasattr(provider, "save_message"):
        await provider.save_message(ConversationMessage(chat_id=chat_id, user_id=user_id, role="user", content=user_text))
        await provider.save_message(
            ConversationMessage(chat_id=chat_id, user_id=user_id, role="assistant", content=assistant_text)
        )


__all__ = ["load_history", "save_exchange"]
