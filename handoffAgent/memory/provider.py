"""Memory provider boundary.

The orchestration core only talks to persistence through ``MemoryProvider``.
``InMemoryProvider`` is the reference implementation used in development and
tests; production stores (SQL, Redis, ...) implement the same protocol.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)

MemoryScope = Literal["chat", "user"]
MessageRole = Literal["user", "assistant", "system", "tool"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class WorkingMemory(BaseModel):
    content: str
    updated_at: datetime = Field(default_factory=_now)


class ConversationMessage(BaseModel):
    chat_id: str
    user_id: Optional[str] = None
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_now)


class ChatSession(BaseModel):
    chat_id: str
    user_id: Optional[str] = None
    title: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    message_count: int = 0


@runtime_checkable
class MemoryProvider(Protocol):
    """Persistence interface consumed by the runner.

    Only the working-memory pair is mandatory; history, chat bookkeeping and
    search are optional capabilities checked with ``hasattr``.
    """

    async def get_working_memory(
        self, scope: MemoryScope, chat_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> Optional[WorkingMemory]:
        ...

    async def update_working_memory(
        self, scope: MemoryScope, content: str, chat_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> None:
        ...


class InMemoryProvider:
    """Process-local MemoryProvider with every optional capability."""

    def __init__(self):
        self._working: Dict[Tuple[str, str], WorkingMemory] = {}
        self._messages: Dict[str, List[ConversationMessage]] = {}
        self._chats: Dict[str, ChatSession] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _key(scope: MemoryScope, chat_id: Optional[str], user_id: Optional[str]) -> Tuple[str, str]:
        owner = chat_id if scope == "chat" else user_id
        if not owner:
            raise ValueError(f"{'chat_id' if scope == 'chat' else 'user_id'} is required for {scope}-scoped working memory")
        return scope, owner

    # ========== Working memory ==========

    async def get_working_memory(self, scope, chat_id=None, user_id=None) -> Optional[WorkingMemory]:
        return self._working.get(self._key(scope, chat_id, user_id))

    async def update_working_memory(self, scope, content, chat_id=None, user_id=None) -> None:
        async with self._lock:
            self._working[self._key(scope, chat_id, user_id)] = WorkingMemory(content=content)
        LOGGER.debug(f"Working memory updated ({scope})")

    # ========== History ==========

    async def save_message(self, message: ConversationMessage) -> None:
        async with self._lock:
            self._messages.setdefault(message.chat_id, []).append(message)
            chat = self._chats.get(message.chat_id)
            if chat is not None:
                chat.message_count += 1
                chat.updated_at = message.timestamp

    async def get_messages(self, chat_id: str, limit: Optional[int] = None) -> List[ConversationMessage]:
        messages = self._messages.get(chat_id, [])
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return list(messages)

    async def search_messages(
        self,
        query: str,
        chat_id: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 10,
    ) -> List[ConversationMessage]:
        needle = query.lower()
        if chat_id is not None:
            pool = self._messages.get(chat_id, [])
        else:
            pool = [m for messages in self._messages.values() for m in messages if m.user_id == user_id]
        return [m for m in pool if needle in m.content.lower()][:limit]

    # ========== Chat sessions ==========

    async def save_chat(self, chat: ChatSession) -> None:
        async with self._lock:
            self._chats[chat.chat_id] = chat

    async def get_chat(self, chat_id: str) -> Optional[ChatSession]:
        return self._chats.get(chat_id)

    async def get_chats(self, user_id: Optional[str] = None, limit: Optional[int] = None) -> List[ChatSession]:
        chats = [chat for chat in self._chats.values() if user_id is None or chat.user_id == user_id]
        chats.sort(key=lambda chat: chat.updated_at, reverse=True)
        return chats[:limit] if limit else chats

    async def update_chat_title(self, chat_id: str, title: str) -> None:
        chat = self._chats.get(chat_id)
        if chat is None:
            raise KeyError(f"Chat not found: {chat_id}")
        chat.title = title
        chat.updated_at = _now()


__all__ = [
    "ChatSession",
    "ConversationMessage",
    "InMemoryProvider",
    "MemoryProvider",
    "MemoryScope",
    "WorkingMemory",
]
