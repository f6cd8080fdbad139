"""Message formatting and history hygiene utilities."""

from __future__ import annotations

from typing import Any, List, Set

from langchain_core.messages import AIMessage, BaseMessage, ToolMessage


def stringify_content(content: Any) -> str:
    """Convert message content to string.

    Handles list content (content blocks), dict blocks with a "text" field and
    plain strings. Non-text blocks (tool_use, images) are skipped.
    """
    if content is None:
        return ""
    if isinstance(content, list):
        pieces: list[str] = []
        for item in content:
            if isinstance(item, str):
                pieces.append(item)
            elif isinstance(item, dict):
                if item.get("type", "text") == "text" and "text" in item:
                    pieces.append(str(item["text"]))
        return "".join(pieces)
    return str(content)


def get_tool_call_id(tool_call: Any) -> Any:
    return tool_call.get("id") if isinstance(tool_call, dict) else getattr(tool_call, "id", None)


def has_tool_calls(message: BaseMessage) -> bool:
    return isinstance(message, AIMessage) and bool(getattr(message, "tool_calls", None))


def repair_tool_pairs(messages: List[BaseMessage]) -> List[BaseMessage]:
    """Drop tool messages whose call is absent and AI messages with unanswered calls.

    Providers reject histories where a tool result has no preceding call (or a
    call has no result). Windowing the tail of a history can cut such pairs;
    this never adds messages, it only removes broken halves.
    """
    answered: Set[str] = set()
    requested: Set[str] = set()
    for msg in messages:
        if isinstance(msg, ToolMessage) and msg.tool_call_id:
            answered.add(msg.tool_call_id)
        elif has_tool_calls(msg):
            for tc in msg.tool_calls:
                tc_id = get_tool_call_id(tc)
                if tc_id:
                    requested.add(tc_id)

    cleaned: List[BaseMessage] = []
    for msg in messages:
        if isinstance(msg, ToolMessage):
            if msg.tool_call_id not in requested:
                continue
        elif has_tool_calls(msg):
            ids = [get_tool_call_id(tc) for tc in msg.tool_calls]
            if any(tc_id and tc_id not in answered for tc_id in ids):
                continue
        cleaned.append(msg)
    return cleaned


__all__ = ["get_tool_call_id", "has_tool_calls", "repair_tool_pairs", "stringify_content"]
