"""Handoff input filters.

A filter transforms the history bundle handed to the next agent:

- ``input_history``: messages that existed before the leaving agent's turn
- ``pre_handoff_items``: messages the leaving agent produced before the
  step that requested the handoff
- ``new_items``: the handoff step itself (AI message + tool results)

Filters never break a handoff: ``apply_input_filter`` logs a failing filter
and returns its input unchanged.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

if TYPE_CHECKING:
    from handoffAgent.context.run_context import RunContext

LOGGER = logging.getLogger(__name__)


@dataclass
class HandoffInputData:
    input_history: List[BaseMessage] = field(default_factory=list)
    pre_handoff_items: List[BaseMessage] = field(default_factory=list)
    new_items: List[BaseMessage] = field(default_factory=list)
    run_context: Optional["RunContext"] = None

    def all_messages(self) -> List[BaseMessage]:
        return [*self.input_history, *self.pre_handoff_items, *self.new_items]


HandoffInputFilter = Callable[[HandoffInputData], HandoffInputData]


def pass_through(data: HandoffInputData) -> HandoffInputData:
    return data


def _is_tool_message(message: Any) -> bool:
    if isinstance(message, ToolMessage):
        return True
    return isinstance(message, AIMessage) and bool(message.tool_calls)


def remove_all_tools(data: HandoffInputData) -> HandoffInputData:
    """Drop tool results and AI messages carrying tool calls."""

    def _strip(messages: List[BaseMessage]) -> List[BaseMessage]:
        return [message for message in messages if not _is_tool_message(message)]

    return replace(
        data,
        input_history=_strip(data.input_history),
        pre_handoff_items=_strip(data.pre_handoff_items),
        new_items=_strip(data.new_items),
    )


def keep_last_n_messages(n: int) -> HandoffInputFilter:
    """Keep only the last ``n`` messages of each part of the bundle.

    An invalid ``n`` (negative or not an int) leaves the data unchanged.
    """

    def _filter(data: HandoffInputData) -> HandoffInputData:
        if not isinstance(n, int) or isinstance(n, bool) or n < 0:
            LOGGER.warning(f"keep_last_n_messages: invalid n value {n!r}")
            return data

        def _tail(messages: List[BaseMessage]) -> List[BaseMessage]:
            return list(messages[-n:]) if n else []

        return replace(
            data,
            input_history=_tail(data.input_history),
            pre_handoff_items=_tail(data.pre_handoff_items),
            new_items=_tail(data.new_items),
        )

    return _filter


def _parse_tool_content(content: Any) -> Any:
    if not isinstance(content, str):
        return content
    try:
        return json.loads(content)
    except (TypeError, ValueError):
        return content


def extract_tool_results(messages: List[BaseMessage]) -> Dict[str, Any]:
    """Map tool name -> latest result found in ``messages``.

    JSON tool results are decoded; everything else is kept as text.
    """
    results: Dict[str, Any] = {}
    for message in messages:
        if isinstance(message, ToolMessage) and message.name and message.status != "error":
            results[message.name] = _parse_tool_content(message.content)
    LOGGER.debug(f"Extracted tool results: {list(results)}")
    return results


def _summarize_value(key: str, value: Any) -> str:
    if isinstance(value, list):
        return f"Available {key} data: {len(value)} items found"
    if isinstance(value, dict):
        return f"Available {key} data: {json.dumps(value, ensure_ascii=False, default=str)}"
    return f"Available {key} data: {value}"


def summarize_tool_results(exclude: Optional[List[str]] = None) -> HandoffInputFilter:
    """Replace tool traffic with one system message summarizing its results.

    Args:
        exclude: Tool names left out of the summary (the handoff tool always is)
    """
    from handoffAgent.handoff.handoff import HANDOFF_TOOL_NAME

    skipped = {HANDOFF_TOOL_NAME, *(exclude or [])}

    def _filter(data: HandoffInputData) -> HandoffInputData:
        generated = [*data.pre_handoff_items, *data.new_items]
        results = {name: value for name, value in extract_tool_results(generated).items() if name not in skipped}
        stripped = remove_all_tools(data)
        if not results:
            return stripped

        summary = "\n".join(_summarize_value(name, value) for name, value in results.items())
        history = list(stripped.input_history)
        if not history:
            history.append(HumanMessage(content="Please help with the request using the available data."))
        history.append(
            SystemMessage(
                content=(
                    f"Available data from previous agent:\n{summary}\n\n"
                    "**IMPORTANT**: Only use this data if it's DIRECTLY relevant to the current user question. "
                    "If the user is asking about something different, ignore this data and call the appropriate tools."
                )
            )
        )
        return replace(stripped, input_history=history)

    return _filter


def apply_input_filter(input_filter: Optional[HandoffInputFilter], data: HandoffInputData) -> HandoffInputData:
    """Run ``input_filter``; any failure returns ``data`` unmodified."""
    if input_filter is None:
        return data
    try:
        filtered = input_filter(data)
    except Exception as e:
        LOGGER.error(f"Handoff input filter failed, passing history through: {type(e).__name__}: {e}")
        return data
    if not isinstance(filtered, HandoffInputData):
        LOGGER.error(f"Handoff input filter returned {type(filtered).__name__}, passing history through")
        return data
    return filtered


__all__ = [
    "HandoffInputData",
    "HandoffInputFilter",
    "apply_input_filter",
    "extract_tool_results",
    "keep_last_n_messages",
    "pass_through",
    "remove_all_tools",
    "summarize_tool_results",
]
