"""Agent-to-agent control transfer."""

from .filters import (
    HandoffInputData,
    HandoffInputFilter,
    apply_input_filter,
    extract_tool_results,
    keep_last_n_messages,
    pass_through,
    remove_all_tools,
    summarize_tool_results,
)
from .handoff import (
    HANDOFF_TOOL_NAME,
    ConfiguredHandoff,
    HandoffInstruction,
    HandoffTarget,
    as_configured_handoff,
    coerce_handoff,
    create_handoff,
    create_handoff_tool,
    get_transfer_message,
    handoff,
    is_handoff_result,
    is_handoff_tool,
)
from .prompt import RECOMMENDED_PROMPT_PREFIX, prompt_with_handoff_instructions

__all__ = [
    "ConfiguredHandoff",
    "HANDOFF_TOOL_NAME",
    "HandoffInputData",
    "HandoffInputFilter",
    "HandoffInstruction",
    "HandoffTarget",
    "RECOMMENDED_PROMPT_PREFIX",
    "apply_input_filter",
    "as_configured_handoff",
    "coerce_handoff",
    "create_handoff",
    "create_handoff_tool",
    "extract_tool_results",
    "get_transfer_message",
    "handoff",
    "is_handoff_result",
    "is_handoff_tool",
    "keep_last_n_messages",
    "pass_through",
    "prompt_with_handoff_instructions",
    "remove_all_tools",
    "summarize_tool_results",
]
