"""Cross-agent coordination tool over ``RunContext.shared_memory``."""

import json
import logging
from typing import Any, Literal, Optional

from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool

from handoffAgent.context.run_context import get_run_context

LOGGER = logging.getLogger(__name__)


@tool
def shared_memory(
    action: Literal["read", "write", "list"],
    config: RunnableConfig,
    key: Optional[str] = None,
    value: Optional[Any] = None,
) -> str:
    """Read or write data shared between the agents of this conversation.

    Use it to leave findings for the agent you hand off to, or to pick up what
    a previous agent stored. Writes overwrite any previous value for the key.

    Args:
        action: "read" a key, "write" a key, or "list" all keys
        key: Entry name (required for read/write)
        value: JSON-serializable value to store (write only)
    """
    run_context = get_run_context(config)
    if run_context is None:
        return "Error: shared memory is not available outside a run"

    memory = run_context.shared_memory
    if action == "list":
        return json.dumps(sorted(memory.keys()))
    if not key:
        return f"Error: key is required for {action}"
    if action == "read":
        if key not in memory:
            return f"No shared value for '{key}'"
        return json.dumps(memory[key], default=str, ensure_ascii=False)

    run_context.set_shared(key, value)
    LOGGER.debug(f"shared_memory[{key}] written by {run_context.current_agent}")
    return f"Stored '{key}'"


__all__ = ["shared_memory"]
