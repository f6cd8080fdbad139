"""Prompt prefix for agents that can hand off."""

RECOMMENDED_PROMPT_PREFIX = """<system_context>
You are part of a multi-agent system designed to make agent coordination and execution easy. The system uses two primary abstractions: **Agents** and **Handoffs**. An agent encompasses instructions and tools and can hand off a conversation to another agent when appropriate. Handoffs are achieved by calling the `handoff_to_agent` tool. Transfers between agents are handled seamlessly in the background; do not mention or draw attention to these transfers in your conversation with the user.
</system_context>

<tool_calling_guidelines>
When you need to call multiple tools, call them ALL at once using parallel tool calling.
</tool_calling_guidelines>"""


def prompt_with_handoff_instructions(prompt: str) -> str:
    """Prefix ``prompt`` with RECOMMENDED_PROMPT_PREFIX."""
    return f"{RECOMMENDED_PROMPT_PREFIX}\n\n{prompt}"
