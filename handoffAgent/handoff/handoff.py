"""Handoff mechanism: the transfer tool and recognition of its result.

Each agent that declares handoff targets gets a synthetic ``handoff_to_agent``
tool whose ``target_agent`` argument is restricted to the declared names. The
tool returns a ``HandoffInstruction``; the orchestrator recognizes that value
(not the tool name) as a control transfer.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Literal, Mapping, Optional, Sequence, Union

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field, create_model

if TYPE_CHECKING:
    from handoffAgent.agents.agent import Agent
    from handoffAgent.context.run_context import RunContext
    from handoffAgent.handoff.filters import HandoffInputFilter

LOGGER = logging.getLogger(__name__)

HANDOFF_TOOL_NAME = "handoff_to_agent"


class HandoffInstruction(BaseModel):
    """Control transfer produced by the transfer tool.

    Consumed by the orchestrator immediately; never part of the final output.
    """

    target_agent: str
    context: Optional[str] = None
    reason: Optional[str] = None
    available_data: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class ConfiguredHandoff:
    """A handoff target plus per-handoff behaviour.

    Attributes:
        agent: Target agent, or its name resolved against the runner registry
        on_handoff: Called with the RunContext when control moves to ``agent``
        input_filter: Transforms the history handed to ``agent``
        tool_description: Extra description of the target for the transfer tool
    """

    agent: Union["Agent", str]
    on_handoff: Optional[Callable[["RunContext"], Union[None, Awaitable[None]]]] = None
    input_filter: Optional["HandoffInputFilter"] = None
    tool_description: Optional[str] = None

    @property
    def agent_name(self) -> str:
        return self.agent if isinstance(self.agent, str) else self.agent.name


HandoffTarget = Union["Agent", ConfiguredHandoff, str]


def handoff(
    agent: Union["Agent", str],
    *,
    on_handoff: Optional[Callable[["RunContext"], Any]] = None,
    input_filter: Optional["HandoffInputFilter"] = None,
    tool_description: Optional[str] = None,
) -> ConfiguredHandoff:
    """Wrap a target agent with per-handoff configuration.

    Example:
        triage = Agent(
            name="Triage",
            handoffs=[handoff(billing, input_filter=remove_all_tools), support],
        )
    """
    return ConfiguredHandoff(
        agent=agent,
        on_handoff=on_handoff,
        input_filter=input_filter,
        tool_description=tool_description,
    )


def as_configured_handoff(target: HandoffTarget) -> ConfiguredHandoff:
    if isinstance(target, ConfiguredHandoff):
        return target
    return ConfiguredHandoff(agent=target)


def create_handoff(
    target_agent: Union["Agent", str],
    context: Optional[str] = None,
    reason: Optional[str] = None,
) -> HandoffInstruction:
    name = target_agent if isinstance(target_agent, str) else target_agent.name
    return HandoffInstruction(target_agent=name, context=context, reason=reason)


def get_transfer_message(agent: Union["Agent", str]) -> str:
    """Tool-result content shown to the model that requested the handoff."""
    name = agent if isinstance(agent, str) else agent.name
    return json.dumps({"assistant": name})


def _describe_targets(targets: Sequence[ConfiguredHandoff]) -> str:
    lines = []
    for target in targets:
        description = target.tool_description
        if description is None and not isinstance(target.agent, str):
            description = target.agent.description
        lines.append(f"- {target.agent_name}: {description}" if description else f"- {target.agent_name}")
    return "\n".join(lines)


def create_handoff_tool(targets: Sequence[HandoffTarget]) -> BaseTool:
    """Build the transfer tool for one agent's declared targets.

    Raises:
        ValueError: ``targets`` is empty
    """
    configured = [as_configured_handoff(target) for target in targets]
    names = list(dict.fromkeys(target.agent_name for target in configured))
    if not names:
        raise ValueError("create_handoff_tool requires at least one target")

    args_schema = create_model(
        "HandoffToAgentArgs",
        target_agent=(Literal[tuple(names)], Field(description="Name of the agent to transfer to")),
        context=(Optional[str], Field(default=None, description="Context or summary to pass to the target agent")),
        reason=(Optional[str], Field(default=None, description="Reason for the handoff")),
    )

    description = (
        "Transfer the conversation to another specialized agent.\n\n"
        f"Available agents:\n{_describe_targets(configured)}"
    )

    def _transfer(target_agent: str, context: Optional[str] = None, reason: Optional[str] = None) -> HandoffInstruction:
        return create_handoff(target_agent, context=context, reason=reason)

    async def _atransfer(target_agent: str, context: Optional[str] = None, reason: Optional[str] = None) -> HandoffInstruction:
        return create_handoff(target_agent, context=context, reason=reason)

    return StructuredTool.from_function(
        func=_transfer,
        coroutine=_atransfer,
        name=HANDOFF_TOOL_NAME,
        description=description,
        args_schema=args_schema,
    )


def is_handoff_tool(tool_name: Optional[str]) -> bool:
    return tool_name == HANDOFF_TOOL_NAME


def _structural_target(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        target = value.get("target_agent", value.get("targetAgent"))
    else:
        target = getattr(value, "target_agent", getattr(value, "targetAgent", None))
    return target if isinstance(target, str) else None


def is_handoff_result(value: Any, structural: bool = False) -> bool:
    """True when a tool result is a handoff instruction.

    Only ``HandoffInstruction`` values count unless ``structural`` is set, in
    which case any mapping or object with a string ``target_agent`` (or
    ``targetAgent``) field is accepted too.
    """
    if isinstance(value, HandoffInstruction):
        return True
    if not structural:
        return False
    return _structural_target(value) is not None


def coerce_handoff(value: Any) -> HandoffInstruction:
    """Convert a recognized handoff result into a HandoffInstruction."""
    if isinstance(value, HandoffInstruction):
        return value

    def _field(name: str, alias: str) -> Any:
        if isinstance(value, Mapping):
            return value.get(name, value.get(alias))
        return getattr(value, name, getattr(value, alias, None))

    return HandoffInstruction(
        target_agent=_structural_target(value),
        context=_field("context", "context"),
        reason=_field("reason", "reason"),
        available_data=_field("available_data", "availableData"),
    )


__all__ = [
    "ConfiguredHandoff",
    "HANDOFF_TOOL_NAME",
    "HandoffInstruction",
    "HandoffTarget",
    "as_configured_handoff",
    "coerce_handoff",
    "create_handoff",
    "create_handoff_tool",
    "get_transfer_message",
    "handoff",
    "is_handoff_result",
    "is_handoff_tool",
]
