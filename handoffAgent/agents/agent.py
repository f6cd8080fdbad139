"""Agent definition.

An Agent is an immutable description of one participant in a run. It owns no
run state; everything mutable lives in RunContext and the run session.

Example:
    billing = Agent(
        name="Billing",
        description="Invoices, refunds and payment methods",
        instructions="You answer billing questions.",
        model=ChatOpenAI(model="gpt-4o-mini"),
        tools=[lookup_invoice],
        match_on=["invoice", "refund", re.compile(r"charge[ds]?")],
    )
    triage = Agent(name="Triage", instructions="Route the user.", model="chat", handoffs=[billing])
"""

from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from langchain_core.tools import BaseTool

from handoffAgent.handoff.handoff import ConfiguredHandoff, HandoffTarget, as_configured_handoff
from handoffAgent.handoff.prompt import prompt_with_handoff_instructions

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from handoffAgent.context.run_context import RunContext
    from handoffAgent.guardrails.executor import InputGuardrail, OutputGuardrail
    from handoffAgent.memory.config import MemoryConfig
    from handoffAgent.permissions.gate import ToolPermissionPolicy
    from handoffAgent.routing.matcher import MatchOn

Instructions = Union[str, Callable[["RunContext"], Any]]
ToolSource = Union[Sequence[BaseTool], Mapping[str, BaseTool], Callable[["RunContext"], Any]]


@dataclass(frozen=True, eq=False)
class Agent:
    """One named participant: instructions, model, tools and handoff targets.

    Attributes:
        name: Unique within a run
        instructions: Fixed system prompt or ``(run_context) -> str`` (sync or async)
        model: LangChain chat model, or a key resolved by the runner's ModelResolver
        description: One-line summary shown to triage and in the transfer tool
        tools: List or name->tool mapping of LangChain tools, or ``(run_context) -> tools``
        handoffs: Agents (or ConfiguredHandoff / agent names) this agent may transfer to
        input_guardrails: Checks run on the user input before this agent's first turn
        output_guardrails: Checks run on the final output when this agent finishes the run
        permissions: Tool authorization policy
        match_on: Routing hints (keywords, regexes or predicate)
        max_turns: Times this agent may be invoked in one run
        max_steps: Model calls inside one turn (tool round trips)
        last_messages: History window override for this agent
        model_settings: Extra kwargs bound onto the model (temperature, ...)
        memory: Working-memory and history configuration
    """

    name: str
    instructions: Instructions = ""
    model: Union["BaseChatModel", str, None] = None
    description: Optional[str] = None
    tools: ToolSource = ()
    handoffs: Sequence[HandoffTarget] = ()
    input_guardrails: Sequence["InputGuardrail"] = ()
    output_guardrails: Sequence["OutputGuardrail"] = ()
    permissions: Optional["ToolPermissionPolicy"] = None
    match_on: Optional["MatchOn"] = None
    max_turns: Optional[int] = None
    max_steps: Optional[int] = None
    last_messages: Optional[int] = None
    model_settings: Mapping[str, Any] = field(default_factory=dict)
    memory: Optional["MemoryConfig"] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Agent name must be a non-empty string")
        # Freeze sequences so agents can be shared between runs
        object.__setattr__(self, "handoffs", tuple(self.handoffs or ()))
        object.__setattr__(self, "input_guardrails", tuple(self.input_guardrails or ()))
        object.__setattr__(self, "output_guardrails", tuple(self.output_guardrails or ()))
        object.__setattr__(self, "model_settings", dict(self.model_settings or {}))
        if not callable(self.tools) and not isinstance(self.tools, Mapping):
            object.__setattr__(self, "tools", tuple(self.tools or ()))
        if self.max_turns is not None and self.max_turns < 1:
            raise ValueError(f"max_turns of {self.name} must be >= 1")
        if self.max_steps is not None and self.max_steps < 1:
            raise ValueError(f"max_steps of {self.name} must be >= 1")

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r})"

    async def get_instructions(self, run_context: "RunContext") -> str:
        """Resolve the system prompt for this run.

        Agents with handoffs get the multi-agent prefix in front.
        """
        instructions = self.instructions
        if callable(instructions):
            instructions = instructions(run_context)
            if inspect.isawaitable(instructions):
                instructions = await instructions
        instructions = instructions or ""
        if self.handoffs:
            return prompt_with_handoff_instructions(instructions)
        return instructions

    async def get_tools(self, run_context: "RunContext") -> List[BaseTool]:
        tools = self.tools
        if callable(tools) and not isinstance(tools, BaseTool):
            tools = tools(run_context)
            if inspect.isawaitable(tools):
                tools = await tools
        if isinstance(tools, Mapping):
            return list(tools.values())
        return list(tools or ())

    def get_configured_handoffs(self) -> Tuple[ConfiguredHandoff, ...]:
        return tuple(as_configured_handoff(target) for target in self.handoffs)

    def handoff_names(self) -> List[str]:
        return [target.agent_name for target in self.get_configured_handoffs()]

    def clone(self, **changes: Any) -> "Agent":
        """Copy with some fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        model = self.model if isinstance(self.model, str) or self.model is None else type(self.model).__name__
        return {
            "name": self.name,
            "description": self.description,
            "model": model,
            "handoffs": self.handoff_names(),
            "max_turns": self.max_turns,
        }


__all__ = ["Agent", "Instructions", "ToolSource"]
