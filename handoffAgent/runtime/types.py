"""Run inputs and aggregated outputs."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Literal, Optional, Sequence, Union

from langchain_core.messages import BaseMessage

if TYPE_CHECKING:
    from handoffAgent.context.conversation_state import ConversationState
    from handoffAgent.streaming.emitter import EventCallback

RoutingStrategy = Literal["agent_choice", "tool_choice", "auto", "llm"]
FinishReason = Literal["stop", "max_steps"]


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def add(self, usage_metadata: Optional[Dict[str, Any]]) -> int:
        """Accumulate a LangChain ``usage_metadata`` dict; returns its total."""
        if not usage_metadata:
            return 0
        input_tokens = int(usage_metadata.get("input_tokens") or 0)
        output_tokens = int(usage_metadata.get("output_tokens") or 0)
        total = int(usage_metadata.get("total_tokens") or input_tokens + output_tokens)
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.total_tokens += total
        return total


@dataclass(frozen=True)
class ToolCallRecord:
    id: Optional[str]
    name: str
    args: Dict[str, Any]
    result: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class StepRecord:
    """One model call of one agent turn and the tool calls it requested."""

    agent: str
    turn: int
    step: int
    text: str
    tool_calls: Sequence[ToolCallRecord] = ()
    usage: Dict[str, int] = field(default_factory=dict)
    duration: float = 0.0


@dataclass(frozen=True)
class HandoffRecord:
    from_agent: str
    to_agent: str
    reason: Optional[str] = None
    context: Optional[str] = None
    turn: int = 0
    timestamp: Optional[datetime] = None


OnHandoff = Callable[[HandoffRecord], Union[None, Awaitable[None]]]


@dataclass
class RunOptions:
    """Per-run overrides.

    Attributes:
        max_total_turns: Turn budget across all agents (settings default)
        timeout: Wall-clock budget in seconds for the whole run
        max_context_messages: History window handed to each agent
        strategy: Routing strategy; inferred from agent_choice/tool_choice when unset
        agent_choice: Start with this agent (agent_choice strategy)
        tool_choice: Start with the first agent owning this tool (tool_choice strategy)
        messages: Prior conversation history
        context: Application data exposed as ``RunContext.context``
        on_handoff: Called once per handoff; errors fail the run
        on_event: Observer of every emitted event
        chat_id: Conversation id for memory providers
        user_id: User id for memory providers and permission checks
    """

    max_total_turns: Optional[int] = None
    timeout: Optional[float] = None
    max_context_messages: Optional[int] = None
    strategy: Optional[RoutingStrategy] = None
    agent_choice: Optional[str] = None
    tool_choice: Optional[str] = None
    messages: Sequence[BaseMessage] = ()
    context: Dict[str, Any] = field(default_factory=dict)
    on_handoff: Optional[OnHandoff] = None
    on_event: Optional["EventCallback"] = None
    chat_id: Optional[str] = None
    user_id: Optional[str] = None

    def resolve_strategy(self, default: RoutingStrategy) -> RoutingStrategy:
        if self.strategy is not None:
            return self.strategy
        if self.agent_choice is not None:
            return "agent_choice"
        if self.tool_choice is not None:
            return "tool_choice"
        return default


@dataclass
class RunResult:
    """Aggregated outcome of one run."""

    text: str
    final_agent: str
    finish_reason: FinishReason
    handoffs: List[HandoffRecord] = field(default_factory=list)
    steps: List[StepRecord] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    metadata: Dict[str, Any] = field(default_factory=dict)
    conversation_state: Optional["ConversationState"] = None
    messages: List[BaseMessage] = field(default_factory=list)

    @property
    def final_output(self) -> str:
        return self.text

    @property
    def turns(self) -> int:
        return self.metadata.get("turns", 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "final_agent": self.final_agent,
            "finish_reason": self.finish_reason,
            "handoffs": [asdict(record) for record in self.handoffs],
            "steps": [asdict(step) for step in self.steps],
            "usage": asdict(self.usage),
            "metadata": {k: v.isoformat() if isinstance(v, datetime) else v for k, v in self.metadata.items()},
            "conversation_state": self.conversation_state.model_dump(mode="json") if self.conversation_state else None,
        }


__all__ = [
    "FinishReason",
    "HandoffRecord",
    "OnHandoff",
    "RoutingStrategy",
    "RunOptions",
    "RunResult",
    "StepRecord",
    "ToolCallRecord",
    "Usage",
]
