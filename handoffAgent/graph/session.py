"""Mutable bookkeeping of one run, shared by the graph nodes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from langchain_core.messages import BaseMessage

from handoffAgent.agents.agent import Agent
from handoffAgent.agents.interfaces import ModelResolver
from handoffAgent.agents.registry import AgentRegistry
from handoffAgent.config.settings import Settings
from handoffAgent.context.conversation_state import ConversationStateManager
from handoffAgent.context.run_context import RunContext
from handoffAgent.permissions.gate import ToolPermissionContext
from handoffAgent.runtime.types import HandoffRecord, RoutingStrategy, RunOptions, StepRecord, Usage
from handoffAgent.streaming.emitter import EventEmitter
from handoffAgent.streaming.events import BaseEvent
from handoffAgent.utils.error_handler import HandoffConfigurationError

LOGGER = logging.getLogger(__name__)


@dataclass
class RunSession:
    """Everything one run accumulates.

    Only the orchestrator and tools of the active agent touch it, and agents
    never run in parallel, so no locking is needed.
    """

    registry: AgentRegistry
    entry_agent: Agent
    settings: Settings
    options: RunOptions
    run_context: RunContext
    emitter: EventEmitter
    conversation: ConversationStateManager
    input_text: str
    model_resolver: Optional[ModelResolver] = None
    fact_model: Any = None

    messages: List[BaseMessage] = field(default_factory=list)
    steps: List[StepRecord] = field(default_factory=list)
    handoffs: List[HandoffRecord] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    permission_context: ToolPermissionContext = field(default_factory=ToolPermissionContext)

    current_agent: Optional[Agent] = None
    routing_strategy: Optional[RoutingStrategy] = None
    turns: int = 0
    agent_turns: Dict[str, int] = field(default_factory=dict)
    started_agents: Set[str] = field(default_factory=set)

    # Message indexes delimiting the active turn, used by handoff input filters
    turn_start: int = 0
    handoff_step_start: int = 0

    final_text: str = ""
    finish_reason: str = "stop"
    cancelled: bool = False
    _models: Dict[str, Any] = field(default_factory=dict)

    @property
    def max_total_turns(self) -> int:
        return self.options.max_total_turns or self.settings.orchestration.max_total_turns

    @property
    def max_context_messages(self) -> int:
        if self.options.max_context_messages is not None:
            return self.options.max_context_messages
        return self.settings.context.max_context_messages

    def agent_max_turns(self, agent: Agent) -> int:
        return agent.max_turns or self.settings.orchestration.agent_max_turns

    def agent_max_steps(self, agent: Agent) -> int:
        return agent.max_steps or self.settings.orchestration.agent_max_steps

    def set_current_agent(self, agent: Agent) -> None:
        self.current_agent = agent
        self.run_context.current_agent = agent.name

    async def emit(self, event: BaseEvent) -> None:
        if self.cancelled:
            return
        await self.emitter.emit(event)

    def resolve_model(self, agent: Agent):
        """Return the chat model of ``agent``, resolving string keys once per run."""
        model = agent.model
        if model is None:
            raise HandoffConfigurationError(f'Agent "{agent.name}" has no model', agent_name=agent.name)
        if not isinstance(model, str):
            return model
        if model not in self._models:
            if self.model_resolver is None:
                raise HandoffConfigurationError(
                    f'Agent "{agent.name}" names model "{model}" but no model resolver is configured',
                    agent_name=agent.name,
                )
            self._models[model] = self.model_resolver(model)
        return self._models[model]

    def snapshot(self) -> Dict[str, Any]:
        """Partial run state attached to errors."""
        return {
            "current_agent": self.current_agent.name if self.current_agent else None,
            "turns": self.turns,
            "agent_turns": dict(self.agent_turns),
            "steps": list(self.steps),
            "handoffs": list(self.handoffs),
            "usage": self.usage,
            "conversation_state": self.conversation.get_state(),
            "messages": list(self.messages),
            "request_id": self.run_context.request_id,
            "snapshot_time": datetime.now(timezone.utc),
        }


__all__ = ["RunSession"]
