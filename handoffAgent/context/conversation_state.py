"""Conversation state shared by every agent of one run.

Holds learned facts, the active plan for compound queries, the handoff chain
and a rolling summary. Facts and handoff entries only grow during a run.
The state is a Pydantic model so it serializes to a plain record (and back)
with exact timestamps, which lets callers persist and resume it.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)

DEFAULT_RECENT_FINDINGS = 3


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Fact(BaseModel):
    value: Any
    source: str
    timestamp: datetime = Field(default_factory=_now)


class PlanStep(BaseModel):
    description: str
    completed: bool = False
    result: Optional[str] = None
    agent: Optional[str] = None


class Plan(BaseModel):
    goal: str
    steps: List[PlanStep] = Field(default_factory=list)
    next_step: Optional[str] = None

    @property
    def completed_count(self) -> int:
        return sum(1 for step in self.steps if step.completed)


class HandoffEntry(BaseModel):
    agent: str
    query: str
    findings: str
    timestamp: datetime = Field(default_factory=_now)


class ConversationState(BaseModel):
    facts: Dict[str, Fact] = Field(default_factory=dict)
    current_plan: Optional[Plan] = None
    handoff_chain: List[HandoffEntry] = Field(default_factory=list)
    conversation_summary: str = ""
    original_input: Optional[str] = None


class ConversationStateManager:
    """Mutable owner of a ConversationState for the duration of one run.

    Example:
        >>> manager = ConversationStateManager("what is my balance?")
        >>> manager.add_facts({"balance": "1200 EUR"}, source="Banking")
        >>> print(manager.build_context_prompt("Reports"))
    """

    def __init__(self, initial_input: Optional[str] = None, state: Optional[ConversationState] = None):
        self._state = state if state is not None else ConversationState(original_input=initial_input)

    @property
    def state(self) -> ConversationState:
        return self._state

    def get_state(self) -> ConversationState:
        """Return a deep copy of the current state."""
        return self._state.model_copy(deep=True)

    def update_state(self, **updates: Any) -> None:
        self._state = self._state.model_copy(update=updates)

    # ========== Mutations ==========

    def add_facts(self, facts: Mapping[str, Any], source: str) -> None:
        """Merge facts, stamping each with ``source`` and the current time.

        Last writer wins for a repeated key.
        """
        timestamp = _now()
        for key, value in facts.items():
            self._state.facts[key] = Fact(value=value, source=source, timestamp=timestamp)
        if facts:
            LOGGER.debug(f"Added {len(facts)} fact(s) from {source}: {list(facts)}")

    def add_handoff(self, agent: str, query: str, findings: str) -> None:
        self._state.handoff_chain.append(HandoffEntry(agent=agent, query=query, findings=findings))

    def set_plan(self, plan: Optional[Plan]) -> None:
        self._state.current_plan = plan

    def complete_plan_step(self, step_index: int, result: str) -> None:
        """Mark a plan step completed and store its result. Out of range is a no-op."""
        plan = self._state.current_plan
        if plan is None or not 0 <= step_index < len(plan.steps):
            return
        plan.steps[step_index].completed = True
        plan.steps[step_index].result = result
        remaining = [step for step in plan.steps if not step.completed]
        plan.next_step = remaining[0].description if remaining else None

    def next_open_step(self) -> Optional[int]:
        plan = self._state.current_plan
        if plan is None:
            return None
        for index, step in enumerate(plan.steps):
            if not step.completed:
                return index
        return None

    def update_summary(self, summary: str) -> None:
        self._state.conversation_summary = summary

    # ========== Views ==========

    def build_context_prompt(self, agent_name: str, recent_findings: int = DEFAULT_RECENT_FINDINGS) -> str:
        """Render the conversation brief handed to ``agent_name``.

        Regenerated from the current state on every call.
        """
        state = self._state
        lines: List[str] = ["## Conversation Context", ""]

        if state.conversation_summary:
            lines.extend([state.conversation_summary, ""])
        else:
            lines.extend(["This is the start of the conversation.", ""])

        if state.facts:
            lines.append("### Known Facts")
            for key, fact in state.facts.items():
                lines.append(f"- {key}: {fact.value} (from {fact.source})")
            lines.append("")

        plan = state.current_plan
        if plan is not None:
            lines.append("### Current Plan")
            lines.append(f"Goal: {plan.goal}")
            lines.append(f"Progress: {plan.completed_count}/{len(plan.steps)} steps completed")
            if plan.next_step:
                lines.append(f"Next: {plan.next_step}")
            lines.append("")

        if state.handoff_chain and recent_findings > 0:
            lines.append("### Previous Agent Findings")
            for entry in state.handoff_chain[-recent_findings:]:
                lines.append(f"- {entry.agent}: {entry.findings}")
            lines.append("")

        return "\n".join(lines).strip()

    def select_relevant_messages(self, messages: Sequence[Any], max_messages: int = 20) -> List[Any]:
        """Keep the tail of ``messages`` (at most ``max_messages`` entries)."""
        if max_messages <= 0:
            return []
        return list(messages[-max_messages:])

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        return self._state.model_dump(mode="json")

    def to_json(self) -> str:
        return self._state.model_dump_json()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversationStateManager":
        return cls(state=ConversationState.model_validate(copy.deepcopy(dict(data))))

    @classmethod
    def from_json(cls, payload: str) -> "ConversationStateManager":
        return cls(state=ConversationState.model_validate_json(payload))


__all__ = [
    "ConversationState",
    "ConversationStateManager",
    "DEFAULT_RECENT_FINDINGS",
    "Fact",
    "HandoffEntry",
    "Plan",
    "PlanStep",
]
