"""Context assembly for the next active agent.

``build_contextual_messages`` replaces naive history truncation: the agent
receives a synthesized system brief of the conversation state followed by the
tail of the message history. The LLM helpers below feed that state (facts,
plans) and degrade to heuristics when the model call fails.
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Sequence

from langchain_core.messages import BaseMessage, SystemMessage
from pydantic import BaseModel, Field

from handoffAgent.context.conversation_state import (
    ConversationStateManager,
    DEFAULT_RECENT_FINDINGS,
    Plan,
    PlanStep,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 20


def build_contextual_messages(
    messages: Sequence[BaseMessage],
    conversation_state: ConversationStateManager,
    current_agent: Any,
    max_messages: int = DEFAULT_MAX_MESSAGES,
    recent_findings: int = DEFAULT_RECENT_FINDINGS,
) -> List[BaseMessage]:
    """Return ``[brief] + last max_messages of messages``.

    Args:
        messages: Full message history of the run
        conversation_state: Current state; the brief is rendered from it now
        current_agent: Agent (or anything with ``name``) receiving the context
        max_messages: Size of the history window
        recent_findings: Handoff-chain entries shown in the brief

    Returns:
        New list with at most ``max_messages + 1`` entries
    """
    agent_name = getattr(current_agent, "name", str(current_agent))
    brief = conversation_state.build_context_prompt(agent_name, recent_findings=recent_findings)
    window = conversation_state.select_relevant_messages(messages, max_messages)
    if len(window) < len(messages):
        LOGGER.debug(f"Context window for {agent_name}: {len(messages)} -> {len(window)} messages")
    return [SystemMessage(content=brief)] + window


# ========== LLM helpers ==========


class ExtractedFact(BaseModel):
    key: str
    value: str
    source: str = ""


class FactExtraction(BaseModel):
    """Facts worth remembering from one agent response."""

    facts: List[ExtractedFact] = Field(default_factory=list)
    summary: str = Field(description="Brief summary of what the agent discovered")


class CompoundQueryAnalysis(BaseModel):
    is_compound: bool
    reasoning: str = ""


class ProposedStep(BaseModel):
    action: str
    why: str = ""
    method: str = ""


class QueryPlan(BaseModel):
    analysis: str
    information_needed: List[str] = Field(default_factory=list)
    proposed_steps: List[ProposedStep] = Field(default_factory=list)


FACT_EXTRACTION_PROMPT = """Extract key facts from this agent response:

Agent: {agent_name}
Response: {response}

What factual information should we remember? Focus on:
- Numbers (balances, amounts, metrics)
- Decisions made
- Items found or identified
- Status information

Provide a brief summary of what this agent discovered."""

COMPOUND_QUERY_PROMPT = """Analyze this user query to determine if it's compound (requires multiple steps or information sources):

Query: "{query}"

A compound query typically:
- Asks for multiple pieces of information
- Needs sequential steps (find X, then check Y)
- Combines different domains

Is this a compound query?"""

QUERY_PLAN_PROMPT = """Create an execution plan for this compound query:

Query: "{query}"

Available agents: {agents}

Think through what the user is really asking for, which information is needed,
and which agents can provide each piece. Create a step-by-step plan."""

_COMPOUND_HINTS = (
    re.compile(r"\b(and|then|also|plus)\b", re.IGNORECASE),
    re.compile(r"\b(afford|compare|versus)\b", re.IGNORECASE),
)


async def extract_facts_from_response(
    response: str,
    agent_name: str,
    model,
    conversation_state: ConversationStateManager,
    query: str = "...",
) -> None:
    """Merge facts extracted by ``model`` and append a handoff-chain entry.

    On model failure only a handoff entry with a truncated response is added.
    """
    try:
        extractor = model.with_structured_output(FactExtraction)
        result: FactExtraction = await extractor.ainvoke(
            FACT_EXTRACTION_PROMPT.format(agent_name=agent_name, response=response)
        )
        conversation_state.add_facts({fact.key: fact.value for fact in result.facts}, agent_name)
        conversation_state.add_handoff(agent_name, query, result.summary)
    except Exception as e:
        LOGGER.warning(f"Failed to extract facts from {agent_name} response: {e}")
        findings = response if len(response) <= 200 else response[:200] + "..."
        conversation_state.add_handoff(agent_name, query, findings)


async def is_compound_query(query: str, model) -> bool:
    """Ask ``model`` whether the query needs several steps; regex heuristic on failure."""
    try:
        analyzer = model.with_structured_output(CompoundQueryAnalysis)
        result: CompoundQueryAnalysis = await analyzer.ainvoke(COMPOUND_QUERY_PROMPT.format(query=query))
        return result.is_compound
    except Exception as e:
        LOGGER.warning(f"Failed to analyze query complexity: {e}")
        return any(pattern.search(query) for pattern in _COMPOUND_HINTS)


async def create_query_plan(query: str, available_agents: Sequence[str], model) -> QueryPlan:
    """Ask ``model`` for a step plan; a single generic step on failure."""
    try:
        planner = model.with_structured_output(QueryPlan)
        return await planner.ainvoke(QUERY_PLAN_PROMPT.format(query=query, agents=", ".join(available_agents)))
    except Exception as e:
        LOGGER.warning(f"Failed to create query plan: {e}")
        return QueryPlan(
            analysis=f"User wants: {query}",
            information_needed=["Information to answer the query"],
            proposed_steps=[ProposedStep(action="Gather information", why="To answer the user query", method="Use appropriate agent")],
        )


def plan_from_query_plan(query: str, query_plan: QueryPlan) -> Plan:
    steps = [PlanStep(description=step.action) for step in query_plan.proposed_steps]
    return Plan(goal=query, steps=steps, next_step=steps[0].description if steps else None)


__all__ = [
    "CompoundQueryAnalysis",
    "DEFAULT_MAX_MESSAGES",
    "ExtractedFact",
    "FactExtraction",
    "ProposedStep",
    "QueryPlan",
    "build_contextual_messages",
    "create_query_plan",
    "extract_facts_from_response",
    "is_compound_query",
    "plan_from_query_plan",
]
