"""Routing node: pick the first active agent of the run.

Strategies:
- agent_choice: the caller names the agent
- tool_choice: the first registered agent owning the named tool
- auto: pattern match over the entry agent's handoff targets, falling back
  to LLM triage by the entry agent itself
- llm: always start with the entry agent, which triages through its
  handoff tool
"""

from __future__ import annotations

import logging
from typing import Optional

from handoffAgent.agents.agent import Agent
from handoffAgent.context.builder import create_query_plan, is_compound_query, plan_from_query_plan
from handoffAgent.graph.session import RunSession
from handoffAgent.graph.state import OrchestrationState
from handoffAgent.routing.matcher import find_best_match
from handoffAgent.streaming.events import AgentSwitchEvent, OrchestrationStatusEvent
from handoffAgent.utils.error_handler import HandoffConfigurationError, with_error_boundary
from handoffAgent.utils.logging_utils import log_routing_decision

LOGGER = logging.getLogger(__name__)


async def _agent_owning_tool(session: RunSession, tool_name: str) -> Optional[Agent]:
    for agent in session.registry.list_agents():
        tools = await agent.get_tools(session.run_context)
        if any(tool.name == tool_name for tool in tools):
            return agent
    return None


async def select_start_agent(session: RunSession) -> Agent:
    """Apply the run's routing strategy."""
    strategy = session.routing_strategy
    options = session.options
    entry = session.entry_agent

    if strategy == "agent_choice":
        if not options.agent_choice:
            raise HandoffConfigurationError("agent_choice routing requires an agent name")
        agent = session.registry.get(options.agent_choice)
        if agent is None:
            raise HandoffConfigurationError(f"Unknown agent: {options.agent_choice}", target=options.agent_choice)
        log_routing_decision(LOGGER, "route", agent.name, "explicit agent choice")
        return agent

    if strategy == "tool_choice":
        if not options.tool_choice:
            raise HandoffConfigurationError("tool_choice routing requires a tool name")
        agent = await _agent_owning_tool(session, options.tool_choice)
        if agent is None:
            raise HandoffConfigurationError(f"No agent owns tool: {options.tool_choice}", target=options.tool_choice)
        log_routing_decision(LOGGER, "route", agent.name, f"owns tool {options.tool_choice}")
        return agent

    if strategy == "auto":
        candidates = [target for _, target in session.registry.resolve_handoffs(entry)]
        matched = find_best_match(candidates, session.input_text)
        if matched is not None:
            log_routing_decision(LOGGER, "route", matched.name, "pattern match")
            return matched
        log_routing_decision(LOGGER, "route", entry.name, "no pattern matched, LLM triage")
        return entry

    log_routing_decision(LOGGER, "route", entry.name, "LLM triage")
    return entry


async def _maybe_plan(session: RunSession) -> None:
    if session.fact_model is None or session.conversation.state.current_plan is not None:
        return
    if not await is_compound_query(session.input_text, session.fact_model):
        return
    agent_names = [agent.name for agent in session.registry.list_agents()]
    query_plan = await create_query_plan(session.input_text, agent_names, session.fact_model)
    plan = plan_from_query_plan(session.input_text, query_plan)
    session.conversation.set_plan(plan)
    LOGGER.info(f"Compound query, planned {len(plan.steps)} step(s)")


def build_route_node(session: RunSession):
    """Create the node that selects the starting agent."""

    @with_error_boundary("route", session.snapshot)
    async def route_node(state: OrchestrationState) -> dict:
        await session.emit(OrchestrationStatusEvent(agent=session.entry_agent.name, status="routing"))

        agent = await select_start_agent(session)
        session.registry.validate(agent)
        if agent.model is None:
            raise HandoffConfigurationError(f'Agent "{agent.name}" has no model', agent_name=agent.name)
        session.set_current_agent(agent)
        await _maybe_plan(session)

        await session.emit(
            AgentSwitchEvent(
                from_agent=None,
                to_agent=agent.name,
                reason="initial routing",
                routing_strategy=session.routing_strategy,
            )
        )
        return {
            "current_agent": agent.name,
            "status": "executing",
            "pending_handoff": None,
            "turns": session.turns,
            "max_total_turns": session.max_total_turns,
        }

    return route_node


__all__ = ["build_route_node", "select_start_agent"]
