"""Complete node: output guardrails and the final agent-complete event."""

from __future__ import annotations

import logging

from handoffAgent.graph.session import RunSession
from handoffAgent.graph.state import OrchestrationState
from handoffAgent.guardrails.executor import run_output_guardrails
from handoffAgent.streaming.events import AgentCompleteEvent, OrchestrationStatusEvent
from handoffAgent.utils.error_handler import with_error_boundary

LOGGER = logging.getLogger(__name__)


def build_complete_node(session: RunSession):
    """Create the node that finalizes the run with the active agent's answer."""

    @with_error_boundary("complete", session.snapshot)
    async def complete_node(state: OrchestrationState) -> dict:
        agent = session.current_agent
        await session.emit(OrchestrationStatusEvent(agent=agent.name, status="completing"))

        await run_output_guardrails(agent.output_guardrails, session.final_text, session.run_context)

        await session.emit(
            AgentCompleteEvent(agent=agent.name, text=session.final_text, finish_reason=session.finish_reason)
        )
        LOGGER.info(f"Run completed by {agent.name} after {session.turns} turn(s)")
        return {"status": "done"}

    return complete_node
