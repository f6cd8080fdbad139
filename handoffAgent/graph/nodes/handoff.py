"""Handoff node: transfer control to the agent named by the last turn."""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timezone

from langchain_core.messages import SystemMessage

from handoffAgent.context.builder import extract_facts_from_response
from handoffAgent.graph.session import RunSession
from handoffAgent.graph.state import OrchestrationState
from handoffAgent.handoff.filters import HandoffInputData, apply_input_filter
from handoffAgent.handoff.handoff import ConfiguredHandoff, HandoffInstruction
from handoffAgent.runtime.types import HandoffRecord
from handoffAgent.streaming.events import AgentSwitchEvent, WorkflowProgressEvent
from handoffAgent.utils.error_handler import HandoffConfigurationError, MaxTurnsExceededError, with_error_boundary
from handoffAgent.utils.logging_utils import log_handoff

LOGGER = logging.getLogger(__name__)


def handoff_context_message(instruction: HandoffInstruction, original_input: str) -> SystemMessage:
    parts = [f"Handoff context: {instruction.context or 'none'}"]
    if instruction.reason:
        parts.append(f"(Reason: {instruction.reason})")
    return SystemMessage(content=f"{' '.join(parts)}. Original request: {original_input}")


async def _call_hook(hook, *args) -> None:
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


async def _record_findings(session: RunSession, agent_name: str, instruction: HandoffInstruction) -> None:
    findings = instruction.context or session.final_text
    if session.fact_model is not None and session.final_text:
        await extract_facts_from_response(
            session.final_text, agent_name, session.fact_model, session.conversation, query=session.input_text
        )
        return
    max_length = session.settings.context.findings_max_length
    if max_length and len(findings) > max_length:
        findings = findings[:max_length] + "..."
    session.conversation.add_handoff(agent_name, session.input_text, findings)


async def _advance_plan(session: RunSession, agent_name: str, findings: str) -> None:
    index = session.conversation.next_open_step()
    if index is None:
        return
    session.conversation.complete_plan_step(index, findings)
    plan = session.conversation.state.current_plan
    step = plan.steps[index]
    step.agent = step.agent or agent_name
    await session.emit(
        WorkflowProgressEvent(
            agent=agent_name,
            current_step=plan.completed_count,
            total_steps=len(plan.steps),
            step_name=step.description,
        )
    )


def _filter_history(session: RunSession, configured: ConfiguredHandoff) -> None:
    messages = session.messages
    data = HandoffInputData(
        input_history=list(messages[: session.turn_start]),
        pre_handoff_items=list(messages[session.turn_start : session.handoff_step_start]),
        new_items=list(messages[session.handoff_step_start :]),
        run_context=session.run_context,
    )
    filtered = apply_input_filter(configured.input_filter, data)
    session.messages = filtered.all_messages()


def build_handoff_node(session: RunSession):
    """Create the node that applies a pending handoff instruction."""

    @with_error_boundary("handoff", session.snapshot)
    async def handoff_node(state: OrchestrationState) -> dict:
        if session.turns >= session.max_total_turns:
            raise MaxTurnsExceededError(session.turns, session.max_total_turns)

        instruction = HandoffInstruction.model_validate(state["pending_handoff"])
        leaving = session.current_agent
        declared = {configured.agent_name: (configured, target) for configured, target in session.registry.resolve_handoffs(leaving)}
        if instruction.target_agent not in declared:
            raise HandoffConfigurationError(
                f'Agent "{leaving.name}" handed off to undeclared agent "{instruction.target_agent}"',
                agent_name=leaving.name,
                target=instruction.target_agent,
            )
        configured, target = declared[instruction.target_agent]

        await _record_findings(session, leaving.name, instruction)
        await _advance_plan(session, leaving.name, instruction.context or session.final_text)
        if instruction.available_data:
            for key, value in instruction.available_data.items():
                session.run_context.set_shared(key, value)

        record = HandoffRecord(
            from_agent=leaving.name,
            to_agent=target.name,
            reason=instruction.reason,
            context=instruction.context,
            turn=session.turns,
            timestamp=datetime.now(timezone.utc),
        )
        session.handoffs.append(record)
        log_handoff(LOGGER, leaving.name, target.name, instruction.reason, instruction.context)

        _filter_history(session, configured)
        session.messages.append(handoff_context_message(instruction, session.input_text))
        session.set_current_agent(target)

        await session.emit(
            AgentSwitchEvent(
                from_agent=leaving.name,
                to_agent=target.name,
                reason=instruction.reason,
                context=instruction.context,
                routing_strategy="handoff",
            )
        )

        if configured.on_handoff is not None:
            try:
                await _call_hook(configured.on_handoff, session.run_context)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                LOGGER.error(f"on_handoff hook for {target.name} failed: {e}")
        if session.options.on_handoff is not None:
            await _call_hook(session.options.on_handoff, record)

        return {"current_agent": target.name, "status": "executing", "pending_handoff": None}

    return handoff_node


__all__ = ["build_handoff_node", "handoff_context_message"]
