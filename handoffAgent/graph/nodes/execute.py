"""Execute node: one turn of the active agent.

A turn is a bounded loop of model steps. Each step streams one model call;
requested tool calls are authorized, executed (concurrently when allowed)
and answered with ToolMessages. The turn ends when the model stops calling
tools, when a handoff instruction comes back, or when the agent runs out of
steps.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from langchain_core.messages import AIMessage, AIMessageChunk, SystemMessage, ToolMessage, message_chunk_to_message
from langchain_core.tools import BaseTool
from pydantic import BaseModel

from handoffAgent.agents.agent import Agent
from handoffAgent.context.builder import build_contextual_messages
from handoffAgent.context.run_context import RUN_CONTEXT_KEY
from handoffAgent.graph.session import RunSession
from handoffAgent.graph.state import OrchestrationState
from handoffAgent.guardrails.executor import run_input_guardrails
from handoffAgent.handoff.handoff import (
    HandoffInstruction,
    coerce_handoff,
    create_handoff_tool,
    get_transfer_message,
    is_handoff_result,
    is_handoff_tool,
)
from handoffAgent.memory.config import format_working_memory, get_working_memory_instructions
from handoffAgent.permissions.gate import check_tool_permission, track_tokens, track_tool_call
from handoffAgent.runtime.types import StepRecord, ToolCallRecord
from handoffAgent.streaming.events import (
    AgentThinkingEvent,
    OrchestrationStatusEvent,
    TextDeltaEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from handoffAgent.tools.search_messages import create_search_messages_tool
from handoffAgent.tools.shared_memory import shared_memory
from handoffAgent.tools.working_memory import create_working_memory_tool
from handoffAgent.utils.error_handler import (
    AgentsError,
    MaxTurnsExceededError,
    ModelInvocationError,
    ToolCallError,
    ToolPermissionDeniedError,
    with_error_boundary,
)
from handoffAgent.utils.logging_utils import log_tool_call, log_tool_result, log_turn_start
from handoffAgent.utils.message_utils import get_tool_call_id, repair_tool_pairs, stringify_content

LOGGER = logging.getLogger(__name__)


@dataclass
class _ToolOutcome:
    call_id: Optional[str]
    name: str
    args: Dict[str, Any]
    value: Any = None
    error: Optional[str] = None


# ========== Prompt and tools ==========


def _memory_ids(session: RunSession) -> Tuple[Optional[str], Optional[str]]:
    context = session.run_context.context
    return (
        session.options.chat_id or context.get("chat_id"),
        session.options.user_id or context.get("user_id"),
    )


def _memory_owner_missing(session: RunSession, agent: Agent) -> bool:
    chat_id, user_id = _memory_ids(session)
    return (chat_id if agent.memory.scope == "chat" else user_id) is None


async def build_system_prompt(session: RunSession, agent: Agent) -> str:
    """Agent instructions plus working memory when configured."""
    prompt = await agent.get_instructions(session.run_context)
    memory = agent.memory
    if memory is None or not memory.working_memory:
        return prompt
    if _memory_owner_missing(session, agent):
        LOGGER.warning(f"{agent.name}: working memory skipped, no {memory.scope} id for this run")
        return prompt

    chat_id, user_id = _memory_ids(session)
    working_memory = await memory.provider.get_working_memory(memory.scope, chat_id=chat_id, user_id=user_id)
    sections = [prompt, format_working_memory(working_memory, memory.template), get_working_memory_instructions(memory.template)]
    return "\n\n".join(section for section in sections if section)


async def collect_tools(session: RunSession, agent: Agent) -> Dict[str, BaseTool]:
    """Agent tools plus the runner-provided ones, keyed by name.

    Agent tools win over built-ins of the same name.
    """
    tools: Dict[str, BaseTool] = {}
    for tool in await agent.get_tools(session.run_context):
        tools[tool.name] = tool

    builtins: List[BaseTool] = []
    if agent.handoffs:
        targets = [
            dataclasses.replace(configured, agent=target)
            for configured, target in session.registry.resolve_handoffs(agent)
        ]
        builtins.append(create_handoff_tool(targets))
    if len(session.registry) > 1:
        builtins.append(shared_memory)

    memory = agent.memory
    if memory is not None and not _memory_owner_missing(session, agent):
        chat_id, user_id = _memory_ids(session)
        if memory.working_memory:
            builtins.append(create_working_memory_tool(memory, chat_id=chat_id, user_id=user_id))
        if memory.history:
            search_tool = create_search_messages_tool(memory.provider, chat_id=chat_id, user_id=user_id)
            if search_tool is not None:
                builtins.append(search_tool)

    for tool in builtins:
        if tool.name in tools:
            LOGGER.warning(f"{agent.name}: tool {tool.name} shadows the built-in of the same name")
            continue
        tools[tool.name] = tool
    return tools


def bind_model(session: RunSession, agent: Agent, tools: Dict[str, BaseTool]):
    model = session.resolve_model(agent)
    if tools:
        model = model.bind_tools(list(tools.values()))
    if agent.model_settings:
        model = model.bind(**agent.model_settings)
    return model


def build_turn_messages(session: RunSession, agent: Agent, system_prompt: str) -> List[Any]:
    """System prompt with the conversation brief, followed by the history window."""
    window = agent.last_messages if agent.last_messages is not None else session.max_context_messages
    contextual = build_contextual_messages(
        session.messages,
        session.conversation,
        agent,
        max_messages=window,
        recent_findings=session.settings.context.recent_handoff_findings,
    )
    brief, history = contextual[0], contextual[1:]
    system = "\n\n".join(part for part in (system_prompt, brief.content) if part)
    return [SystemMessage(content=system)] + repair_tool_pairs(history)


# ========== Model call ==========


async def call_model(session: RunSession, agent: Agent, model, messages: Sequence[Any]) -> AIMessage:
    """Stream one model call, emitting text deltas, and return the full message."""
    aggregate = None
    try:
        async for chunk in model.astream(messages):
            if isinstance(chunk, AIMessageChunk):
                aggregate = chunk if aggregate is None else aggregate + chunk
            else:
                aggregate = chunk
            delta = stringify_content(chunk.content)
            if delta:
                await session.emit(TextDeltaEvent(agent=agent.name, delta=delta))
    except (AgentsError, asyncio.CancelledError):
        raise
    except Exception as e:
        LOGGER.error(f"{agent.name}: model call failed: {type(e).__name__}: {e}")
        raise ModelInvocationError(agent.name, e) from e

    if aggregate is None:
        aggregate = AIMessage(content="")
    message = message_chunk_to_message(aggregate) if isinstance(aggregate, AIMessageChunk) else aggregate
    # `name` is sent to the provider, which rejects names containing spaces
    message.response_metadata["agent"] = agent.name
    return message


# ========== Tool calls ==========


def _tool_content(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


async def _run_tool_call(session: RunSession, agent: Agent, tools: Dict[str, BaseTool], call: Dict[str, Any]) -> _ToolOutcome:
    name = call["name"]
    args = call.get("args") or {}
    outcome = _ToolOutcome(call_id=get_tool_call_id(call), name=name, args=args)
    policy = session.settings.orchestration

    await session.emit(ToolCallEvent(agent=agent.name, tool_call_id=outcome.call_id, tool_name=name, args=args))
    log_tool_call(LOGGER, agent.name, name, args)

    tool = tools.get(name)
    if tool is None:
        error = ToolCallError(name, LookupError(f"tool {name} is not available to {agent.name}"))
        if policy.tool_error_policy == "raise":
            raise error
        outcome.error = str(error)
        return outcome

    if not is_handoff_tool(name):
        try:
            await check_tool_permission(agent.permissions, name, args, session.permission_context)
        except ToolPermissionDeniedError as e:
            if policy.permission_denied_policy == "raise":
                raise
            outcome.error = str(e)
            return outcome
        track_tool_call(session.permission_context.usage, name)

    try:
        outcome.value = await tool.ainvoke(args, config={"configurable": {RUN_CONTEXT_KEY: session.run_context}})
    except (AgentsError, asyncio.CancelledError):
        raise
    except Exception as e:
        error = ToolCallError(name, e)
        log_tool_result(LOGGER, agent.name, name, e, success=False)
        if policy.tool_error_policy == "raise":
            raise error from e
        outcome.error = str(error)
        return outcome

    log_tool_result(LOGGER, agent.name, name, outcome.value)
    return outcome


def _consume_exception(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


async def execute_tool_calls(
    session: RunSession, agent: Agent, tools: Dict[str, BaseTool], calls: Sequence[Dict[str, Any]]
) -> List[_ToolOutcome]:
    """Run the tool calls of one step.

    Dispatched calls are shielded: if the run is cancelled they still finish,
    but their results are dropped with the cancelled turn.
    """
    if session.cancelled:
        raise asyncio.CancelledError()

    if session.settings.orchestration.parallel_tool_calls and len(calls) > 1:
        gathered = asyncio.gather(*(_run_tool_call(session, agent, tools, call) for call in calls))
        gathered.add_done_callback(_consume_exception)
        return list(await asyncio.shield(gathered))

    outcomes = []
    for call in calls:
        if session.cancelled:
            raise asyncio.CancelledError()
        task = asyncio.ensure_future(_run_tool_call(session, agent, tools, call))
        task.add_done_callback(_consume_exception)
        outcomes.append(await asyncio.shield(task))
    return outcomes


async def answer_tool_calls(
    session: RunSession, agent: Agent, outcomes: Sequence[_ToolOutcome]
) -> Tuple[List[ToolMessage], List[ToolCallRecord], Optional[HandoffInstruction]]:
    """Turn outcomes into ToolMessages, recognizing at most one handoff."""
    structural = session.settings.orchestration.structural_handoffs
    handoff: Optional[HandoffInstruction] = None
    messages: List[ToolMessage] = []
    records: List[ToolCallRecord] = []

    for outcome in outcomes:
        status = "success"
        result: Any = outcome.value
        if outcome.error is not None:
            content, status = f"Error: {outcome.error}", "error"
        elif is_handoff_result(outcome.value, structural=structural):
            instruction = coerce_handoff(outcome.value)
            result = instruction.model_dump(exclude_none=True)
            if handoff is None:
                handoff = instruction
                content = get_transfer_message(instruction.target_agent)
            else:
                content = f"Handoff to {instruction.target_agent} ignored: already transferring to {handoff.target_agent}"
                LOGGER.warning(f"{agent.name}: {content}")
        else:
            content = _tool_content(outcome.value)

        messages.append(ToolMessage(content=content, tool_call_id=outcome.call_id or "", name=outcome.name, status=status))
        records.append(
            ToolCallRecord(id=outcome.call_id, name=outcome.name, args=outcome.args, result=result, error=outcome.error)
        )
        await session.emit(
            ToolResultEvent(
                agent=agent.name,
                tool_call_id=outcome.call_id,
                tool_name=outcome.name,
                result=result if outcome.error is None else outcome.error,
                is_error=outcome.error is not None,
            )
        )
    return messages, records, handoff


# ========== Turn ==========


def _check_budgets(session: RunSession, agent: Agent) -> None:
    if session.turns >= session.max_total_turns:
        raise MaxTurnsExceededError(session.turns, session.max_total_turns)
    used = session.agent_turns.get(agent.name, 0)
    limit = session.agent_max_turns(agent)
    if used >= limit:
        raise MaxTurnsExceededError(used, limit, agent_name=agent.name)


async def run_agent_turn(session: RunSession, agent: Agent) -> Tuple[str, str, Optional[HandoffInstruction]]:
    """Run one turn; returns (text, finish_reason, handoff)."""
    _check_budgets(session, agent)

    if agent.name not in session.started_agents:
        session.started_agents.add(agent.name)
        await run_input_guardrails(agent.input_guardrails, session.input_text, session.run_context)

    session.turns += 1
    session.agent_turns[agent.name] = session.agent_turns.get(agent.name, 0) + 1
    turn = session.turns
    log_turn_start(LOGGER, agent.name, turn, session.max_total_turns)

    await session.emit(OrchestrationStatusEvent(agent=agent.name, status="executing"))
    await session.emit(AgentThinkingEvent(agent=agent.name))

    session.turn_start = len(session.messages)
    session.handoff_step_start = session.turn_start
    system_prompt = await build_system_prompt(session, agent)
    tools = await collect_tools(session, agent)
    model = bind_model(session, agent, tools)

    text, finish_reason, handoff = "", "max_steps", None
    for step in range(1, session.agent_max_steps(agent) + 1):
        started = time.monotonic()
        message = await call_model(session, agent, model, build_turn_messages(session, agent, system_prompt))
        tokens = session.usage.add(message.usage_metadata)
        track_tokens(session.permission_context.usage, tokens)

        session.handoff_step_start = len(session.messages)
        session.messages.append(message)
        text = stringify_content(message.content)

        records: List[ToolCallRecord] = []
        if message.tool_calls:
            outcomes = await execute_tool_calls(session, agent, tools, message.tool_calls)
            tool_messages, records, handoff = await answer_tool_calls(session, agent, outcomes)
            session.messages.extend(tool_messages)

        session.steps.append(
            StepRecord(
                agent=agent.name,
                turn=turn,
                step=step,
                text=text,
                tool_calls=tuple(records),
                usage=dict(message.usage_metadata or {}),
                duration=time.monotonic() - started,
            )
        )

        if handoff is not None or not message.tool_calls:
            finish_reason = "stop"
            break
    else:
        LOGGER.warning(f"{agent.name}: step budget exhausted in turn {turn}")

    return text, finish_reason, handoff


def build_execute_node(session: RunSession):
    """Create the node running one turn of the active agent."""

    @with_error_boundary("execute", session.snapshot)
    async def execute_node(state: OrchestrationState) -> dict:
        agent = session.current_agent
        text, finish_reason, handoff = await run_agent_turn(session, agent)
        session.final_text = text
        session.finish_reason = finish_reason
        return {
            "status": "handoff" if handoff is not None else "completing",
            "pending_handoff": handoff.model_dump() if handoff is not None else None,
            "turns": session.turns,
            "final_output": text,
            "finish_reason": finish_reason,
        }

    return execute_node


__all__ = [
    "answer_tool_calls",
    "bind_model",
    "build_execute_node",
    "build_system_prompt",
    "build_turn_messages",
    "call_model",
    "collect_tools",
    "execute_tool_calls",
    "run_agent_turn",
]
