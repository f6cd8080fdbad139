"""Runner: entry point for generate and stream runs.

Example:
    runner = Runner([triage], model_resolver=build_model_resolver(resolve_model_configs(get_settings())))

    result = await runner.run(triage, "When did WWII end?")
    print(result.final_agent, result.text)

    async with runner.run_stream(triage, "When did WWII end?") as stream:
        async for event in stream:
            yield encode_sse(event)
        result = await stream.result
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Iterable, Optional, Union

from langchain_core.messages import BaseMessage, HumanMessage

from handoffAgent.agents.agent import Agent
from handoffAgent.agents.interfaces import ModelResolver
from handoffAgent.agents.registry import AgentRegistry
from handoffAgent.config.settings import Settings, get_settings
from handoffAgent.context.conversation_state import ConversationStateManager
from handoffAgent.context.run_context import RunContext
from handoffAgent.graph.builder import build_orchestration_graph, recursion_limit
from handoffAgent.graph.session import RunSession
from handoffAgent.permissions.gate import ToolPermissionContext
from handoffAgent.runtime.memory import load_history, save_exchange
from handoffAgent.runtime.types import RunOptions, RunResult
from handoffAgent.streaming.emitter import EventEmitter
from handoffAgent.streaming.events import BaseEvent, ErrorEvent
from handoffAgent.utils.error_handler import RunTimeoutError, format_error
from handoffAgent.utils.logging_utils import log_error
from handoffAgent.utils.message_utils import stringify_content

LOGGER = logging.getLogger(__name__)

RunInput = Union[str, BaseMessage, list]


def _consume_exception(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


class StreamingRun:
    """Handle of an in-flight stream run.

    Iterate it for events; ``result`` is a future resolved after the last
    event was emitted (with the run's exception on failure). ``cancel()``
    stops emission and abandons further turns.
    """

    def __init__(self, session: RunSession, emitter: EventEmitter, execution):
        self._session = session
        self._emitter = emitter
        self.result: asyncio.Future = asyncio.get_running_loop().create_future()
        self.result.add_done_callback(_consume_exception)
        self._task = asyncio.create_task(self._drive(execution))

    @property
    def request_id(self) -> str:
        return self._session.run_context.request_id

    @property
    def events(self):
        return list(self._emitter.events)

    @property
    def done(self) -> bool:
        return self._task.done()

    async def _drive(self, execution) -> None:
        try:
            result = await execution
        except asyncio.CancelledError:
            self._emitter.abort()
            if not self.result.done():
                self.result.cancel()
            raise
        except Exception as e:
            agent = self._session.current_agent
            await self._emitter.emit(
                ErrorEvent(agent=agent.name if agent else None, message=format_error(e), error_type=type(e).__name__)
            )
            if not self.result.done():
                self.result.set_exception(e)
            await self._emitter.close()
            return

        if not self.result.done():
            self.result.set_result(result)
        await self._emitter.close()

    def __aiter__(self) -> AsyncIterator[BaseEvent]:
        return self._emitter.__aiter__()

    def cancel(self) -> None:
        if self._task.done():
            return
        LOGGER.info(f"Cancelling run {self.request_id}")
        self._session.cancelled = True
        self._emitter.abort()
        self._task.cancel()
        if not self.result.done():
            self.result.cancel()

    async def __aenter__(self) -> "StreamingRun":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()
        await asyncio.gather(self._task, return_exceptions=True)


class Runner:
    """Runs agents through the orchestration graph.

    Args:
        agents: Agents to register (handoff targets are registered recursively)
        settings: Defaults for budgets and policies, ``get_settings()`` when omitted
        model_resolver: Resolves string model keys of agents
        fact_model: Optional chat model used for fact extraction and planning
    """

    def __init__(
        self,
        agents: Optional[Iterable[Agent]] = None,
        *,
        settings: Optional[Settings] = None,
        model_resolver: Optional[ModelResolver] = None,
        fact_model: Any = None,
    ):
        self.settings = settings or get_settings()
        self.registry = AgentRegistry(agents)
        self.model_resolver = model_resolver
        self.fact_model = fact_model

    def register_agent(self, agent: Agent) -> Agent:
        return self.registry.register(agent)

    def get_agent(self, name: str) -> Optional[Agent]:
        return self.registry.get(name)

    # ========== Session setup ==========

    def _resolve_entry(self, agent: Union[Agent, str]) -> Agent:
        if isinstance(agent, Agent):
            return self.registry.register(agent)
        return self.registry.require(agent)

    def _create_session(
        self, agent: Union[Agent, str], input: RunInput, options: RunOptions, emitter: EventEmitter
    ) -> RunSession:
        entry = self._resolve_entry(agent)
        input_text = stringify_content(input.content if isinstance(input, BaseMessage) else input)

        run_context = RunContext(context=dict(options.context), writer=emitter)
        run_context.metadata["input"] = input_text
        user = options.user_id or options.context.get("user_id") or options.context.get("user")

        session = RunSession(
            registry=self.registry,
            entry_agent=entry,
            settings=self.settings,
            options=options,
            run_context=run_context,
            emitter=emitter,
            conversation=ConversationStateManager(input_text),
            input_text=input_text,
            model_resolver=self.model_resolver,
            fact_model=self.fact_model,
            permission_context=ToolPermissionContext(user=user),
        )
        session.routing_strategy = options.resolve_strategy(self.settings.orchestration.routing_strategy)
        session.messages = list(options.messages) + [input if isinstance(input, BaseMessage) else HumanMessage(content=input)]
        return session

    # ========== Execution ==========

    def _chat_ids(self, session: RunSession):
        context = session.options.context
        return session.options.chat_id or context.get("chat_id"), session.options.user_id or context.get("user_id")

    async def _execute(self, session: RunSession) -> RunResult:
        self.registry.validate(session.entry_agent)

        memory = session.entry_agent.memory
        chat_id, user_id = self._chat_ids(session)
        history = await load_history(memory, chat_id)
        if history:
            session.messages = history + session.messages

        graph = build_orchestration_graph(session)
        await graph.ainvoke(
            {"status": "routing", "turns": 0, "pending_handoff": None},
            config={"recursion_limit": recursion_limit(session)},
        )

        result = self._build_result(session)
        await save_exchange(memory, chat_id, user_id, session.input_text, result.text)
        return result

    async def _execute_with_timeout(self, session: RunSession) -> RunResult:
        timeout = session.options.timeout or self.settings.orchestration.run_timeout
        try:
            if not timeout:
                return await self._execute(session)
            try:
                return await asyncio.wait_for(self._execute(session), timeout)
            except asyncio.TimeoutError:
                raise RunTimeoutError(timeout, state=session.snapshot()) from None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_error(LOGGER, e, f"run {session.run_context.request_id}")
            raise

    def _build_result(self, session: RunSession) -> RunResult:
        start_time = session.run_context.metadata["start_time"]
        end_time = datetime.now(timezone.utc)
        return RunResult(
            text=session.final_text,
            final_agent=session.current_agent.name,
            finish_reason=session.finish_reason,
            handoffs=list(session.handoffs),
            steps=list(session.steps),
            usage=session.usage,
            metadata={
                "request_id": session.run_context.request_id,
                "start_time": start_time,
                "end_time": end_time,
                "duration": (end_time - start_time).total_seconds(),
                "turns": session.turns,
                "agent_turns": dict(session.agent_turns),
                "routing_strategy": session.routing_strategy,
            },
            conversation_state=session.conversation.get_state(),
            messages=list(session.messages),
        )

    def _options(self, options: Optional[RunOptions], overrides: dict) -> RunOptions:
        if options is not None and overrides:
            raise TypeError("Pass either RunOptions or keyword overrides, not both")
        return options or RunOptions(**overrides)

    async def run(
        self, agent: Union[Agent, str], input: RunInput, options: Optional[RunOptions] = None, **overrides: Any
    ) -> RunResult:
        """Run to completion and return the aggregated result.

        Raises:
            AgentsError: Any fatal orchestration failure (partial state on ``error.state``)
        """
        options = self._options(options, overrides)
        emitter = EventEmitter(on_event=options.on_event, buffered=False)
        session = self._create_session(agent, input, options, emitter)
        try:
            return await self._execute_with_timeout(session)
        finally:
            await emitter.close()

    def run_stream(
        self, agent: Union[Agent, str], input: RunInput, options: Optional[RunOptions] = None, **overrides: Any
    ) -> StreamingRun:
        """Start a run in the background and return its event stream.

        Must be called from a running event loop.
        """
        options = self._options(options, overrides)
        emitter = EventEmitter(max_size=self.settings.streaming.buffer_size, on_event=options.on_event)
        session = self._create_session(agent, input, options, emitter)
        return StreamingRun(session, emitter, self._execute_with_timeout(session))


__all__ = ["Runner", "StreamingRun"]
