"""Unit tests for stream-mode runs."""

import asyncio

import pytest
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool

from handoffAgent import Agent, HandoffConfigurationError, Runner, get_run_context
from handoffAgent.context.builder import CompoundQueryAnalysis, ExtractedFact, FactExtraction, ProposedStep, QueryPlan
from handoffAgent.streaming import (
    AgentCompleteEvent,
    AgentSwitchEvent,
    DataPartEvent,
    ErrorEvent,
    WorkflowProgressEvent,
    parse_event,
)
from tests.fakes import ScriptedChatModel, StructuredOutputModel, call, handoff_to, text, tool_calls


def _triage_pair():
    history = Agent(name="History", model=ScriptedChatModel(responses=[text("1945")]))
    triage = Agent(
        name="Triage",
        model=ScriptedChatModel(responses=[handoff_to("History", context="WWII end date", reason="history")]),
        handoffs=[history],
    )
    return triage, history


class TestStreamingRun:
    @pytest.mark.asyncio
    async def test_event_order(self, settings):
        triage, _ = _triage_pair()
        stream = Runner([triage], settings=settings).run_stream(triage, "when did WWII end")

        events = [event async for event in stream]

        assert [event.type for event in events] == [
            "orchestration-status",
            "agent-switch",
            "orchestration-status",
            "agent-thinking",
            "tool-call",
            "tool-result",
            "agent-switch",
            "orchestration-status",
            "agent-thinking",
            "text-delta",
            "orchestration-status",
            "agent-complete",
        ]
        switches = [event for event in events if isinstance(event, AgentSwitchEvent)]
        assert (switches[0].from_agent, switches[0].to_agent) == (None, "Triage")
        assert (switches[1].from_agent, switches[1].to_agent, switches[1].routing_strategy) == ("Triage", "History", "handoff")
        assert isinstance(events[-1], AgentCompleteEvent) and events[-1].text == "1945"

    @pytest.mark.asyncio
    async def test_result_resolved_after_last_event(self, settings):
        triage, _ = _triage_pair()
        stream = Runner([triage], settings=settings).run_stream(triage, "when did WWII end")

        async for _ in stream:
            pass

        assert stream.result.done()
        result = await stream.result
        assert result.final_agent == "History"

    @pytest.mark.asyncio
    async def test_bounded_buffer_keeps_every_event(self, make_settings):
        triage, _ = _triage_pair()
        stream = Runner([triage], settings=make_settings(buffer_size=1)).run_stream(triage, "when did WWII end")

        events = [event async for event in stream]

        assert len(events) == 12
        assert events[-1].type == "agent-complete"

    @pytest.mark.asyncio
    async def test_on_event_observer_sees_same_events(self, settings, mocker):
        triage, _ = _triage_pair()
        observer = mocker.Mock()
        stream = Runner([triage], settings=settings).run_stream(triage, "when did WWII end", on_event=observer)

        events = [event async for event in stream]

        assert [c.args[0] for c in observer.call_args_list] == events

    @pytest.mark.asyncio
    async def test_events_survive_the_wire(self, settings):
        triage, _ = _triage_pair()
        stream = Runner([triage], settings=settings).run_stream(triage, "when did WWII end")

        async for event in stream:
            assert parse_event(event.to_wire()) == event

    @pytest.mark.asyncio
    async def test_failure_ends_with_error_event(self, settings):
        agent = Agent(name="Lonely", model=ScriptedChatModel(responses=[text("never")]), handoffs=["Ghost"])
        stream = Runner([agent], settings=settings).run_stream(agent, "hi")

        events = [event async for event in stream]

        assert isinstance(events[-1], ErrorEvent)
        assert events[-1].error_type == "HandoffConfigurationError"
        with pytest.raises(HandoffConfigurationError):
            await stream.result

    @pytest.mark.asyncio
    async def test_tools_can_emit_data_parts(self, settings):
        @tool
        async def chart(config: RunnableConfig) -> str:
            """Render a chart."""
            await get_run_context(config).write_data("chart", {"points": [1, 2, 3]})
            return "rendered"

        agent = Agent(name="Analyst", model=ScriptedChatModel(responses=[tool_calls(call("chart")), text("see chart")]), tools=[chart])
        stream = Runner([agent], settings=settings).run_stream(agent, "plot it")

        events = [event async for event in stream]

        data_parts = [event for event in events if isinstance(event, DataPartEvent)]
        assert len(data_parts) == 1
        assert data_parts[0].agent == "Analyst"
        assert data_parts[0].data == {"points": [1, 2, 3]}
        types = [event.type for event in events]
        assert types.index("tool-call") < types.index("data") < types.index("tool-result")

    @pytest.mark.asyncio
    async def test_cancel_stops_the_run(self, settings):
        model = ScriptedChatModel(responses=[text("too late")], delay=1.0)
        agent = Agent(name="Slow", model=model)
        stream = Runner([agent], settings=settings).run_stream(agent, "hi")

        await asyncio.sleep(0.05)
        stream.cancel()
        events = [event async for event in stream]

        assert "agent-complete" not in [event.type for event in events]
        with pytest.raises(asyncio.CancelledError):
            await stream.result

    @pytest.mark.asyncio
    async def test_context_manager_cancels_on_exit(self, settings):
        agent = Agent(name="Slow", model=ScriptedChatModel(responses=[text("too late")], delay=1.0))

        async with Runner([agent], settings=settings).run_stream(agent, "hi") as stream:
            await asyncio.sleep(0.01)

        assert stream.done
        assert stream.result.cancelled()


class TestPlannedRun:
    @staticmethod
    def _fact_model():
        return StructuredOutputModel(
            {
                CompoundQueryAnalysis: CompoundQueryAnalysis(is_compound=True, reasoning="balance then trip"),
                QueryPlan: QueryPlan(
                    analysis="Check funds, then price the trip",
                    proposed_steps=[ProposedStep(action="Get balance"), ProposedStep(action="Price trip")],
                ),
                FactExtraction: FactExtraction(
                    facts=[ExtractedFact(key="balance", value="1200 EUR")], summary="Balance is 1200 EUR"
                ),
            }
        )

    @pytest.mark.asyncio
    async def test_fact_model_drives_plan_and_brief(self, settings):
        travel_model = ScriptedChatModel(responses=[text("Trip is 900 EUR")])
        travel = Agent(name="Travel", model=travel_model)
        banking = Agent(
            name="Banking",
            model=ScriptedChatModel(
                responses=[tool_calls(call("handoff_to_agent", {"target_agent": "Travel"}), content="Your balance is 1200 EUR")]
            ),
            handoffs=[travel],
        )
        triage = Agent(
            name="Triage",
            model=ScriptedChatModel(responses=[handoff_to("Banking", context="balance first", reason="compound")]),
            handoffs=[banking, travel],
        )
        fact_model = self._fact_model()
        stream = Runner([triage], settings=settings, fact_model=fact_model).run_stream(
            triage, "What is my balance, and can I afford a trip to Rome?"
        )

        events = [event async for event in stream]
        result = await stream.result

        progress = [event for event in events if isinstance(event, WorkflowProgressEvent)]
        assert [(event.agent, event.current_step, event.total_steps) for event in progress] == [
            ("Triage", 1, 2),
            ("Banking", 2, 2),
        ]
        assert progress[0].step_name == "Get balance"
        wire = progress[1].to_wire()
        assert (wire["type"], wire["currentStep"], wire["totalSteps"], wire["stepName"]) == (
            "workflow-progress",
            2,
            2,
            "Price trip",
        )

        assert "- balance: 1200 EUR (from Banking)" in travel_model.calls[0][0].content
        plan = result.conversation_state.current_plan
        assert [step.description for step in plan.steps] == ["Get balance", "Price trip"]
        assert all(step.completed for step in plan.steps)
        assert result.conversation_state.facts["balance"].value == "1200 EUR"
        assert result.conversation_state.handoff_chain[-1].findings == "Balance is 1200 EUR"
        assert [schema for schema, _ in fact_model.requests] == [CompoundQueryAnalysis, QueryPlan, FactExtraction]
