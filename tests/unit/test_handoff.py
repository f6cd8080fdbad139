"""Unit tests for the handoff tool, recognition and input filters."""

import json

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from pydantic import ValidationError

from handoffAgent.agents import Agent
from handoffAgent.handoff import (
    HANDOFF_TOOL_NAME,
    RECOMMENDED_PROMPT_PREFIX,
    ConfiguredHandoff,
    HandoffInputData,
    HandoffInstruction,
    apply_input_filter,
    coerce_handoff,
    create_handoff,
    create_handoff_tool,
    extract_tool_results,
    get_transfer_message,
    handoff,
    is_handoff_result,
    keep_last_n_messages,
    pass_through,
    prompt_with_handoff_instructions,
    remove_all_tools,
    summarize_tool_results,
)


@pytest.fixture
def billing():
    return Agent(name="Billing", description="Invoices and refunds")


@pytest.fixture
def support():
    return Agent(name="Support")


class TestHandoffTool:
    @pytest.mark.asyncio
    async def test_returns_instruction(self, billing, support):
        tool = create_handoff_tool([billing, handoff(support, tool_description="Technical issues")])

        result = await tool.ainvoke({"target_agent": "Billing", "context": "refund for A-17", "reason": "billing topic"})

        assert tool.name == HANDOFF_TOOL_NAME
        assert isinstance(result, HandoffInstruction)
        assert result.target_agent == "Billing"
        assert result.context == "refund for A-17"
        assert "Billing: Invoices and refunds" in tool.description
        assert "Support: Technical issues" in tool.description

    @pytest.mark.asyncio
    async def test_target_restricted_to_declared_agents(self, billing):
        tool = create_handoff_tool([billing])
        with pytest.raises(ValidationError):
            await tool.ainvoke({"target_agent": "Nobody"})

    def test_schema_enumerates_targets(self, billing, support):
        tool = create_handoff_tool([billing, "Support"])
        schema = tool.args_schema.model_json_schema()
        assert schema["properties"]["target_agent"]["enum"] == ["Billing", "Support"]
        assert schema["required"] == ["target_agent"]

    def test_requires_targets(self):
        with pytest.raises(ValueError):
            create_handoff_tool([])


class TestRecognition:
    def test_nominal_instruction(self):
        assert is_handoff_result(create_handoff("Billing")) is True

    def test_lookalike_ignored_by_default(self):
        lookalike = {"target_agent": "Billing", "rows": 3}
        assert is_handoff_result(lookalike) is False
        assert is_handoff_result(lookalike, structural=True) is True

    def test_structural_camel_case(self):
        value = {"targetAgent": "Billing", "reason": "r", "availableData": {"x": 1}}
        assert is_handoff_result(value, structural=True) is True
        instruction = coerce_handoff(value)
        assert instruction.target_agent == "Billing"
        assert instruction.available_data == {"x": 1}

    def test_non_string_target_is_not_a_handoff(self):
        assert is_handoff_result({"target_agent": 5}, structural=True) is False

    def test_transfer_message(self, billing):
        assert json.loads(get_transfer_message(billing)) == {"assistant": "Billing"}


class TestConfiguredHandoff:
    def test_agent_name_for_agent_and_string(self, billing):
        assert handoff(billing).agent_name == "Billing"
        assert ConfiguredHandoff(agent="Support").agent_name == "Support"

    def test_prompt_prefix(self):
        prompt = prompt_with_handoff_instructions("You route users.")
        assert prompt.startswith(RECOMMENDED_PROMPT_PREFIX)
        assert prompt.endswith("You route users.")


def _bundle():
    handoff_call = AIMessage(
        content="",
        tool_calls=[{"name": HANDOFF_TOOL_NAME, "args": {"target_agent": "B"}, "id": "h1"}],
    )
    lookup_call = AIMessage(content="", tool_calls=[{"name": "lookup", "args": {}, "id": "t1"}])
    return HandoffInputData(
        input_history=[HumanMessage(content="hi"), AIMessage(content="hello")],
        pre_handoff_items=[lookup_call, ToolMessage(content='{"balance": 10}', tool_call_id="t1", name="lookup")],
        new_items=[handoff_call, ToolMessage(content='{"assistant": "B"}', tool_call_id="h1", name=HANDOFF_TOOL_NAME)],
    )


class TestInputFilters:
    def test_pass_through(self):
        data = _bundle()
        assert pass_through(data) is data

    def test_remove_all_tools(self):
        filtered = remove_all_tools(_bundle())
        assert [m.content for m in filtered.all_messages()] == ["hi", "hello"]

    def test_keep_last_n(self):
        filtered = keep_last_n_messages(1)(_bundle())
        assert len(filtered.input_history) == 1
        assert filtered.input_history[0].content == "hello"
        assert len(filtered.all_messages()) == 3

    def test_keep_last_zero_empties(self):
        assert keep_last_n_messages(0)(_bundle()).all_messages() == []

    def test_keep_last_invalid_n_is_unchanged(self):
        data = _bundle()
        assert keep_last_n_messages(-2)(data) is data

    def test_extract_tool_results(self):
        assert extract_tool_results(_bundle().all_messages()) == {"lookup": {"balance": 10}, HANDOFF_TOOL_NAME: {"assistant": "B"}}

    def test_summarize_tool_results(self):
        filtered = summarize_tool_results()(_bundle())
        last = filtered.input_history[-1]

        assert isinstance(last, SystemMessage)
        assert last.content.startswith("Available data from previous agent:")
        assert "Available lookup data" in last.content
        assert HANDOFF_TOOL_NAME not in last.content
        assert filtered.new_items == [] and filtered.pre_handoff_items == []

    def test_failing_filter_returns_input(self):
        def broken(data):
            raise RuntimeError("bad filter")

        data = _bundle()
        assert apply_input_filter(broken, data) is data

    def test_filter_returning_wrong_type_returns_input(self):
        data = _bundle()
        assert apply_input_filter(lambda d: ["not", "data"], data) is data
