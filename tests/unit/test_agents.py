"""Unit tests for Agent and AgentRegistry."""

import pytest
from langchain_core.tools import tool

from handoffAgent.agents import Agent, AgentRegistry
from handoffAgent.context import RunContext
from handoffAgent.handoff import RECOMMENDED_PROMPT_PREFIX, handoff
from handoffAgent.utils.error_handler import HandoffConfigurationError


@tool
def lookup_invoice(invoice_id: str) -> str:
    """Look up an invoice."""
    return invoice_id


class TestAgent:
    @pytest.mark.parametrize("kwargs", [{"name": ""}, {"name": "  "}, {"name": "A", "max_turns": 0}, {"name": "A", "max_steps": 0}])
    def test_invalid_definitions(self, kwargs):
        with pytest.raises(ValueError):
            Agent(**kwargs)

    def test_sequences_are_frozen(self):
        handoffs = ["Billing"]
        agent = Agent(name="Triage", handoffs=handoffs)
        handoffs.append("Support")
        assert agent.handoffs == ("Billing",)

    @pytest.mark.asyncio
    async def test_instructions_get_prefix_with_handoffs(self):
        agent = Agent(name="Triage", instructions="Route the user.", handoffs=["Billing"])
        prompt = await agent.get_instructions(RunContext())
        assert prompt.startswith(RECOMMENDED_PROMPT_PREFIX)
        assert prompt.endswith("Route the user.")

    @pytest.mark.asyncio
    async def test_async_dynamic_instructions(self):
        async def instructions(run_context):
            return f"Tenant {run_context.context['tenant']}"

        agent = Agent(name="Billing", instructions=instructions)
        assert await agent.get_instructions(RunContext(context={"tenant": "acme"})) == "Tenant acme"

    @pytest.mark.asyncio
    async def test_tools_from_mapping_and_callable(self):
        run_context = RunContext()
        from_mapping = Agent(name="A", tools={"lookup": lookup_invoice})
        from_callable = Agent(name="B", tools=lambda ctx: [lookup_invoice])

        assert await from_mapping.get_tools(run_context) == [lookup_invoice]
        assert await from_callable.get_tools(run_context) == [lookup_invoice]

    def test_handoff_names(self):
        billing = Agent(name="Billing")
        agent = Agent(name="Triage", handoffs=[billing, handoff("Support"), "Sales"])
        assert agent.handoff_names() == ["Billing", "Support", "Sales"]

    def test_clone(self):
        agent = Agent(name="Billing", instructions="v1")
        copy = agent.clone(instructions="v2")
        assert copy.instructions == "v2"
        assert agent.instructions == "v1"

    def test_to_dict(self):
        agent = Agent(name="Triage", model="chat", handoffs=["Billing"])
        assert agent.to_dict() == {
            "name": "Triage",
            "description": None,
            "model": "chat",
            "handoffs": ["Billing"],
            "max_turns": None,
        }


class TestAgentRegistry:
    def test_register_walks_handoffs(self):
        support = Agent(name="Support")
        billing = Agent(name="Billing", handoffs=[support])
        registry = AgentRegistry([Agent(name="Triage", handoffs=[billing])])

        assert len(registry) == 3
        assert "Support" in registry

    def test_registering_same_agent_twice_is_fine(self):
        billing = Agent(name="Billing")
        registry = AgentRegistry([billing])
        registry.register(billing)
        assert len(registry) == 1

    def test_name_collision(self):
        registry = AgentRegistry([Agent(name="Billing")])
        with pytest.raises(HandoffConfigurationError):
            registry.register(Agent(name="Billing"))

    def test_cycles_by_name(self):
        a = Agent(name="A", handoffs=["B"])
        b = Agent(name="B", handoffs=["A"])
        registry = AgentRegistry([a, b])

        registry.validate(a)
        assert [target.name for _, target in registry.resolve_handoffs(a)] == ["B"]

    def test_validate_reports_unknown_target(self):
        registry = AgentRegistry([Agent(name="Triage", handoffs=["Ghost"])])
        with pytest.raises(HandoffConfigurationError) as exc_info:
            registry.validate()
        assert exc_info.value.agent_name == "Triage"
        assert exc_info.value.target == "Ghost"

    def test_validate_only_reachable_from_entry(self):
        ok = Agent(name="Ok")
        registry = AgentRegistry([ok, Agent(name="Broken", handoffs=["Ghost"])])
        registry.validate(ok)

    def test_require_unknown(self):
        with pytest.raises(HandoffConfigurationError):
            AgentRegistry().require("Nobody")

    def test_catalog_text(self):
        registry = AgentRegistry([Agent(name="Billing", description="Invoices"), Agent(name="Support")])
        assert registry.get_catalog_text() == "- **Billing**: Invoices\n- **Support**"
