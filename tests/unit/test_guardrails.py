"""Unit tests for the guardrail executor."""

import asyncio

import pytest

from handoffAgent.guardrails import (
    GuardrailResult,
    InputGuardrail,
    OutputGuardrail,
    input_guardrail,
    run_input_guardrails,
    run_output_guardrails,
)
from handoffAgent.utils.error_handler import (
    GuardrailExecutionError,
    InputGuardrailTripwireTriggered,
    OutputGuardrailTripwireTriggered,
)


class TestInputGuardrails:
    @pytest.mark.asyncio
    async def test_all_pass(self):
        seen = []

        @input_guardrail()
        def length_ok(text, context):
            seen.append("length")
            return GuardrailResult(tripwire_triggered=False)

        @input_guardrail("polite")
        async def polite(text, context):
            seen.append("polite")
            return {"tripwireTriggered": False}

        await run_input_guardrails([length_ok, polite], "hello", None)
        assert sorted(seen) == ["length", "polite"]
        assert length_ok.name == "length_ok"

    @pytest.mark.asyncio
    async def test_empty_set_is_noop(self):
        await run_input_guardrails([], "hello")

    @pytest.mark.asyncio
    async def test_declaration_order_wins_over_timing(self):
        finished = []

        async def slow_trip(text, context):
            await asyncio.sleep(0.05)
            finished.append("slow")
            return GuardrailResult(tripwire_triggered=True, output_info={"why": "blocked"})

        async def fast_pass(text, context):
            await asyncio.sleep(0.01)
            finished.append("fast")
            return GuardrailResult(tripwire_triggered=False)

        guardrails = [InputGuardrail("slow_trip", slow_trip), InputGuardrail("fast_pass", fast_pass)]

        with pytest.raises(InputGuardrailTripwireTriggered) as exc_info:
            await run_input_guardrails(guardrails, "text", None)

        assert exc_info.value.guardrail_name == "slow_trip"
        assert exc_info.value.output_info == {"why": "blocked"}
        assert finished == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_raising_guardrail_is_wrapped(self):
        def broken(text, context):
            raise ValueError("boom")

        with pytest.raises(GuardrailExecutionError) as exc_info:
            await run_input_guardrails([InputGuardrail("broken", broken)], "text")

        assert exc_info.value.guardrail_name == "broken"
        assert isinstance(exc_info.value.original_error, ValueError)

    @pytest.mark.asyncio
    async def test_raising_guardrail_still_waits_for_others(self):
        completed = []

        def broken(text, context):
            raise ValueError("boom")

        async def slow(text, context):
            await asyncio.sleep(0.02)
            completed.append("slow")
            return False

        with pytest.raises(GuardrailExecutionError):
            await run_input_guardrails([InputGuardrail("broken", broken), InputGuardrail("slow", slow)], "text")
        assert completed == ["slow"]

    @pytest.mark.asyncio
    async def test_bool_verdict(self):
        with pytest.raises(InputGuardrailTripwireTriggered):
            await run_input_guardrails([InputGuardrail("flag", lambda text, context: True)], "text")


class TestOutputGuardrails:
    @pytest.mark.asyncio
    async def test_trip_raises_output_error(self):
        def no_profanity(output, context):
            return GuardrailResult(tripwire_triggered="darn" in output, output_info="profanity")

        with pytest.raises(OutputGuardrailTripwireTriggered) as exc_info:
            await run_output_guardrails([OutputGuardrail("no_profanity", no_profanity)], "well darn", None)
        assert exc_info.value.output_info == "profanity"

    @pytest.mark.asyncio
    async def test_context_is_passed(self):
        received = []

        def check(output, context):
            received.append(context)
            return False

        await run_output_guardrails([OutputGuardrail("check", check)], "ok", {"tenant": "t1"})
        assert received == [{"tenant": "t1"}]
