"""Guardrails: allow/trip checks on run input and final output."""

from .executor import (
    GuardrailResult,
    InputGuardrail,
    OutputGuardrail,
    input_guardrail,
    output_guardrail,
    run_input_guardrails,
    run_output_guardrails,
)

__all__ = [
    "GuardrailResult",
    "InputGuardrail",
    "OutputGuardrail",
    "input_guardrail",
    "output_guardrail",
    "run_input_guardrails",
    "run_output_guardrails",
]
