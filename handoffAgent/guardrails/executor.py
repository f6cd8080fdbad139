"""Input/output guardrail execution.

All guardrails of one set run concurrently and every one of them is awaited.
Verdicts are then inspected in declaration order, so the reported failure is
the first declared guardrail that tripped or raised, independent of timing.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from handoffAgent.utils.error_handler import (
    GuardrailExecutionError,
    InputGuardrailTripwireTriggered,
    OutputGuardrailTripwireTriggered,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardrailResult:
    """Verdict of one guardrail."""

    tripwire_triggered: bool
    output_info: Any = None


GuardrailReturn = Union[GuardrailResult, Mapping[str, Any], bool]
GuardrailFunction = Callable[[Any, Any], Union[GuardrailReturn, Awaitable[GuardrailReturn]]]


@dataclass(frozen=True)
class InputGuardrail:
    """Check run on the user input before an agent's first turn.

    ``execute(input_text, context)`` may be sync or async.
    """

    name: str
    execute: GuardrailFunction


@dataclass(frozen=True)
class OutputGuardrail:
    """Check run on the final agent output. ``execute(agent_output, context)``."""

    name: str
    execute: GuardrailFunction


def input_guardrail(name: Optional[str] = None) -> Callable[[GuardrailFunction], InputGuardrail]:
    """Decorator turning a function into an InputGuardrail.

    Example:
        @input_guardrail("no_secrets")
        async def no_secrets(text, context):
            return GuardrailResult(tripwire_triggered="password" in text)
    """

    def decorator(func: GuardrailFunction) -> InputGuardrail:
        return InputGuardrail(name=name or func.__name__, execute=func)

    return decorator


def output_guardrail(name: Optional[str] = None) -> Callable[[GuardrailFunction], OutputGuardrail]:
    """Decorator turning a function into an OutputGuardrail."""

    def decorator(func: GuardrailFunction) -> OutputGuardrail:
        return OutputGuardrail(name=name or func.__name__, execute=func)

    return decorator


def _normalize_result(value: Any) -> GuardrailResult:
    if isinstance(value, GuardrailResult):
        return value
    if isinstance(value, Mapping):
        triggered = value.get("tripwire_triggered", value.get("tripwireTriggered", False))
        info = value.get("output_info", value.get("outputInfo"))
        return GuardrailResult(tripwire_triggered=bool(triggered), output_info=info)
    if isinstance(value, bool):
        return GuardrailResult(tripwire_triggered=value)
    raise TypeError(f"guardrail returned {type(value).__name__}, expected GuardrailResult")


async def _execute_one(guardrail: Union[InputGuardrail, OutputGuardrail], payload: Any, context: Any) -> GuardrailResult:
    try:
        result = guardrail.execute(payload, context)
        if inspect.isawaitable(result):
            result = await result
        return _normalize_result(result)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        LOGGER.error(f'Guardrail "{guardrail.name}" raised: {type(e).__name__}: {e}')
        raise GuardrailExecutionError(guardrail.name, e) from e


async def _run_guardrails(guardrails, payload: Any, context: Any, tripwire_error) -> None:
    if not guardrails:
        return

    outcomes = await asyncio.gather(
        *(_execute_one(guardrail, payload, context) for guardrail in guardrails),
        return_exceptions=True,
    )

    for guardrail, outcome in zip(guardrails, outcomes):
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome.tripwire_triggered:
            LOGGER.warning(f'Guardrail "{guardrail.name}" triggered tripwire')
            raise tripwire_error(guardrail.name, outcome.output_info)
        LOGGER.debug(f'Guardrail "{guardrail.name}" passed')


async def run_input_guardrails(guardrails: Sequence[InputGuardrail], input_text: Any, context: Any = None) -> None:
    """Run input guardrails concurrently.

    Raises:
        InputGuardrailTripwireTriggered: A guardrail returned a tripped verdict
        GuardrailExecutionError: A guardrail raised
    """
    await _run_guardrails(guardrails, input_text, context, InputGuardrailTripwireTriggered)


async def run_output_guardrails(guardrails: Sequence[OutputGuardrail], agent_output: Any, context: Any = None) -> None:
    """Run output guardrails concurrently.

    Raises:
        OutputGuardrailTripwireTriggered: A guardrail returned a tripped verdict
        GuardrailExecutionError: A guardrail raised
    """
    await _run_guardrails(guardrails, agent_output, context, OutputGuardrailTripwireTriggered)


__all__ = [
    "GuardrailResult",
    "InputGuardrail",
    "OutputGuardrail",
    "input_guardrail",
    "output_guardrail",
    "run_input_guardrails",
    "run_output_guardrails",
]
