"""Error taxonomy and error boundaries for orchestration runs."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Optional

LOGGER = logging.getLogger(__name__)


class AgentsError(Exception):
    """Base exception for every failure raised by a run.

    ``state`` carries a snapshot of the partial run (turns, steps, handoffs,
    conversation state) when the failure happened inside the turn loop.
    """

    def __init__(self, message: str, user_message: str = None, state: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.user_message = user_message or message
        self.state = state


class InputGuardrailTripwireTriggered(AgentsError):
    """An input guardrail vetoed the run."""

    def __init__(self, guardrail_name: str, output_info: Any = None, state: Optional[Dict[str, Any]] = None):
        super().__init__(f'Input guardrail "{guardrail_name}" triggered tripwire', state=state)
        self.guardrail_name = guardrail_name
        self.output_info = output_info


class OutputGuardrailTripwireTriggered(AgentsError):
    """An output guardrail vetoed the final answer."""

    def __init__(self, guardrail_name: str, output_info: Any = None, state: Optional[Dict[str, Any]] = None):
        super().__init__(f'Output guardrail "{guardrail_name}" triggered tripwire', state=state)
        self.guardrail_name = guardrail_name
        self.output_info = output_info


class GuardrailExecutionError(AgentsError):
    """A guardrail raised instead of returning a verdict."""

    def __init__(self, guardrail_name: str, original_error: BaseException, state: Optional[Dict[str, Any]] = None):
        super().__init__(f'Guardrail "{guardrail_name}" execution failed: {original_error}', state=state)
        self.guardrail_name = guardrail_name
        self.original_error = original_error


class MaxTurnsExceededError(AgentsError):
    """A per-run or per-agent turn budget was exhausted.

    ``agent_name`` is set when the per-agent budget was hit, ``None`` for the
    run-wide budget.
    """

    def __init__(
        self,
        current_turns: int,
        max_turns: int,
        agent_name: Optional[str] = None,
        state: Optional[Dict[str, Any]] = None,
    ):
        scope = f'agent "{agent_name}"' if agent_name else "run"
        super().__init__(f"Max turns exceeded for {scope}: {current_turns}/{max_turns}", state=state)
        self.current_turns = current_turns
        self.max_turns = max_turns
        self.agent_name = agent_name


class ToolCallError(AgentsError):
    """A tool raised while executing."""

    def __init__(self, tool_name: str, original_error: BaseException, state: Optional[Dict[str, Any]] = None):
        super().__init__(f'Tool "{tool_name}" failed: {original_error}', state=state)
        self.tool_name = tool_name
        self.original_error = original_error


class ToolPermissionDeniedError(AgentsError):
    """The permission policy refused a tool call."""

    def __init__(self, tool_name: str, reason: str = "Permission denied", state: Optional[Dict[str, Any]] = None):
        super().__init__(f'Permission denied for tool "{tool_name}": {reason}', state=state)
        self.tool_name = tool_name
        self.reason = reason


class HandoffConfigurationError(AgentsError):
    """An agent graph references an agent that cannot be resolved."""

    def __init__(self, message: str, agent_name: Optional[str] = None, target: Optional[str] = None):
        super().__init__(message)
        self.agent_name = agent_name
        self.target = target


class ModelInvocationError(AgentsError):
    """The model runtime failed during an agent turn."""

    def __init__(self, agent_name: str, original_error: BaseException, state: Optional[Dict[str, Any]] = None):
        super().__init__(f'Model call failed for agent "{agent_name}": {original_error}', state=state)
        self.agent_name = agent_name
        self.original_error = original_error


class RunTimeoutError(AgentsError):
    """The run exceeded its wall-clock budget."""

    def __init__(self, timeout: float, state: Optional[Dict[str, Any]] = None):
        super().__init__(f"Run timed out after {timeout:g}s", user_message="The request took too long.", state=state)
        self.timeout = timeout


def with_error_boundary(node_name: str, state_provider: Callable[[], Dict[str, Any]] = None):
    """Decorator giving async graph nodes a uniform failure shape.

    AgentsError subclasses pass through untouched (with the partial state
    attached if missing); anything else is logged and wrapped in AgentsError.
    Cancellation is never intercepted.

    Example:
        @with_error_boundary("execute", session.snapshot)
        async def execute_node(state: OrchestrationState) -> dict:
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except asyncio.CancelledError:
                raise
            except AgentsError as e:
                if e.state is None and state_provider is not None:
                    e.state = state_provider()
                LOGGER.error(f"{node_name} failed: {type(e).__name__}: {e}")
                raise
            except Exception as e:
                LOGGER.exception(f"{node_name} unexpected error: {e}")
                state = state_provider() if state_provider is not None else None
                raise AgentsError(f"Error during {node_name}: {e}", state=state) from e

        return wrapper

    return decorator


def format_error(error: BaseException) -> str:
    """Render an error for the terminal ``error`` stream event."""
    if isinstance(error, AgentsError):
        return str(error)
    return f"{type(error).__name__}: {error}"
