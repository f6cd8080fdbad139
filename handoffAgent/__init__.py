"""handoffAgent - multi-agent orchestration with handoffs.

A run starts with routing (explicit choice, pattern match or LLM triage),
then the active agent executes turns. An agent either answers, ending the
run, or hands off to a declared peer that continues with the shared
conversation state. Guardrails veto input and output, a permission policy
gates tool calls, and every transition is reported as a typed event.
"""

__version__ = "0.1.0"

from .agents import Agent, AgentRegistry
from .context import ConversationStateManager, RunContext, get_run_context
from .guardrails import GuardrailResult, InputGuardrail, OutputGuardrail, input_guardrail, output_guardrail
from .handoff import (
    RECOMMENDED_PROMPT_PREFIX,
    HandoffInstruction,
    handoff,
    keep_last_n_messages,
    prompt_with_handoff_instructions,
    remove_all_tools,
    summarize_tool_results,
)
from .memory import InMemoryProvider, MemoryConfig
from .permissions import FunctionPermissionPolicy, PermissionResult, RulePermissionPolicy
from .routing import find_best_match
from .runtime import RunOptions, RunResult, Runner, StreamingRun
from .streaming import encode_sse
from .utils.error_handler import (
    AgentsError,
    GuardrailExecutionError,
    HandoffConfigurationError,
    InputGuardrailTripwireTriggered,
    MaxTurnsExceededError,
    ModelInvocationError,
    OutputGuardrailTripwireTriggered,
    RunTimeoutError,
    ToolCallError,
    ToolPermissionDeniedError,
)
from .utils.logging_utils import setup_logging, setup_logging_from_settings

__all__ = [
    "Agent",
    "AgentRegistry",
    "AgentsError",
    "ConversationStateManager",
    "FunctionPermissionPolicy",
    "GuardrailExecutionError",
    "GuardrailResult",
    "HandoffConfigurationError",
    "HandoffInstruction",
    "InMemoryProvider",
    "InputGuardrail",
    "InputGuardrailTripwireTriggered",
    "MaxTurnsExceededError",
    "MemoryConfig",
    "ModelInvocationError",
    "OutputGuardrail",
    "OutputGuardrailTripwireTriggered",
    "PermissionResult",
    "RECOMMENDED_PROMPT_PREFIX",
    "RulePermissionPolicy",
    "RunContext",
    "RunOptions",
    "RunResult",
    "RunTimeoutError",
    "Runner",
    "StreamingRun",
    "ToolCallError",
    "ToolPermissionDeniedError",
    "encode_sse",
    "find_best_match",
    "get_run_context",
    "handoff",
    "input_guardrail",
    "keep_last_n_messages",
    "output_guardrail",
    "prompt_with_handoff_instructions",
    "remove_all_tools",
    "setup_logging",
    "setup_logging_from_settings",
    "summarize_tool_results",
]
