"""Conversation state, run context and context assembly for agents."""

from .builder import (
    DEFAULT_MAX_MESSAGES,
    FactExtraction,
    QueryPlan,
    build_contextual_messages,
    create_query_plan,
    extract_facts_from_response,
    is_compound_query,
    plan_from_query_plan,
)
from .conversation_state import (
    ConversationState,
    ConversationStateManager,
    Fact,
    HandoffEntry,
    Plan,
    PlanStep,
)
from .run_context import RunContext, get_run_context

__all__ = [
    "ConversationState",
    "ConversationStateManager",
    "DEFAULT_MAX_MESSAGES",
    "Fact",
    "FactExtraction",
    "HandoffEntry",
    "Plan",
    "PlanStep",
    "QueryPlan",
    "RunContext",
    "build_contextual_messages",
    "create_query_plan",
    "extract_facts_from_response",
    "get_run_context",
    "is_compound_query",
    "plan_from_query_plan",
]
