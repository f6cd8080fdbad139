"""LangGraph turn loop of the orchestrator."""

from .builder import build_orchestration_graph, recursion_limit
from .session import RunSession
from .state import OrchestrationState

__all__ = ["OrchestrationState", "RunSession", "build_orchestration_graph", "recursion_limit"]
