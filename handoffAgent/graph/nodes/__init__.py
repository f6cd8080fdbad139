"""Graph nodes of the orchestration turn loop."""

from .complete import build_complete_node
from .execute import build_execute_node
from .handoff import build_handoff_node
from .route import build_route_node

__all__ = ["build_complete_node", "build_execute_node", "build_handoff_node", "build_route_node"]
