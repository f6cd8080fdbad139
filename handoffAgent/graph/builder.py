"""Graph builder for one orchestration run.

    START → route → execute ⇄ handoff
                       └──→ complete → END

The nodes close over the RunSession of the run, so a graph is compiled per
run and never shared.
"""

from __future__ import annotations

import logging

from langgraph.graph import END, START, StateGraph

from handoffAgent.graph.nodes import build_complete_node, build_execute_node, build_handoff_node, build_route_node
from handoffAgent.graph.routing import execute_route
from handoffAgent.graph.session import RunSession
from handoffAgent.graph.state import OrchestrationState

LOGGER = logging.getLogger(__name__)


def build_orchestration_graph(session: RunSession):
    """Build and compile the turn loop for ``session``."""
    graph = StateGraph(OrchestrationState)

    graph.add_node("route", build_route_node(session))
    graph.add_node("execute", build_execute_node(session))
    graph.add_node("handoff", build_handoff_node(session))
    graph.add_node("complete", build_complete_node(session))

    graph.add_edge(START, "route")
    graph.add_edge("route", "execute")
    graph.add_conditional_edges(
        "execute",
        execute_route,
        {
            "handoff": "handoff",
            "complete": "complete",
        },
    )
    graph.add_edge("handoff", "execute")
    graph.add_edge("complete", END)

    return graph.compile()


def recursion_limit(session: RunSession) -> int:
    """Superstep budget: route + (execute, handoff) per turn + complete."""
    return session.max_total_turns * 2 + 10


__all__ = ["build_orchestration_graph", "recursion_limit"]
