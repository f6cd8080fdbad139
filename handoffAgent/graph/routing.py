"""Conditional edges of the orchestration graph."""

from __future__ import annotations

import logging
from typing import Literal

from handoffAgent.graph.state import OrchestrationState
from handoffAgent.utils.logging_utils import log_routing_decision

LOGGER = logging.getLogger(__name__)


def execute_route(state: OrchestrationState) -> Literal["handoff", "complete"]:
    """Route after a turn: a pending handoff instruction continues the loop."""
    if state.get("pending_handoff"):
        target = state["pending_handoff"].get("target_agent")
        log_routing_decision(LOGGER, "execute", "handoff", f"{state.get('current_agent')} -> {target}")
        return "handoff"

    log_routing_decision(LOGGER, "execute", "complete", f"finish_reason={state.get('finish_reason')}")
    return "complete"


__all__ = ["execute_route"]
