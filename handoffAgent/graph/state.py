"""Graph state of one orchestration run.

The graph state only carries control data (who is active, what comes next).
Histories, records and counters live on the RunSession the nodes close over.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, TypedDict


class OrchestrationState(TypedDict, total=False):
    """State for the orchestration turn loop."""

    # ========== Control ==========
    current_agent: str
    """Name of the active agent."""

    status: Literal["routing", "executing", "handoff", "completing", "done"]
    """Current state-machine state."""

    pending_handoff: Optional[Dict[str, Any]]
    """HandoffInstruction (as dict) produced by the last turn, None when the turn finalized."""

    # ========== Budgets ==========
    turns: int
    """Turns executed so far across all agents."""

    max_total_turns: int
    """Turn budget of the run."""

    # ========== Output ==========
    final_output: str
    """Text of the last turn."""

    finish_reason: str
    """``stop`` or ``max_steps``."""


__all__ = ["OrchestrationState"]
