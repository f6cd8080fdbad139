"""Per-run context passed by reference to every tool, hook and guardrail.

Tools receive it through the LangChain ``RunnableConfig``:

    @tool
    async def lookup(query: str, config: RunnableConfig) -> str:
        run_context = get_run_context(config)
        tenant = run_context.context["tenant_id"]
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from handoffAgent.streaming.emitter import EventEmitter

RUN_CONTEXT_KEY = "run_context"
SHARED_MEMORY_KEY = "shared_memory"


@dataclass
class RunContext:
    """Mutable bag for one run.

    Attributes:
        context: Caller supplied application data (user id, tenant, flags...)
        metadata: Run metadata (current_agent, request_id, start_time, ...)
        writer: Live event channel of the run, None outside streaming
    """

    context: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    writer: Optional["EventEmitter"] = None

    def __post_init__(self):
        self.metadata.setdefault("request_id", uuid.uuid4().hex)
        self.metadata.setdefault("start_time", datetime.now(timezone.utc))
        self.metadata.setdefault(SHARED_MEMORY_KEY, {})

    @property
    def request_id(self) -> str:
        return self.metadata["request_id"]

    @property
    def current_agent(self) -> Optional[str]:
        return self.metadata.get("current_agent")

    @current_agent.setter
    def current_agent(self, name: Optional[str]) -> None:
        self.metadata["current_agent"] = name

    @property
    def shared_memory(self) -> Dict[str, Any]:
        """Cross-agent key/value slot, last writer wins.

        Only one agent is active at a time, so read-then-write needs no lock.
        """
        return self.metadata.setdefault(SHARED_MEMORY_KEY, {})

    def get_shared(self, key: str, default: Any = None) -> Any:
        return self.shared_memory.get(key, default)

    def set_shared(self, key: str, value: Any) -> None:
        self.shared_memory[key] = value

    async def write_data(self, name: str, data: Any, transient: bool = False) -> None:
        """Emit a tool-authored data part on the run's event channel."""
        if self.writer is None:
            return
        from handoffAgent.streaming.events import DataPartEvent

        await self.writer.emit(
            DataPartEvent(agent=self.current_agent, name=name, data=data, transient=transient)
        )

    def to_dict(self) -> Dict[str, Any]:
        metadata = dict(self.metadata)
        start_time = metadata.get("start_time")
        if isinstance(start_time, datetime):
            metadata["start_time"] = start_time.isoformat()
        return {"context": dict(self.context), "metadata": metadata}


def get_run_context(config: Optional[Dict[str, Any]]) -> Optional[RunContext]:
    """Return the RunContext carried by a tool's RunnableConfig, if any."""
    if not config:
        return None
    return (config.get("configurable") or {}).get(RUN_CONTEXT_KEY)


__all__ = ["RUN_CONTEXT_KEY", "RunContext", "SHARED_MEMORY_KEY", "get_run_context"]
