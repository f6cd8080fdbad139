"""Typed orchestration events and their SSE wire encoding.

Every event is an immutable pydantic model tagged by ``type``. On the wire
fields use camelCase (``fromAgent``, ``toolCallId``...):

    data: {"type": "agent-switch", "fromAgent": "Triage", "toAgent": "Billing", ...}

"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BaseEvent(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    timestamp: datetime = Field(default_factory=_now)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OrchestrationStatusEvent(BaseEvent):
    type: Literal["orchestration-status"] = "orchestration-status"
    agent: Optional[str] = None
    status: Literal["routing", "executing", "completing"]


class AgentThinkingEvent(BaseEvent):
    type: Literal["agent-thinking"] = "agent-thinking"
    agent: str
    message: Optional[str] = None


class TextDeltaEvent(BaseEvent):
    type: Literal["text-delta"] = "text-delta"
    agent: str
    delta: str


class ToolCallEvent(BaseEvent):
    type: Literal["tool-call"] = "tool-call"
    agent: str
    tool_call_id: Optional[str] = None
    tool_name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolResultEvent(BaseEvent):
    type: Literal["tool-result"] = "tool-result"
    agent: str
    tool_call_id: Optional[str] = None
    tool_name: str
    result: Any = None
    is_error: bool = False


class AgentSwitchEvent(BaseEvent):
    type: Literal["agent-switch"] = "agent-switch"
    from_agent: Optional[str] = None
    to_agent: str
    reason: Optional[str] = None
    context: Optional[str] = None
    routing_strategy: Optional[str] = None


class AgentCompleteEvent(BaseEvent):
    type: Literal["agent-complete"] = "agent-complete"
    agent: str
    text: str = ""
    finish_reason: Optional[str] = None


class WorkflowProgressEvent(BaseEvent):
    type: Literal["workflow-progress"] = "workflow-progress"
    agent: Optional[str] = None
    current_step: int
    total_steps: int
    step_name: Optional[str] = None


class ErrorEvent(BaseEvent):
    type: Literal["error"] = "error"
    agent: Optional[str] = None
    message: str
    error_type: Optional[str] = None


class DataPartEvent(BaseEvent):
    """Tool-authored structured data (charts, cards, progress) for the UI."""

    type: Literal["data"] = "data"
    agent: Optional[str] = None
    name: str
    data: Any = None
    transient: bool = False


StreamEvent = Annotated[
    Union[
        OrchestrationStatusEvent,
        AgentThinkingEvent,
        TextDeltaEvent,
        ToolCallEvent,
        ToolResultEvent,
        AgentSwitchEvent,
        AgentCompleteEvent,
        WorkflowProgressEvent,
        ErrorEvent,
        DataPartEvent,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER = TypeAdapter(StreamEvent)


def encode_sse(event: BaseEvent) -> str:
    """Render one event as a Server-Sent Events frame."""
    return f"data: {json.dumps(event.to_wire(), ensure_ascii=False)}\n\n"


def parse_event(payload: Union[str, bytes, Dict[str, Any]]) -> BaseEvent:
    """Inverse of ``to_wire``; accepts a dict, JSON text or an SSE frame."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        payload = payload.strip()
        if payload.startswith("data:"):
            payload = payload[len("data:"):].strip()
        return _EVENT_ADAPTER.validate_json(payload)
    return _EVENT_ADAPTER.validate_python(payload)


__all__ = [
    "AgentCompleteEvent",
    "AgentSwitchEvent",
    "AgentThinkingEvent",
    "BaseEvent",
    "DataPartEvent",
    "ErrorEvent",
    "OrchestrationStatusEvent",
    "StreamEvent",
    "TextDeltaEvent",
    "ToolCallEvent",
    "ToolResultEvent",
    "WorkflowProgressEvent",
    "encode_sse",
    "parse_event",
]
