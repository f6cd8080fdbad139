"""Event protocol and channel for live run progress."""

from .emitter import EventCallback, EventEmitter
from .events import (
    AgentCompleteEvent,
    AgentSwitchEvent,
    AgentThinkingEvent,
    BaseEvent,
    DataPartEvent,
    ErrorEvent,
    OrchestrationStatusEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolCallEvent,
    ToolResultEvent,
    WorkflowProgressEvent,
    encode_sse,
    parse_event,
)

__all__ = [
    "AgentCompleteEvent",
    "AgentSwitchEvent",
    "AgentThinkingEvent",
    "BaseEvent",
    "DataPartEvent",
    "ErrorEvent",
    "EventCallback",
    "EventEmitter",
    "OrchestrationStatusEvent",
    "StreamEvent",
    "TextDeltaEvent",
    "ToolCallEvent",
    "ToolResultEvent",
    "WorkflowProgressEvent",
    "encode_sse",
    "parse_event",
]
