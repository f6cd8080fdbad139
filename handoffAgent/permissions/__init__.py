"""Per tool-call authorization."""

from .gate import (
    FunctionPermissionPolicy,
    PermissionResult,
    RulePermissionPolicy,
    ToolPermissionContext,
    ToolPermissionPolicy,
    ToolUsage,
    check_tool_permission,
    create_usage_tracker,
    track_tokens,
    track_tool_call,
)

__all__ = [
    "FunctionPermissionPolicy",
    "PermissionResult",
    "RulePermissionPolicy",
    "ToolPermissionContext",
    "ToolPermissionPolicy",
    "ToolUsage",
    "check_tool_permission",
    "create_usage_tracker",
    "track_tokens",
    "track_tool_call",
]
