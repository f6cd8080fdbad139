"""Tool permission gate.

Every tool call of an agent with a ``permissions`` policy is authorized before
it executes. The policy sees the tool name, its arguments and a permission
context carrying the caller identity and cumulative usage of the run.
"""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, Union

import yaml

from handoffAgent.utils.error_handler import ToolPermissionDeniedError

LOGGER = logging.getLogger(__name__)


@dataclass
class ToolUsage:
    """Cumulative usage of one run: calls per tool and total tokens."""

    tool_calls: Dict[str, int] = field(default_factory=dict)
    tokens: int = 0


@dataclass
class ToolPermissionContext:
    user: Optional[Any] = None
    usage: ToolUsage = field(default_factory=ToolUsage)


@dataclass(frozen=True)
class PermissionResult:
    allowed: bool
    reason: Optional[str] = None


PermissionReturn = Union[PermissionResult, Mapping[str, Any], bool]


class ToolPermissionPolicy(Protocol):
    """Authorization policy. ``check`` may be sync or async."""

    def check(
        self, tool_name: str, args: Dict[str, Any], context: ToolPermissionContext
    ) -> Union[PermissionReturn, Awaitable[PermissionReturn]]:
        ...


class FunctionPermissionPolicy:
    """Adapt a plain ``(tool_name, args, context)`` callable to a policy."""

    def __init__(self, func: Callable[[str, Dict[str, Any], ToolPermissionContext], Any]):
        self._func = func

    def check(self, tool_name, args, context):
        return self._func(tool_name, args, context)


def _normalize_result(value: Any) -> PermissionResult:
    if isinstance(value, PermissionResult):
        return value
    if isinstance(value, Mapping):
        return PermissionResult(allowed=bool(value.get("allowed", False)), reason=value.get("reason"))
    if isinstance(value, bool):
        return PermissionResult(allowed=value)
    raise TypeError(f"permission policy returned {type(value).__name__}, expected PermissionResult")


async def check_tool_permission(
    policy: Optional[ToolPermissionPolicy],
    tool_name: str,
    args: Dict[str, Any],
    context: ToolPermissionContext,
) -> None:
    """Authorize one tool call.

    No policy means every call is allowed. Errors raised by the policy itself
    propagate unchanged.

    Raises:
        ToolPermissionDeniedError: The policy returned ``allowed=False``
    """
    if policy is None:
        return

    result = policy.check(tool_name, args, context)
    if inspect.isawaitable(result):
        result = await result
    verdict = _normalize_result(result)

    if not verdict.allowed:
        reason = verdict.reason or "Permission denied"
        LOGGER.warning(f"Permission denied for tool {tool_name}: {reason}")
        raise ToolPermissionDeniedError(tool_name, reason)


def create_usage_tracker() -> ToolUsage:
    return ToolUsage()


def track_tool_call(usage: ToolUsage, tool_name: str) -> None:
    usage.tool_calls[tool_name] = usage.tool_calls.get(tool_name, 0) + 1


def track_tokens(usage: ToolUsage, tokens: int) -> None:
    usage.tokens += max(int(tokens or 0), 0)


class RulePermissionPolicy:
    """Declarative permission policy loaded from YAML.

    Rules are checked in order (first denial wins):
    1. Global token budget (``max_tokens``)
    2. Tool allow flag (``tools.<name>.allowed``)
    3. Per-tool call budget (``tools.<name>.max_calls``)
    4. Argument deny patterns (``tools.<name>.deny_patterns``, regex)
    5. ``default`` for tools without rules ("allow" or "deny")

    Example YAML:
        default: allow
        max_tokens: 200000
        tools:
          delete_invoice:
            allowed: false
            reason: Invoices are read-only for this tenant
          web_search:
            max_calls: 3
            deny_patterns: ["password", "api[_-]?key"]
    """

    def __init__(self, rules: Optional[Dict[str, Any]] = None):
        self.rules = rules or {}
        self.tool_rules: Dict[str, Dict[str, Any]] = self.rules.get("tools", {}) or {}
        self.default_allow = str(self.rules.get("default", "allow")).lower() != "deny"
        self.max_tokens = self.rules.get("max_tokens")

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "RulePermissionPolicy":
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            rules = yaml.safe_load(f) or {}
        LOGGER.info(f"Loaded permission rules from {path} ({len(rules.get('tools', {}) or {})} tools)")
        return cls(rules)

    def check(self, tool_name: str, args: Dict[str, Any], context: ToolPermissionContext) -> PermissionResult:
        if self.max_tokens is not None and context.usage.tokens >= self.max_tokens:
            return PermissionResult(False, f"Token budget exhausted ({context.usage.tokens}/{self.max_tokens})")

        rule = self.tool_rules.get(tool_name)
        if rule is None:
            if self.default_allow:
                return PermissionResult(True)
            return PermissionResult(False, f"Tool {tool_name} is not in the allow list")

        if not rule.get("allowed", True):
            return PermissionResult(False, rule.get("reason") or f"Tool {tool_name} is disabled")

        max_calls = rule.get("max_calls")
        used = context.usage.tool_calls.get(tool_name, 0)
        if max_calls is not None and used >= max_calls:
            return PermissionResult(False, f"Call limit reached for {tool_name} ({used}/{max_calls})")

        args_str = " ".join(str(v) for v in (args or {}).values())
        for pattern in rule.get("deny_patterns", []) or []:
            if re.search(pattern, args_str, re.IGNORECASE):
                return PermissionResult(False, rule.get("reason") or f"Arguments match denied pattern: {pattern}")

        return PermissionResult(True)


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
