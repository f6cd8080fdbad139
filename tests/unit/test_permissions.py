"""Unit tests for the tool permission gate."""

import pytest

from handoffAgent.permissions import (
    FunctionPermissionPolicy,
    PermissionResult,
    RulePermissionPolicy,
    ToolPermissionContext,
    check_tool_permission,
    create_usage_tracker,
    track_tokens,
    track_tool_call,
)
from handoffAgent.utils.error_handler import ToolPermissionDeniedError


@pytest.fixture
def context():
    return ToolPermissionContext(user="u-1", usage=create_usage_tracker())


class TestCheckToolPermission:
    @pytest.mark.asyncio
    async def test_no_policy_allows_everything(self, context):
        await check_tool_permission(None, "delete_everything", {}, context)

    @pytest.mark.asyncio
    async def test_denied_raises_with_tool_and_reason(self, context):
        policy = FunctionPermissionPolicy(lambda name, args, ctx: PermissionResult(False, "read only"))

        with pytest.raises(ToolPermissionDeniedError) as exc_info:
            await check_tool_permission(policy, "write_file", {"path": "/etc"}, context)

        assert exc_info.value.tool_name == "write_file"
        assert exc_info.value.reason == "read only"

    @pytest.mark.asyncio
    async def test_async_policy_and_mapping_verdict(self, context):
        class AsyncPolicy:
            async def check(self, tool_name, args, ctx):
                return {"allowed": ctx.user == "u-1"}

        await check_tool_permission(AsyncPolicy(), "lookup", {}, context)

    @pytest.mark.asyncio
    async def test_policy_sees_arguments_and_usage(self, context):
        received = {}

        def check(name, args, ctx):
            received.update(name=name, args=args, calls=dict(ctx.usage.tool_calls))
            return True

        track_tool_call(context.usage, "lookup")
        await check_tool_permission(FunctionPermissionPolicy(check), "lookup", {"q": "x"}, context)
        assert received == {"name": "lookup", "args": {"q": "x"}, "calls": {"lookup": 1}}


class TestUsageTracking:
    def test_tracking(self):
        usage = create_usage_tracker()
        track_tool_call(usage, "a")
        track_tool_call(usage, "a")
        track_tokens(usage, 120)
        track_tokens(usage, None)
        assert usage.tool_calls == {"a": 2}
        assert usage.tokens == 120


class TestRulePermissionPolicy:
    def test_from_yaml(self, tmp_path, context):
        rules = tmp_path / "permissions.yaml"
        rules.write_text(
            "default: deny\n"
            "tools:\n"
            "  web_search:\n"
            "    max_calls: 1\n"
            "    deny_patterns: ['password']\n"
            "  delete_invoice:\n"
            "    allowed: false\n"
            "    reason: Invoices are read-only\n",
            encoding="utf-8",
        )
        policy = RulePermissionPolicy.from_yaml(rules)

        assert policy.check("web_search", {"q": "weather"}, context).allowed is True
        assert policy.check("web_search", {"q": "admin password"}, context).allowed is False
        assert policy.check("delete_invoice", {}, context).reason == "Invoices are read-only"
        assert policy.check("unknown", {}, context).allowed is False

        track_tool_call(context.usage, "web_search")
        assert policy.check("web_search", {"q": "weather"}, context).allowed is False

    def test_token_budget(self, context):
        policy = RulePermissionPolicy({"max_tokens": 100})
        assert policy.check("anything", {}, context).allowed is True
        track_tokens(context.usage, 100)
        assert policy.check("anything", {}, context).allowed is False
