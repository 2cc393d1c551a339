"""Tests for the intent router."""

from __future__ import annotations

import pytest

from stockpilot.orchestrator.router import (
    RouteRule,
    Router,
    default_router,
    regex_rule,
    render_result,
)
from stockpilot.toolkit.models import ToolResult


def _rule(name: str, priority: int = 0, predicate=lambda m: True) -> RouteRule:
    return RouteRule(
        name=name,
        predicate=predicate,
        tool_name="get_stock_price",
        arguments=lambda m: {"symbol": "AAPL"},
        priority=priority,
    )


class TestRouter:
    def test_no_rules_no_match(self):
        assert Router().match("anything") is None

    def test_highest_priority_wins(self):
        router = Router([_rule("low", 1), _rule("high", 5)])
        assert router.match("x").rule.name == "high"

    def test_ties_keep_insertion_order(self):
        router = Router()
        router.add(_rule("first"))
        router.add(_rule("second"))
        assert [r.name for r in router.rules] == ["first", "second"]
        assert router.match("x").rule.name == "first"

    def test_failing_rule_skipped(self):
        def broken(message):
            raise RuntimeError("bad predicate")

        router = Router([_rule("broken", 10, broken), _rule("fallback")])
        assert router.match("x").rule.name == "fallback"

    def test_match_carries_arguments(self):
        match = Router([_rule("r")]).match("x")
        assert match.arguments == {"symbol": "AAPL"}


class TestRegexRule:
    def test_groups_feed_arguments(self):
        rule = regex_rule(
            "peers",
            r"peers of (\w+)",
            "get_peers",
            lambda m: {"symbol": m.group(1).upper()},
        )
        assert rule.predicate("Peers of amd")
        assert rule.arguments("peers of amd") == {"symbol": "AMD"}
        assert not rule.predicate("who are the peers of amd and intel")

    def test_arguments_on_non_matching_message(self):
        rule = regex_rule("r", r"x", "t", lambda m: {})
        with pytest.raises(ValueError):
            rule.arguments("y")


class TestDefaultRouter:
    @pytest.mark.parametrize(
        ("message", "symbol"),
        [
            ("price of AAPL", "AAPL"),
            ("What is the price of msft?", "MSFT"),
            ("what's the current stock price for $nvda", "NVDA"),
            ("price BRK.B", "BRK.B"),
        ],
    )
    def test_price_questions(self, message, symbol):
        match = default_router().match(message)
        assert match is not None
        assert match.rule.tool_name == "get_stock_price"
        assert match.arguments == {"symbol": symbol}

    @pytest.mark.parametrize(
        "message",
        [
            "Compare the price of AAPL and MSFT",
            "Give me a deep dive on Apple",
            "price of the whole semiconductor sector",
        ],
    )
    def test_other_questions_not_routed(self, message):
        assert default_router().match(message) is None

    def test_quote_rendering(self):
        match = default_router().match("price of AAPL")
        result = ToolResult(
            tool_call_id="r",
            tool_name="get_stock_price",
            success=True,
            data={"symbol": "AAPL", "price": 187.5, "changePercent": "+1.20%"},
        )
        assert match.render(result) == "**AAPL** is trading at **$187.5** (+1.20%)."

    def test_failed_quote_rendering(self):
        match = default_router().match("price of ZZZZ")
        result = ToolResult(tool_call_id="r", tool_name="get_stock_price", success=False, error="not found")
        assert match.render(result) == "I couldn't fetch that: not found"


class TestRenderResult:
    def test_success_is_json(self):
        result = ToolResult(tool_call_id="r", tool_name="t", success=True, data={"a": 1})
        assert render_result(result) == '{\n  "a": 1\n}'
