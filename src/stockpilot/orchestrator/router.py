"""Intent router: answer simple requests with a direct tool call.

A ``Router`` sits in front of the orchestration loop. It holds a
prioritized list of rules; each rule pairs a predicate over the user's
message with the tool call that answers it. When a rule matches, the
orchestrator runs that single tool and skips the model entirely.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from stockpilot.toolkit.models import ToolResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteRule:
    """A (predicate, direct tool call) pair.

    Attributes:
        name: Rule identifier for logs.
        predicate: Returns True when the rule applies to a message.
        tool_name: Tool to call when the rule applies.
        arguments: Builds the tool arguments from the message.
        priority: Higher priorities are checked first.
        render: Turns the tool result into the response text.
            Defaults to ``render_result``.
    """

    name: str
    predicate: Callable[[str], bool]
    tool_name: str
    arguments: Callable[[str], dict[str, Any]]
    priority: int = 0
    render: Callable[[ToolResult], str] | None = None


@dataclass(frozen=True)
class RouteMatch:
    rule: RouteRule
    arguments: dict[str, Any] = field(default_factory=dict)

    def render(self, result: ToolResult) -> str:
        renderer = self.rule.render or render_result
        return renderer(result)


def render_result(result: ToolResult) -> str:
    """Default rendering: pretty JSON on success, the error text otherwise."""
    if not result.success:
        return f"I couldn't fetch that: {result.error}"
    return json.dumps(result.data, indent=2, ensure_ascii=False, default=str)


class Router:
    """Prioritized rule list. Equal priorities keep insertion order."""

    def __init__(self, rules: list[RouteRule] | None = None) -> None:
        self._rules: list[RouteRule] = []
        for rule in rules or []:
            self.add(rule)

    @property
    def rules(self) -> list[RouteRule]:
        return list(self._rules)

    def add(self, rule: RouteRule) -> None:
        self._rules.append(rule)
        # sort is stable, so insertion order breaks ties
        self._rules.sort(key=lambda r: -r.priority)

    def match(self, message: str) -> RouteMatch | None:
        """Return the first rule that applies to ``message``, if any.

        A rule whose predicate or argument builder raises is skipped.
        """
        for rule in self._rules:
            try:
                if not rule.predicate(message):
                    continue
                arguments = rule.arguments(message)
            except Exception:
                logger.debug("Route rule %s failed", rule.name, exc_info=True)
                continue
            logger.info("Routed message via rule %s -> %s", rule.name, rule.tool_name)
            return RouteMatch(rule=rule, arguments=arguments)
        return None


def regex_rule(
    name: str,
    pattern: str,
    tool_name: str,
    build_arguments: Callable[[re.Match[str]], dict[str, Any]],
    *,
    priority: int = 0,
    render: Callable[[ToolResult], str] | None = None,
) -> RouteRule:
    """Build a rule that fires when ``pattern`` fully matches the message."""
    compiled = re.compile(pattern, re.IGNORECASE)

    def predicate(message: str) -> bool:
        return compiled.fullmatch(message.strip()) is not None

    def arguments(message: str) -> dict[str, Any]:
        match = compiled.fullmatch(message.strip())
        if match is None:
            raise ValueError(f"Rule {name} does not match")
        return build_arguments(match)

    return RouteRule(
        name=name,
        predicate=predicate,
        tool_name=tool_name,
        arguments=arguments,
        priority=priority,
        render=render,
    )


def _render_quote(result: ToolResult) -> str:
    if not result.success:
        return render_result(result)
    data = result.data if isinstance(result.data, dict) else {}
    symbol = data.get("symbol")
    price = data.get("price")
    if symbol is None or price is None:
        return render_result(result)
    change = data.get("changePercent") or data.get("change_percent")
    line = f"**{symbol}** is trading at **${price}**"
    if change is not None:
        line += f" ({change})"
    return line + "."


PRICE_QUOTE_PATTERN = (
    r"(?:what(?:'s| is)\s+)?(?:the\s+)?(?:current\s+)?(?:stock\s+)?price\s+(?:of\s+|for\s+)?"
    r"\$?([A-Za-z]{1,5}(?:\.[A-Za-z])?)\s*\??"
)


def default_router() -> Router:
    """Router with the built-in rules: plain price questions about a ticker."""
    return Router(
        [
            regex_rule(
                "price_quote",
                PRICE_QUOTE_PATTERN,
                "get_stock_price",
                lambda m: {"symbol": m.group(1).upper()},
                priority=10,
                render=_render_quote,
            ),
        ]
    )
