"""Orchestrator package -- the multi-round research loop.

Provides the Orchestrator class, its configuration, per-request state and
result types, the fallback chain, and the intent router.
"""

from stockpilot.orchestrator.config import OrchestratorConfig, OrchestratorState
from stockpilot.orchestrator.fallback import FallbackChain
from stockpilot.orchestrator.loop import Orchestrator, looks_like_tool_call
from stockpilot.orchestrator.models import ChatResult, ChatStats, RoundRecord, RoundState
from stockpilot.orchestrator.router import (
    RouteMatch,
    RouteRule,
    Router,
    default_router,
    regex_rule,
    render_result,
)

__all__ = [
    # Core
    "Orchestrator",
    "looks_like_tool_call",
    # Config
    "OrchestratorConfig",
    "OrchestratorState",
    # Models
    "ChatResult",
    "ChatStats",
    "RoundRecord",
    "RoundState",
    "FallbackChain",
    # Routing
    "Router",
    "RouteRule",
    "RouteMatch",
    "regex_rule",
    "render_result",
    "default_router",
]
