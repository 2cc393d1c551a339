"""Orchestrator configuration types.

Provides OrchestratorState and OrchestratorConfig for the research loop.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from stockpilot.compaction.payload import PayloadLimits

if TYPE_CHECKING:
    from stockpilot.orchestrator.models import RoundRecord


class OrchestratorState(str, enum.Enum):
    """States of one request's loop.

    ``ROUND_START -> MODEL_CALL -> TOOL_DISPATCH -> ROUND_START`` repeats
    until the request reaches a terminal state.
    """

    ROUND_START = "round_start"
    MODEL_CALL = "model_call"
    TOOL_DISPATCH = "tool_dispatch"
    TERMINAL_RESPONSE = "terminal_response"
    TERMINAL_ERROR = "terminal_error"


@dataclass
class OrchestratorConfig:
    """Configuration for the research orchestrator.

    Mutable dataclass -- users may adjust settings between requests.

    Attributes:
        max_rounds: Maximum model calls per request, retries included.
        keep_exchanges: Exchanges of history kept for each model call.
        max_message_chars: Per-message content budget for model calls.
        payload_limits: Bounds applied to every tool result.
        tool_timeout: Seconds each tool call may run.
        model_timeout: Seconds each model call may run (HTTP timeout of
            clients built by the provider registry).
        max_tool_workers: Thread cap for one round's tool batch.
        system_prompt: Override for the default research system prompt.
        allowed_tools: Allow-list of tool names offered to the model
            (None = every tool).
        reduced_profile: Tool profile sent on the minimal-payload retry.
        temperature: Sampling temperature forwarded to the provider.
        max_tokens: Response token cap forwarded to the provider.
        on_round: Callback invoked after each completed round.
    """

    max_rounds: int = 30
    keep_exchanges: int = 2
    max_message_chars: int = 4000
    payload_limits: PayloadLimits = field(default_factory=PayloadLimits)
    tool_timeout: float = 60.0
    model_timeout: float = 120.0
    max_tool_workers: int = 16
    system_prompt: str | None = None
    allowed_tools: list[str] | None = None
    reduced_profile: str = "core"
    temperature: float | None = None
    max_tokens: int | None = None
    on_round: Callable[[RoundRecord], None] | None = None
