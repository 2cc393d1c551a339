"""Orchestrator state and result models.

Provides RoundState (per-request mutable state), RoundRecord (one
completed round), and ChatResult (the outcome of a request).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from stockpilot.orchestrator.config import OrchestratorState


@dataclass
class RoundState:
    """Transient state of one request.

    Attributes:
        model: Active model id.
        provider: Active provider id.
        rounds: Rounds started so far.
        model_calls: Model calls issued so far, retries included.
        tool_calls: Tool calls dispatched so far.
        tools_provided: Tools offered on the latest model call.
        payload_reduced: Whether the request switched to the minimal
            payload after a payload-too-large failure.
        completed_length: History length at the end of the last
            completed round (0 while no round has completed).
    """

    model: str
    provider: str
    rounds: int = 0
    model_calls: int = 0
    tool_calls: int = 0
    tools_provided: int = 0
    payload_reduced: bool = False
    completed_length: int = 0


@dataclass(frozen=True)
class RoundRecord:
    """Immutable record of one completed round.

    ``phase`` is the state the round ended in: ``TOOL_DISPATCH`` when the
    model asked for tools, ``TERMINAL_RESPONSE`` for the final answer.
    """

    round: int
    model: str
    provider: str
    tool_calls: int
    tool_names: tuple[str, ...] = ()
    phase: OrchestratorState = OrchestratorState.TOOL_DISPATCH

    @property
    def final(self) -> bool:
        return self.phase is OrchestratorState.TERMINAL_RESPONSE


@dataclass(frozen=True)
class ChatStats:
    rounds: int = 0
    tool_calls: int = 0
    tools_provided: int = 0


@dataclass(frozen=True)
class ChatResult:
    """Final result of one request.

    Attributes:
        response: The assistant's answer (or the soft-failure text).
        session_id: Session the exchange was stored under.
        model: Model that produced the final answer.
        provider: Provider that served it.
        stats: Round, tool-call and offered-tool counts.
        exhausted: True when the round budget ran out before an answer.
        routed: True when an intent rule answered without the model.
    """

    response: str
    session_id: str
    model: str
    provider: str
    stats: ChatStats = field(default_factory=ChatStats)
    exhausted: bool = False
    routed: bool = False
