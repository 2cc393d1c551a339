"""Process boundary for chat and session-clear requests.

``handle_chat`` and ``handle_clear`` take a decoded JSON payload and return
``(status, body)``, ready for any HTTP framework to serialize. Failures
come back as ``{"error", "details"}`` bodies with the status of their
error class; nothing raised by the loop escapes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from stockpilot.exceptions import StockpilotError
from stockpilot.models.api import (
    ChatRequest,
    ChatResponseBody,
    ChatStats,
    ClearRequest,
    ErrorBody,
)

if TYPE_CHECKING:
    from stockpilot.orchestrator.loop import Orchestrator
    from stockpilot.session import SessionStore

logger = logging.getLogger(__name__)

Response = tuple[int, dict[str, Any]]


def _error(status: int, error: str, details: str) -> Response:
    return status, ErrorBody(error=error, details=details).model_dump()


def handle_chat(
    orchestrator: Orchestrator,
    payload: Mapping[str, Any] | None,
    *,
    cancel: threading.Event | None = None,
) -> Response:
    """Validate a chat payload, run it, and shape the response.

    Args:
        orchestrator: The research loop that answers the request.
        payload: ``{message, sessionId?, model?, provider?}``.
        cancel: Optional event forwarded to the loop.

    Returns:
        ``(200, {response, sessionId, model, provider, stats})`` on
        success, ``(status, {error, details})`` otherwise.
    """
    try:
        request = ChatRequest.model_validate(payload or {})
    except ValidationError as exc:
        if any(err["loc"] == ("message",) for err in exc.errors()):
            return _error(400, "Message is required", "Send a non-empty 'message' field.")
        return _error(400, "Invalid request", str(exc))

    try:
        result = orchestrator.run(request, cancel=cancel)
    except StockpilotError as exc:
        logger.info("Chat request failed with %s: %s", type(exc).__name__, exc)
        return _error(exc.status, str(exc), exc.hint)
    except Exception as exc:
        logger.exception("Unexpected error while handling chat request")
        return _error(500, str(exc) or "Failed to process message", StockpilotError.hint)

    body = ChatResponseBody(
        response=result.response,
        session_id=result.session_id,
        model=result.model,
        provider=result.provider,
        stats=ChatStats(
            rounds=result.stats.rounds,
            tool_calls=result.stats.tool_calls,
            tools_provided=result.stats.tools_provided,
        ),
    )
    return 200, body.model_dump(by_alias=True)


def handle_clear(store: SessionStore, payload: Mapping[str, Any] | None) -> Response:
    """Remove a session. Clearing an unknown or missing id still succeeds."""
    try:
        request = ClearRequest.model_validate(payload or {})
    except ValidationError as exc:
        return _error(400, "Invalid request", str(exc))
    if request.session_id:
        removed = store.delete(request.session_id)
        logger.debug("Cleared session %s (existed=%s)", request.session_id, removed)
    return 200, {"success": True}
