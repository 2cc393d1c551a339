"""Session storage: process-wide map from session id to message history.

``SessionStore`` is the interface the orchestrator depends on, so a shared
cache can replace the in-process map for multi-process deployments.
``InMemorySessionStore`` is the single-process implementation.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable

from stockpilot.models.messages import Message

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Keyed storage for conversation histories."""

    def get(self, session_id: str) -> list[Message]:
        """Return the stored history, or an empty list if absent."""
        ...

    def set(self, session_id: str, messages: list[Message]) -> None:
        """Replace the stored history for ``session_id``."""
        ...

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        ...


class InMemorySessionStore:
    """Thread-safe in-process session store.

    Histories are copied on the way in and out so callers never share a
    list with the store. Sessions live until deleted; there is no expiry.

    Concurrent requests on the same session are not ordered: each request
    replaces the whole history when it finishes, so the last writer wins.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, list[Message]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> list[Message]:
        with self._lock:
            return list(self._sessions.get(session_id, ()))

    def set(self, session_id: str, messages: list[Message]) -> None:
        with self._lock:
            self._sessions[session_id] = list(messages)
        logger.debug("Stored %d messages for session %s", len(messages), session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            existed = self._sessions.pop(session_id, None) is not None
        if existed:
            logger.debug("Deleted session %s", session_id)
        return existed

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
