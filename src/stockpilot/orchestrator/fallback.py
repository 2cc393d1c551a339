"""Fallback chain over ``(provider, model)`` candidates for one request."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class FallbackChain:
    """Ordered candidates with a record of which have been tried.

    The first candidate is active on construction and counts as tried.
    ``advance()`` moves to the next untried candidate, so a model is
    never attempted twice in the same request.
    """

    def __init__(self, candidates: list[tuple[str, str]]) -> None:
        if not candidates:
            raise ValueError("FallbackChain needs at least one candidate")
        self._candidates = list(candidates)
        self._index = 0
        self._tried: set[tuple[str, str]] = {self._candidates[0]}

    @property
    def current(self) -> tuple[str, str]:
        return self._candidates[self._index]

    @property
    def tried(self) -> list[tuple[str, str]]:
        return [c for c in self._candidates if c in self._tried]

    def remaining(self) -> list[tuple[str, str]]:
        return [
            c for c in self._candidates[self._index + 1:] if c not in self._tried
        ]

    def advance(self) -> tuple[str, str] | None:
        """Switch to the next untried candidate, or return None if none is left."""
        for index in range(self._index + 1, len(self._candidates)):
            candidate = self._candidates[index]
            if candidate in self._tried:
                continue
            self._index = index
            self._tried.add(candidate)
            logger.info("Falling back to %s/%s", candidate[0], candidate[1])
            return candidate
        return None
