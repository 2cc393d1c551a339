"""LLM client protocol.

The orchestrator talks to every model provider through this interface.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for pluggable LLM clients.

    Any object with chat() and close() methods matching this signature works.
    The built-in OpenAIClient implements this protocol.

    ``chat`` returns an OpenAI-style response dict
    (``choices[0].message``). Failures should be raised as
    ``LLMClientError`` subclasses; anything else is classified as a generic
    provider error by the orchestrator.
    """

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        tools: list[dict] | None = None,
        **kwargs: Any,
    ) -> dict:
        """Send messages, return response dict."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
