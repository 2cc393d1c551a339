"""Stockpilot exception hierarchy.

All Stockpilot-specific exceptions inherit from StockpilotError. Errors
that reach the request boundary carry an HTTP-like ``status`` and a
remediation ``hint``.
"""


class StockpilotError(Exception):
    """Base exception for all Stockpilot errors."""

    status: int = 500
    hint: str = "An unexpected error occurred. Please try again."


class ConversationError(StockpilotError):
    """Raised when a message history violates the tool-call correlation rules."""


class OrchestratorError(StockpilotError):
    """Raised when the orchestrator encounters an unrecoverable error."""


class ProtocolViolationError(OrchestratorError):
    """The model wrote a tool-call request as plain text instead of calling the tool."""

    status = 422
    hint = (
        "The selected model returned tool-call syntax as text instead of "
        "calling the tool. Pick a model that supports tool calling."
    )

    def __init__(self, content: str) -> None:
        self.content = content
        super().__init__(
            "Model emitted a serialized tool call instead of a response"
        )


class RequestCancelledError(OrchestratorError):
    """Raised when a request is cancelled before it completes."""

    status = 499
    hint = "The request was cancelled before it completed."
