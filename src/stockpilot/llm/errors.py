"""LLM provider error taxonomy.

All LLM errors inherit from StockpilotError. Each class maps to a distinct
boundary status and carries a remediation hint. The orchestrator picks its
retry policy from the class:

- ``LLMRateLimitError`` (and ``LLMTimeoutError``): try the next fallback
  model, then the next provider.
- ``LLMPayloadTooLargeError``: retry once with a minimal payload.
- everything else: fatal.
"""

from __future__ import annotations

import math

from stockpilot.exceptions import StockpilotError

RATE_LIMIT_GUIDANCE = (
    "This model's request quota is exhausted. Try switching to a different "
    "model, or try again later."
)


class LLMClientError(StockpilotError):
    """Base for all LLM client errors."""

    status = 502
    hint = "The model provider returned an error. Please try again."


class LLMConfigError(LLMClientError):
    """Missing or invalid provider configuration (e.g., no API key)."""

    status = 503
    hint = (
        "Set GITHUB_TOKEN (a token with 'Models: read' permission) or "
        "OPENAI_API_KEY for the OpenAI proxy provider."
    )


class LLMAuthError(LLMClientError):
    """Authentication failed (401/403)."""

    status = 401
    hint = (
        "The provider rejected the credential. Check that the token is valid, "
        "not expired, and has permission to use the model API."
    )


class LLMRateLimitError(LLMClientError):
    """Rate limited by the provider (429).

    Attributes:
        retry_after: Seconds the provider asked us to wait, or None if it
            did not say.
    """

    status = 429
    hint = RATE_LIMIT_GUIDANCE

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message)

    @property
    def wait_estimate(self) -> str | None:
        """Human-readable wait estimate, or None when no wait is known."""
        if self.retry_after is None:
            return None
        return format_wait_estimate(self.retry_after)


class LLMTimeoutError(LLMRateLimitError):
    """The provider did not answer within the request timeout."""

    status = 504
    hint = "The model took too long to answer. Try again or pick a faster model."

    def __init__(self, message: str = "Request timed out") -> None:
        super().__init__(message, retry_after=None)


class LLMPayloadTooLargeError(LLMClientError):
    """The conversation plus tool definitions exceed the provider's limit (413)."""

    status = 413
    hint = (
        "The conversation or system context is too large for this model's "
        "token limit. Start a new chat, or switch to a model with a larger "
        "input window."
    )


class LLMUnknownModelError(LLMClientError):
    """The provider does not recognize the requested model id."""

    status = 400
    hint = "Choose a different model; this one is not available from the provider."

    def __init__(self, message: str, model: str | None = None) -> None:
        self.model = model
        super().__init__(message)


class LLMProviderError(LLMClientError):
    """Any other provider failure.

    Attributes:
        status_code: HTTP status returned by the provider, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class LLMResponseError(LLMProviderError):
    """Unexpected response format from the provider."""


def format_wait_estimate(seconds: float) -> str:
    """Render a wait duration the way a user would want to read it.

    Under an hour the estimate is in whole minutes (rounded up), otherwise
    in whole hours (rounded up).
    """
    if seconds < 3600:
        minutes = max(1, math.ceil(seconds / 60))
        return f"Please wait approximately {minutes} minute(s) before retrying."
    hours = math.ceil(seconds / 3600)
    return f"Please wait approximately {hours} hour(s) before retrying."
