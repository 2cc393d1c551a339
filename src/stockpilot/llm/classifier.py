"""Map provider failures onto the fixed error taxonomy.

Every provider-specific detail of error parsing lives here: status codes,
error-body codes, and wait hints embedded in error messages. Supporting a
new provider means teaching these two functions its error format; the
orchestrator only ever sees the taxonomy classes.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping

import httpx

from stockpilot.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMPayloadTooLargeError,
    LLMProviderError,
    LLMRateLimitError,
    LLMTimeoutError,
    LLMUnknownModelError,
)

_AUTH_STATUS_CODES = {401, 403}
_UNKNOWN_MODEL_CODES = {"unknown_model", "model_not_found"}
_PAYLOAD_TOO_LARGE_CODES = {
    "tokens_limit_reached",
    "context_length_exceeded",
    "request_too_large",
}
_WAIT_PATTERN = re.compile(r"wait (\d+) seconds", re.IGNORECASE)


def classify_response(
    status_code: int,
    body: str,
    headers: Mapping[str, str] | None = None,
    *,
    model: str | None = None,
) -> LLMClientError:
    """Classify a non-2xx provider response.

    Args:
        status_code: HTTP status of the response.
        body: Raw response text.
        headers: Response headers (used for ``Retry-After``).
        model: The model that was requested, for error messages.

    Returns:
        The taxonomy exception to raise. Never raises itself.
    """
    headers = headers or {}
    code, message = _parse_error_body(body)

    if status_code in _AUTH_STATUS_CODES:
        return LLMAuthError(
            f"Authentication failed: HTTP {status_code} - {message or body}"
        )

    if status_code == 429:
        retry_after = _parse_retry_after(headers.get("Retry-After"))
        if retry_after is None and message:
            match = _WAIT_PATTERN.search(message)
            if match:
                retry_after = float(match.group(1))
        return LLMRateLimitError(
            f"Rate limit reached for model {model or 'unknown'}",
            retry_after=retry_after,
        )

    if status_code == 413 or code in _PAYLOAD_TOO_LARGE_CODES:
        return LLMPayloadTooLargeError(
            f"Request too large for model {model or 'unknown'}"
        )

    if code in _UNKNOWN_MODEL_CODES or (status_code == 404 and "model" in body.lower()):
        return LLMUnknownModelError(
            f"Model not found: {model or 'unknown'}", model=model
        )

    return LLMProviderError(
        f"Provider error (HTTP {status_code}): {message or body}",
        status_code=status_code,
    )


def classify_exception(exc: BaseException) -> LLMClientError:
    """Classify a transport or unexpected exception raised during a model call."""
    if isinstance(exc, LLMClientError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return LLMTimeoutError(f"Model request timed out: {exc}")
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        return classify_response(
            response.status_code, response.text, response.headers
        )
    if isinstance(exc, httpx.HTTPError):
        return LLMProviderError(f"Transport error: {type(exc).__name__}: {exc}")
    return LLMProviderError(f"{type(exc).__name__}: {exc}")


def _parse_error_body(body: str) -> tuple[str, str]:
    """Extract ``(code, message)`` from an OpenAI-style error body."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return "", ""
    if not isinstance(data, dict):
        return "", ""
    error = data.get("error")
    if isinstance(error, dict):
        return str(error.get("code") or ""), str(error.get("message") or "")
    if isinstance(error, str):
        return "", error
    return str(data.get("code") or ""), str(data.get("message") or "")


def _parse_retry_after(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None
