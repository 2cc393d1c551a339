"""Chat-completions client for GitHub Models, OpenAI and compatible proxies.

One ``OpenAIClient`` talks to one provider endpoint. Failures leave it as
taxonomy errors from ``stockpilot.llm.errors``; only transient server and
connection faults are retried here, the fallback chain handles the rest.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
import tenacity

from stockpilot.llm.classifier import classify_exception, classify_response
from stockpilot.llm.errors import (
    LLMConfigError,
    LLMProviderError,
    LLMResponseError,
)

logger = logging.getLogger(__name__)

_TRANSIENT_STATUS_CODES = {500, 502, 503, 504}


def _is_transient(exc: BaseException) -> bool:
    """Check if an exception is worth retrying against the same model.

    Retryable: 500, 502, 503, 504, connection errors.
    Not retryable here: 429 (handled by the fallback chain), auth errors,
    payload and model errors, timeouts.
    """
    if isinstance(exc, LLMProviderError) and not isinstance(exc, LLMResponseError):
        return exc.status_code in _TRANSIENT_STATUS_CODES
    return isinstance(exc, httpx.ConnectError)


class OpenAIClient:
    """LLMClient over a pooled ``httpx.Client``.

    Transient server and connection errors are retried with exponential
    backoff; every other failure is raised at once as a classified
    ``LLMClientError``.

    Usage::

        with OpenAIClient(api_key="ghp-...", base_url="https://models.github.ai/inference") as client:
            response = client.chat(
                [{"role": "user", "content": "Hello"}],
                model="openai/gpt-4.1",
            )
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "openai/gpt-4.1",
        timeout: float = 120.0,
        max_retries: int = 2,
    ) -> None:
        """Create a client for one provider endpoint.

        Args:
            api_key: API key. Falls back to STOCKPILOT_API_KEY env var.
            base_url: API base URL. Falls back to STOCKPILOT_BASE_URL env var,
                then to https://models.github.ai/inference.
            default_model: Default model for chat requests.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts for transient errors.

        Raises:
            LLMConfigError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get("STOCKPILOT_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Pass api_key= or set STOCKPILOT_API_KEY "
                "environment variable."
            )
        self._base_url = (
            base_url
            or os.environ.get("STOCKPILOT_BASE_URL", "https://models.github.ai/inference")
        ).rstrip("/")
        self._default_model = default_model
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        tools: list[dict] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """Send a chat completion request.

        Args:
            messages: Messages in chat-completions wire form.
            model: Model id. None means the client's default model.
            tools: Tool definitions in function-calling form.
            temperature: Sent only when given.
            max_tokens: Sent only when given.
            **kwargs: Extra request body fields.

        Returns:
            The decoded response body. It always has a non-empty
            ``choices`` list.

        Raises:
            LLMClientError: A classified failure (see ``stockpilot.llm.errors``).
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_transient),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=1, max=10)
                + tenacity.wait_random(0, 1)
            ),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retryer(
                self._do_chat,
                messages,
                model=model,
                tools=tools,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise classify_exception(exc) from exc

    def _do_chat(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        tools: list[dict] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """One POST to ``/chat/completions``; non-2xx bodies are classified."""
        model_id = model or self._default_model
        payload: dict[str, Any] = {"model": model_id, "messages": messages}
        if tools:
            payload["tools"] = tools
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        payload.update(kwargs)

        response = self._client.post(f"{self._base_url}/chat/completions", json=payload)

        if response.status_code >= 400:
            logger.debug(
                "Provider returned HTTP %s for model %s: %s",
                response.status_code,
                model_id,
                response.text,
            )
            raise classify_response(
                response.status_code, response.text, response.headers, model=model_id
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMResponseError(f"Response is not JSON: {response.text[:200]}") from exc
        if not isinstance(data, dict) or not data.get("choices"):
            raise LLMResponseError(
                f"Unexpected response format: missing 'choices'. Response: {data}"
            )
        return data

    def close(self) -> None:
        """Release the connection pool."""
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @staticmethod
    def extract_message(response: dict) -> dict:
        """Return the first choice's message dict.

        Raises:
            LLMResponseError: If the response has no usable choice.
        """
        try:
            message = response["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMResponseError(
                f"No response from the model: {exc}. Response: {response}"
            ) from exc
        if not isinstance(message, dict):
            raise LLMResponseError(f"Malformed message in response: {message!r}")
        return message
