"""LLM client infrastructure for Stockpilot.

Provides an OpenAI-compatible HTTP client, the pluggable LLM client
protocol, the provider registry, and the provider error taxonomy with its
classifier.
"""

from stockpilot.llm.classifier import classify_exception, classify_response
from stockpilot.llm.client import OpenAIClient
from stockpilot.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMPayloadTooLargeError,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
    LLMUnknownModelError,
    format_wait_estimate,
)
from stockpilot.llm.protocols import LLMClient
from stockpilot.llm.providers import (
    AUTO_MODEL,
    ProviderProfile,
    ProviderRegistry,
)

__all__ = [
    "OpenAIClient",
    "LLMClient",
    "ProviderProfile",
    "ProviderRegistry",
    "AUTO_MODEL",
    "classify_response",
    "classify_exception",
    "format_wait_estimate",
    "LLMClientError",
    "LLMConfigError",
    "LLMAuthError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LLMPayloadTooLargeError",
    "LLMUnknownModelError",
    "LLMProviderError",
    "LLMResponseError",
]
