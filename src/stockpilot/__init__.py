"""Stockpilot: a tool-calling research loop for equity questions.

A language model answers research questions by calling data tools across
several rounds, with per-session memory, bounded history and tool
payloads, and fallback across model providers.
"""

__version__ = "0.1.0"

# Core entry point
from stockpilot.orchestrator import Orchestrator, OrchestratorConfig

# Results and routing
from stockpilot.orchestrator import ChatResult, ChatStats, RoundRecord, Router, default_router

# Sessions and messages
from stockpilot.session import InMemorySessionStore, SessionStore
from stockpilot.models.messages import Message, ToolCall
from stockpilot.models.api import ChatRequest

# Compaction
from stockpilot.compaction import PayloadLimits, compact_history, compact_payload

# Tools
from stockpilot.toolkit import ToolDefinition, ToolDispatcher, ToolResult, get_all_tools, get_profile

# Providers
from stockpilot.llm import LLMClient, OpenAIClient, ProviderProfile, ProviderRegistry

# Boundary
from stockpilot.api import handle_chat, handle_clear

# Exceptions
from stockpilot.exceptions import (
    ConversationError,
    OrchestratorError,
    ProtocolViolationError,
    RequestCancelledError,
    StockpilotError,
)
from stockpilot.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMPayloadTooLargeError,
    LLMProviderError,
    LLMRateLimitError,
    LLMTimeoutError,
    LLMUnknownModelError,
)

__all__ = [
    "__version__",
    "Orchestrator",
    "OrchestratorConfig",
    "ChatResult",
    "ChatStats",
    "RoundRecord",
    "Router",
    "default_router",
    "SessionStore",
    "InMemorySessionStore",
    "Message",
    "ToolCall",
    "ChatRequest",
    "PayloadLimits",
    "compact_history",
    "compact_payload",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolResult",
    "get_all_tools",
    "get_profile",
    "LLMClient",
    "OpenAIClient",
    "ProviderProfile",
    "ProviderRegistry",
    "handle_chat",
    "handle_clear",
    "StockpilotError",
    "ConversationError",
    "OrchestratorError",
    "ProtocolViolationError",
    "RequestCancelledError",
    "LLMClientError",
    "LLMConfigError",
    "LLMAuthError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LLMPayloadTooLargeError",
    "LLMUnknownModelError",
    "LLMProviderError",
]
