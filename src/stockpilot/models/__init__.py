"""Message and boundary models for Stockpilot."""

from stockpilot.models.api import (
    ChatRequest,
    ChatResponseBody,
    ChatStats,
    ClearRequest,
    ErrorBody,
)
from stockpilot.models.messages import (
    Message,
    Role,
    ToolCall,
    to_openai_messages,
    validate_tool_correlation,
)

__all__ = [
    "Message",
    "Role",
    "ToolCall",
    "to_openai_messages",
    "validate_tool_correlation",
    "ChatRequest",
    "ChatResponseBody",
    "ChatStats",
    "ClearRequest",
    "ErrorBody",
]
