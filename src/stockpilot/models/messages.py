"""Conversation message models.

Messages and tool calls are frozen Pydantic models. They convert to and
from the OpenAI chat-completions wire shape, where tool-call arguments
travel as a JSON string; in memory the arguments are a dict.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from stockpilot.exceptions import ConversationError
from stockpilot.llm.errors import LLMResponseError

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant", "tool"]


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    model_config = {"frozen": True}

    id: str
    name: str
    arguments: dict = Field(default_factory=dict)

    def to_openai(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": json.dumps(self.arguments),
            },
        }

    @classmethod
    def from_openai(cls, raw: dict) -> ToolCall:
        """Parse one entry of an assistant message's ``tool_calls`` array.

        Arguments that are not valid JSON are replaced by an empty dict;
        the tool then reports its own missing-argument error to the model.
        A missing id is generated; a non-string id is stringified.

        Raises:
            LLMResponseError: If the entry is not an object or names no
                function.
        """
        if not isinstance(raw, Mapping):
            raise LLMResponseError(f"Malformed tool call in model response: {raw!r}")
        func = raw.get("function") or {}
        name = func.get("name") if isinstance(func, Mapping) else None
        if not isinstance(name, str) or not name.strip():
            raise LLMResponseError(f"Tool call without a function name in model response: {raw!r}")
        raw_id = raw.get("id")
        call_id = str(raw_id) if raw_id not in (None, "") else f"call_{uuid.uuid4().hex[:8]}"
        raw_args = func.get("arguments")
        if isinstance(raw_args, dict):
            arguments = raw_args
        else:
            try:
                arguments = json.loads(raw_args or "{}")
            except (json.JSONDecodeError, TypeError):
                arguments = {}
                logger.warning("Malformed JSON in tool call arguments for %s", name)
            if not isinstance(arguments, dict):
                arguments = {}
        return cls(id=call_id, name=name, arguments=arguments)


class Message(BaseModel):
    """A single conversation message."""

    model_config = {"frozen": True}

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def _check_role_fields(self) -> Message:
        if self.tool_calls and self.role != "assistant":
            raise ValueError("only assistant messages may carry tool_calls")
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("tool messages require a tool_call_id")
        if self.tool_call_id is not None and self.role != "tool":
            raise ValueError("only tool messages may carry a tool_call_id")
        return self

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls, content: str | None, tool_calls: list[ToolCall] | None = None
    ) -> Message:
        return cls(role="assistant", content=content, tool_calls=tool_calls or None)

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_openai(self) -> dict[str, Any]:
        """Return the chat-completions wire form of this message."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data

    @classmethod
    def from_openai(cls, raw: dict) -> Message:
        raw_calls = raw.get("tool_calls") or []
        if not isinstance(raw_calls, list):
            raise LLMResponseError(f"Malformed tool_calls in model response: {raw_calls!r}")
        tool_calls = [ToolCall.from_openai(tc) for tc in raw_calls]
        content = raw.get("content")
        if content is not None and not isinstance(content, str):
            content = json.dumps(content)
        return cls(
            role=raw.get("role", "assistant"),
            content=content,
            tool_calls=tool_calls or None,
            tool_call_id=raw.get("tool_call_id"),
        )


def to_openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
    return [m.to_openai() for m in messages]


def validate_tool_correlation(messages: list[Message]) -> None:
    """Check that every tool message answers a call of the preceding assistant.

    Tool messages must follow an assistant message (possibly after other
    tool messages) whose ``tool_calls`` contain their ``tool_call_id``.

    Raises:
        ConversationError: On the first tool message that breaks the rule.
    """
    open_ids: set[str] = set()
    for index, message in enumerate(messages):
        if message.role == "assistant":
            open_ids = {tc.id for tc in message.tool_calls or []}
        elif message.role == "tool":
            if message.tool_call_id not in open_ids:
                raise ConversationError(
                    f"Tool message at index {index} has no matching tool call "
                    f"(tool_call_id={message.tool_call_id!r})"
                )
        else:
            open_ids = set()
