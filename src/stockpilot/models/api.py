"""Request and response models for the process boundary.

Wire names are camelCase (``sessionId``, ``toolCalls``); Python attribute
names are snake_case. Models accept either form on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """An incoming chat request."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    message: str = Field(min_length=1)
    session_id: str | None = Field(default=None, alias="sessionId")
    model: str | None = None
    provider: str | None = None


class ChatStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rounds: int = 0
    tool_calls: int = Field(default=0, alias="toolCalls")
    tools_provided: int = Field(default=0, alias="toolsProvided")


class ChatResponseBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    session_id: str = Field(alias="sessionId")
    model: str
    provider: str
    stats: ChatStats


class ErrorBody(BaseModel):
    error: str
    details: str


class ClearRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
