"""Conversation history compaction.

A research turn can accumulate dozens of tool calls and tool results. They
are needed while that turn is reasoning, but they have no value to later
turns and quickly exceed the model's input limit. ``compact_history``
bounds the history passed to a model call:

1. Messages after the system message are split into exchanges. An
   exchange starts at a ``user`` message and runs up to the next one.
2. Only the last ``keep_exchanges`` exchanges are kept.
3. Every kept exchange except the most recent collapses to its user
   message and its final tool-free assistant answer. An exchange with no
   such answer (it was interrupted mid-tool-loop) is kept as is. The most
   recent exchange may still be in progress and is kept verbatim.
4. Every retained message's content is clipped to ``max_chars``.

The system message always stays at index 0 and the relative order of the
retained messages never changes. Running the compactor on its own output
is a no-op.
"""

from __future__ import annotations

from stockpilot.compaction.payload import clip_text
from stockpilot.models.messages import Message


def split_exchanges(messages: list[Message]) -> list[list[Message]]:
    """Split messages (excluding any leading system message) into exchanges."""
    body = messages[1:] if messages and messages[0].role == "system" else messages
    exchanges: list[list[Message]] = []
    current: list[Message] = []
    for message in body:
        if message.role == "user" and current:
            exchanges.append(current)
            current = []
        current.append(message)
    if current:
        exchanges.append(current)
    return exchanges


def collapse_exchange(exchange: list[Message]) -> list[Message]:
    """Reduce a finished exchange to its question and final answer.

    Returns the exchange unchanged when it has no assistant message
    without pending tool calls.
    """
    for message in reversed(exchange):
        if message.role == "assistant" and not message.has_tool_calls:
            if message is exchange[0]:
                return exchange
            return [exchange[0], message]
    return exchange


def compact_history(
    messages: list[Message],
    *,
    keep_exchanges: int = 2,
    max_chars: int = 4000,
) -> list[Message]:
    """Return a bounded view of ``messages`` for a model call.

    Args:
        messages: Full history; message 0 is the system message.
        keep_exchanges: Number of trailing exchanges to keep.
        max_chars: Per-message content budget in characters.

    Returns:
        A new list. The input list and its messages are not modified.

    Raises:
        ValueError: If ``keep_exchanges`` or ``max_chars`` is below 1.
    """
    if keep_exchanges < 1:
        raise ValueError("keep_exchanges must be >= 1")
    if max_chars < 1:
        raise ValueError("max_chars must be >= 1")
    if not messages:
        return []

    head = [messages[0]] if messages[0].role == "system" else []
    kept = split_exchanges(messages)[-keep_exchanges:]

    compacted: list[Message] = list(head)
    for index, exchange in enumerate(kept):
        if index < len(kept) - 1:
            compacted.extend(collapse_exchange(exchange))
        else:
            compacted.extend(exchange)

    return [_clip_message(m, max_chars) for m in compacted]


def _clip_message(message: Message, max_chars: int) -> Message:
    if message.content is None or len(message.content) <= max_chars:
        return message
    return message.model_copy(
        update={"content": clip_text(message.content, max_chars)}
    )
