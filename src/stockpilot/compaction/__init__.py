"""Compaction of conversation histories and tool payloads."""

from stockpilot.compaction.history import (
    collapse_exchange,
    compact_history,
    split_exchanges,
)
from stockpilot.compaction.payload import (
    DEPTH_PLACEHOLDER,
    TRUNCATION_MARKER,
    PayloadLimits,
    clip_text,
    compact_payload,
)

__all__ = [
    "compact_history",
    "split_exchanges",
    "collapse_exchange",
    "compact_payload",
    "clip_text",
    "PayloadLimits",
    "TRUNCATION_MARKER",
    "DEPTH_PLACEHOLDER",
]
