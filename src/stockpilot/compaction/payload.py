"""Size bounding for structured tool results.

Tool results come back from the external data service in whatever shape
it chooses. Before a result re-enters the conversation it is passed
through ``compact_payload`` so that no single result can blow the model's
context budget: long strings are clipped, lists and objects are cut to
their first entries, and deep nesting is replaced by a placeholder.

The transform is deterministic and idempotent: compacting an already
compacted value returns an equal value.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

TRUNCATION_MARKER = "…[truncated]"
DEPTH_PLACEHOLDER = "[depth limit reached]"


@dataclass(frozen=True)
class PayloadLimits:
    """Bounds applied by ``compact_payload``.

    Attributes:
        max_string: Strings longer than this are clipped and marked.
        max_items: Lists keep at most this many leading entries.
        max_keys: Objects keep at most this many leading keys.
        max_depth: Containers nested at this depth or deeper are replaced
            by ``DEPTH_PLACEHOLDER``. The root container is depth 0, so
            the result never nests more than ``max_depth`` containers.
    """

    max_string: int = 2000
    max_items: int = 25
    max_keys: int = 40
    max_depth: int = 6

    def __post_init__(self) -> None:
        for name in ("max_string", "max_items", "max_keys", "max_depth"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


def clip_text(text: str, limit: int) -> str:
    """Clip ``text`` to ``limit`` characters, appending the truncation marker.

    Text at or under the limit is returned unchanged. Clipped text keeps
    its first ``limit`` characters, so clipping twice gives the same result.
    """
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def compact_payload(value: Any, limits: PayloadLimits | None = None) -> Any:
    """Return a size-bounded copy of ``value``.

    Numbers, booleans and ``None`` pass through unchanged. Tuples and sets
    become lists, Pydantic models and dataclasses are converted to dicts,
    and any other object is replaced by its string form.

    Args:
        value: Any structured value, typically a tool's data payload.
        limits: Bounds to apply. Defaults to ``PayloadLimits()``.

    Returns:
        A JSON-compatible value within the given limits.
    """
    return _compact(value, limits or PayloadLimits(), 0)


def _compact(value: Any, limits: PayloadLimits, depth: int) -> Any:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        if value == DEPTH_PLACEHOLDER:
            return value
        return clip_text(value, limits.max_string)

    value = _normalize(value)
    if not isinstance(value, (dict, list)):
        return clip_text(str(value), limits.max_string)

    if depth >= limits.max_depth:
        return DEPTH_PLACEHOLDER

    if isinstance(value, list):
        return [_compact(item, limits, depth + 1) for item in value[: limits.max_items]]

    result: dict[str, Any] = {}
    for key, item in value.items():
        if len(result) >= limits.max_keys:
            break
        result[key if isinstance(key, str) else str(key)] = _compact(
            item, limits, depth + 1
        )
    return result


def _normalize(value: Any) -> Any:
    """Map container-like objects onto dicts and lists."""
    if isinstance(value, (dict, list)):
        return value
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value
