"""Research tool records: what the model is offered and what it gets back.

- **ToolDefinition** -- one entry of the catalog, sent to the model as a
  function schema and bound to a method of the data service.
- **ToolConfig** / **ToolProfile** -- curated subsets of the catalog, used
  to shrink the tool list for the reduced-payload retry.
- **ToolResult** -- outcome of one tool call, correlated by call id.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ToolDefinition:
    """A research operation the model may call.

    Attributes:
        name: Name the model uses (e.g. "get_stock_price").
        description: Tells the model what the operation returns and when
            it is worth calling.
        parameters: JSON Schema object for the arguments. Property names
            are the camelCase wire names.
        operation: Data service method that runs the tool. Empty means
            the tool name.
    """

    name: str
    description: str
    parameters: dict
    operation: str = ""

    def __post_init__(self) -> None:
        if not self.operation:
            object.__setattr__(self, "operation", self.name)

    @property
    def properties(self) -> dict:
        return self.parameters.get("properties", {})

    @property
    def required(self) -> list[str]:
        return list(self.parameters.get("required", []))

    def to_openai(self) -> dict:
        """Chat-completions ``tools`` entry for this definition."""
        function = {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }
        return {"type": "function", "function": function}


@dataclass(frozen=True)
class ToolConfig:
    """Whether a profile offers a tool, and under which description."""

    enabled: bool = True
    description: str | None = None


@dataclass
class ToolProfile:
    """Named subset of the catalog.

    A tool is offered only if ``tool_configs`` has an enabled entry for it;
    an entry's ``description`` replaces the catalog description, so small
    profiles can also carry shorter texts.
    """

    name: str
    tool_configs: dict[str, ToolConfig] = field(default_factory=dict)

    def filter_tools(self, catalog: list[ToolDefinition]) -> list[ToolDefinition]:
        """Return the profile's tools in catalog order."""
        selected: list[ToolDefinition] = []
        for definition in catalog:
            entry = self.tool_configs.get(definition.name)
            if entry is None or not entry.enabled:
                continue
            if entry.description is not None:
                definition = replace(definition, description=entry.description)
            selected.append(definition)
        return selected


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call.

    ``data`` holds the service's return value when ``success`` is set,
    otherwise ``error`` says what went wrong. Failures are ordinary
    results: the model reads them and decides what to do next.
    """

    tool_call_id: str
    tool_name: str
    success: bool
    data: Any = None
    error: str = ""

    def to_payload(self) -> dict[str, Any]:
        """Return the ``{success, data|error}`` shape fed back to the model."""
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}
