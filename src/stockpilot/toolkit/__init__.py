"""Research toolkit: tool definitions, profiles, and the tool dispatcher.

Provides the function-calling schemas offered to the model and the
dispatcher that runs the model's tool calls against the data service.
"""

from stockpilot.toolkit.definitions import get_all_tools
from stockpilot.toolkit.dispatcher import ToolDispatcher
from stockpilot.toolkit.models import ToolConfig, ToolDefinition, ToolProfile, ToolResult
from stockpilot.toolkit.profiles import CORE_PROFILE, FULL_PROFILE, get_profile

__all__ = [
    "ToolDefinition",
    "ToolProfile",
    "ToolConfig",
    "ToolResult",
    "ToolDispatcher",
    "get_all_tools",
    "get_profile",
    "FULL_PROFILE",
    "CORE_PROFILE",
]
