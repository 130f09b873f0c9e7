"""Agent-side handling of confirmation-gated tool calls."""

from graph_voice.agent.dispatch import ChoiceResult, ToolDispatcher
from graph_voice.agent.tools import (
    GATED_TOOLS,
    GatedTool,
    ToolArgumentError,
    UnknownToolError,
    is_gated,
)

__all__ = [
    "ToolDispatcher",
    "ChoiceResult",
    "GATED_TOOLS",
    "GatedTool",
    "ToolArgumentError",
    "UnknownToolError",
    "is_gated",
]
