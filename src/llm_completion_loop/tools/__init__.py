"""Tool helpers for LiteLLM tool-calling flows."""

from .completion import (
    COMPLETION_TOOL_NAME,
    DEFAULT_MAX_RUNS,
    CompletionValidator,
    build_completion_tool,
    completion_description,
)
from .tool import Tool, ToolCompletion, ToolError, unpack_tools

__all__ = [
    "COMPLETION_TOOL_NAME",
    "DEFAULT_MAX_RUNS",
    "CompletionValidator",
    "Tool",
    "ToolCompletion",
    "ToolError",
    "build_completion_tool",
    "completion_description",
    "unpack_tools",
]
