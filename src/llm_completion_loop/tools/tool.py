"""Generic tool abstraction for LiteLLM tool-calling flows.

Provides a ``Tool`` frozen dataclass that bundles a tool schema with its
handler, the ``ToolCompletion`` / ``ToolError`` signals a handler may return,
and ``unpack_tools`` to split ``list[Tool]`` into LiteLLM schemas plus a
handler map.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

ToolHandler = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True)
class ToolCompletion:
    """Returned by a handler to end the conversation with ``value``.

    Args:
        value: The final, validated value of the conversation.
        message: Tool message sent back to the model.
    """

    value: Any
    message: str = "complete"


@dataclass(frozen=True)
class ToolError:
    """Returned by a handler to report a tool-level error to the model.

    The conversation keeps going; the model sees ``message`` and may retry.
    """

    message: str


@dataclass(frozen=True)
class Tool:
    """Immutable tool definition pairing schema metadata with an executable handler.

    Args:
        name: Unique tool name.
        description: Human-readable description of what the tool does.
        parameters: JSON Schema dict describing the tool's input parameters.
        handler: Callable that receives parsed arguments and returns a result
            string, ``None``, a ``ToolCompletion`` or a ``ToolError``.
        strict: Whether the provider should enforce ``parameters`` strictly.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler
    strict: bool = False

    def to_litellm_schema(self) -> dict[str, Any]:
        """Convert to the OpenAI-format dict expected by LiteLLM.

        Returns:
            A tool definition dict with ``type`` and ``function`` keys.
        """
        function: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }
        if self.strict:
            function["strict"] = True
        return {"type": "function", "function": function}


def unpack_tools(
    tools: list[Tool],
) -> tuple[list[dict[str, Any]], dict[str, ToolHandler]]:
    """Convert a list of Tool objects to LiteLLM schemas and a handler map.

    Args:
        tools: List of Tool objects to convert.

    Returns:
        A tuple of (tool_schemas, handler_map).
    """
    schemas: list[dict[str, Any]] = []
    handlers: dict[str, ToolHandler] = {}

    for tool in tools:
        schemas.append(tool.to_litellm_schema())
        handlers[tool.name] = tool.handler

    return schemas, handlers
