"""The ``complete_request`` tool the model must call to finish a conversation."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from llm_completion_loop.schema.validators import ExpectedResult, TypeCaster
from llm_completion_loop.tools.tool import Tool, ToolCompletion, ToolError

logger = logging.getLogger(__name__)

COMPLETION_TOOL_NAME = "complete_request"
DEFAULT_MAX_RUNS = 25


def completion_description(forced: bool, max_runs: int = DEFAULT_MAX_RUNS) -> str:
    """Describe the completion tool to the model.

    When the provider cannot be forced to call the tool, the description is
    the only thing telling the model it has to stop within ``max_runs``.
    """
    if forced:
        return "Use this tool to complete the request."
    return (
        "Use this tool to complete the request.\n"
        f"This tool must be called after {max_runs} messages or tool calls from you.\n"
    )


def invalid_response_message(json_schema: dict[str, Any]) -> str:
    """Tool error shown to the model when its ``result`` does not validate."""
    return (
        "Invalid response. Expected to match schema:\n\n"
        f"{json.dumps(json_schema, indent=2, sort_keys=True, default=str)}\n"
    )


@dataclass(frozen=True)
class CompletionValidator:
    """Handler of the completion tool.

    Casts ``arguments["result"]`` to the expected type, then applies the
    expected constraints. Success ends the conversation; failure is reported
    back to the model together with the expected JSON schema.

    Args:
        expected: Expected type and constraints.
        json_schema: JSON schema quoted to the model on failure.
        caster: Casting engine.
    """

    expected: ExpectedResult
    json_schema: dict[str, Any]
    caster: TypeCaster = field(default_factory=TypeCaster)

    def __call__(self, arguments: Any) -> ToolCompletion | ToolError:
        if not isinstance(arguments, Mapping):
            logger.warning("complete_request called with non-object arguments")
            return ToolError(invalid_response_message(self.json_schema))

        cast = self.caster.cast(self.expected, arguments.get("result"))
        if cast.success:
            constrained = self.caster.apply_constraints(self.expected, cast.value)
            if constrained.success:
                return ToolCompletion(constrained.value)
            failure = constrained
        else:
            failure = cast

        logger.warning(
            "complete_request result rejected (%s): %s",
            failure.error_category,
            failure.error,
        )
        return ToolError(invalid_response_message(self.json_schema))


def build_completion_tool(
    result_schema: dict[str, Any],
    required: list[str],
    description: str,
    validate: CompletionValidator,
) -> Tool:
    """Assemble the ``complete_request`` tool.

    Args:
        result_schema: Schema of the ``result`` property, as adapted for the
            provider.
        required: Required parameter names, ``["result"]`` or ``[]``.
        description: Text from ``completion_description``.
        validate: Handler invoked with the tool-call arguments.

    Returns:
        Strict tool definition named ``complete_request``.
    """
    return Tool(
        name=COMPLETION_TOOL_NAME,
        description=description,
        parameters={
            "type": "object",
            "properties": {"result": result_schema},
            "required": list(required),
            "additionalProperties": False,
        },
        handler=validate,
        strict=True,
    )
