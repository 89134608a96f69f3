"""Provider-specific clean-up of tool rosters before they are attached."""

import copy
import logging
from dataclasses import replace
from typing import Any

from llm_completion_loop.providers.registry import ModelConfiguration
from llm_completion_loop.tools.tool import Tool

logger = logging.getLogger(__name__)


def sanitize_tools(tools: list[Tool], config: ModelConfiguration) -> list[Tool]:
    """Remove tool features the active provider does not support.

    Args:
        tools: Full roster, completion tool included.
        config: Model configuration of the conversation.

    Returns:
        A new list of tools; the input tools are left untouched.
    """
    profile = config.profile
    sanitized: list[Tool] = []

    for tool in tools:
        changes: dict[str, Any] = {}
        if tool.strict and not profile.supports_strict_tools:
            changes["strict"] = False
        if profile.requires_relaxed_schema:
            parameters = copy.deepcopy(tool.parameters)
            _strip_additional_properties(parameters)
            changes["parameters"] = parameters
        if changes:
            logger.debug(
                "Sanitized tool %s for %s: %s",
                tool.name,
                config.family.value,
                sorted(changes),
            )
            tool = replace(tool, **changes)
        sanitized.append(tool)

    return sanitized


def _strip_additional_properties(schema_dict: Any) -> None:
    """Recursively drop ``additionalProperties`` from a schema, in place."""
    if isinstance(schema_dict, dict):
        schema_dict.pop("additionalProperties", None)
        for value in schema_dict.values():
            _strip_additional_properties(value)
    elif isinstance(schema_dict, list):
        for item in schema_dict:
            _strip_additional_properties(item)
