"""Bounded completion loop: force a conversation to end in ``complete_request``.

One invocation builds a ``complete_request`` tool whose schema suits the
provider, pins ``tool_choice`` to it when the provider allows and no other
tools are present, runs the conversation until the tool succeeds or the
turn budget runs out, and normalizes whatever the session returned.

Example:
    ```python
    from llm_completion_loop import (
        ExpectedResult,
        ModelConfiguration,
        RequestContext,
        complete_request,
    )

    context = RequestContext(
        model_config=ModelConfiguration(model="gpt-4o-mini", api_key="..."),
        messages=[{"role": "user", "content": "How many legs does a spider have?"}],
        expected=ExpectedResult(type=int, constraints={"min": 0}),
    )
    result = complete_request(context, max_runs=5)
    print(result.value if result.ok else result.error)
    ```
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from llm_completion_loop.adapter.outcomes import (
    InvocationResult,
    LoopOutcome,
    decode_outcome,
    normalize,
)
from llm_completion_loop.exceptions import ConfigurationException
from llm_completion_loop.providers.registry import ModelConfiguration
from llm_completion_loop.providers.sanitize import sanitize_tools
from llm_completion_loop.schema.adapters import adapt_result_schema
from llm_completion_loop.schema.manager import SchemaInput, SchemaManager
from llm_completion_loop.schema.validators import ExpectedResult, TypeCaster
from llm_completion_loop.session.chat_session import ChatSession, LiteLLMChatSession
from llm_completion_loop.tools.completion import (
    COMPLETION_TOOL_NAME,
    CompletionValidator,
    build_completion_tool,
    completion_description,
)
from llm_completion_loop.tools.tool import Tool
from llm_completion_loop.utils.config import get_max_runs

logger = logging.getLogger(__name__)

SessionFactory = Callable[..., ChatSession]


@dataclass(frozen=True)
class RequestContext:
    """Immutable input to one completion loop invocation.

    Args:
        model_config: Model and provider configuration.
        expected: Expected result type and constraints.
        messages: Prior conversation messages.
        tools: Auxiliary tools the model may use before completing.
        verbose: Log every conversation message at INFO.
        context: Ambient key/values (actor, tenant, ...) made available to
            message templates.
        json_schema: JSON schema of the expected result. Generated from
            ``expected`` when omitted.
    """

    model_config: ModelConfiguration
    expected: ExpectedResult
    messages: Sequence[Mapping[str, Any]] = ()
    tools: Sequence[Tool] = ()
    verbose: bool = False
    context: Mapping[str, Any] = field(default_factory=dict)
    json_schema: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))
        object.__setattr__(self, "tools", tuple(self.tools))
        if self.json_schema is None:
            object.__setattr__(self, "json_schema", self.expected.json_schema())

    @classmethod
    def from_schema(
        cls,
        model_config: ModelConfiguration,
        schema: SchemaInput,
        schema_manager: SchemaManager | None = None,
        **kwargs: Any,
    ) -> "RequestContext":
        """Build a context from a schema name, URL, dict or pydantic model."""
        expected, json_schema = (schema_manager or SchemaManager()).resolve_expected(
            schema
        )
        return cls(
            model_config=model_config,
            expected=expected,
            json_schema=json_schema,
            **kwargs,
        )


def flatten_context(context: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested context mappings into ``parent_child`` keys.

    ``None`` values are dropped.
    """
    flat: dict[str, Any] = {}
    for key, value in context.items():
        name = f"{prefix}_{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_context(value, name))
        elif value is not None:
            flat[name] = value
    return flat


def decide_forcing(
    model_config: ModelConfiguration, auxiliary_tools: Sequence[Tool]
) -> tuple[ModelConfiguration, bool]:
    """Decide whether the provider can be forced to call ``complete_request``.

    Forcing is restricted to conversations without auxiliary tools, since a
    pinned tool choice would keep the model from ever using them.

    Returns:
        Tuple of (effective_config, forced). The input is never modified.
    """
    if model_config.supports_tool_choice and not auxiliary_tools:
        return model_config.with_tool_choice(COMPLETION_TOOL_NAME), True
    return model_config, False


def run_completion_loop(
    context: RequestContext,
    completion_tool: Tool,
    max_runs: int,
    effective_config: ModelConfiguration | None = None,
    session_factory: SessionFactory = LiteLLMChatSession,
) -> LoopOutcome:
    """Drive the conversation until ``complete_request`` succeeds.

    Args:
        context: Request being answered
        completion_tool: Tool from ``build_completion_tool``
        max_runs: Hard ceiling on model turns plus tool invocations
        effective_config: Configuration after forcing; ``context.model_config``
            when omitted
        session_factory: Callable building the chat session

    Returns:
        The decoded outcome of the session run
    """
    config = effective_config or context.model_config

    session = session_factory(
        config,
        verbose=context.verbose,
        custom_context=flatten_context(context.context),
    )
    session.add_messages(context.messages)

    roster = sanitize_tools([completion_tool, *context.tools], config)
    session.add_tools(roster)

    raw = session.run_until_tool_used(COMPLETION_TOOL_NAME, max_runs=max_runs)
    return decode_outcome(raw)


def _check_request(context: RequestContext, max_runs: int) -> None:
    if max_runs < 1:
        raise ConfigurationException(
            f"max_runs must be at least 1, got {max_runs}",
            config_key="max_runs",
            config_value=str(max_runs),
        )
    clashing = [tool.name for tool in context.tools if tool.name == COMPLETION_TOOL_NAME]
    if clashing:
        raise ConfigurationException(
            f"Auxiliary tools may not be named '{COMPLETION_TOOL_NAME}'",
            config_key="tools",
            config_value=COMPLETION_TOOL_NAME,
        )


def complete_request(
    context: RequestContext,
    max_runs: int | None = None,
    *,
    session_factory: SessionFactory = LiteLLMChatSession,
    caster: TypeCaster | None = None,
) -> InvocationResult:
    """Run one bounded completion loop and return its normalized result.

    Args:
        context: Request to answer
        max_runs: Maximum model turns plus tool invocations; read from the
            environment (default 25) when omitted
        session_factory: Callable building the chat session
        caster: Casting engine used by the completion tool

    Returns:
        ``InvocationResult``; this function does not raise.
    """
    try:
        if max_runs is None:
            max_runs = get_max_runs()
        _check_request(context, max_runs)
    except ConfigurationException as e:
        logger.warning("Rejected completion request: %s", e)
        return InvocationResult.failure(e)

    effective_config, forced = decide_forcing(context.model_config, context.tools)
    logger.debug(
        "Running %s on %s (forced=%s, max_runs=%d)",
        COMPLETION_TOOL_NAME,
        effective_config.model,
        forced,
        max_runs,
    )

    json_schema = context.json_schema or {}
    result_schema, required = adapt_result_schema(effective_config, json_schema)
    completion_tool = build_completion_tool(
        result_schema,
        required,
        completion_description(forced, max_runs),
        CompletionValidator(
            expected=context.expected,
            json_schema=json_schema,
            caster=caster or TypeCaster(),
        ),
    )

    try:
        outcome = run_completion_loop(
            context,
            completion_tool,
            max_runs,
            effective_config=effective_config,
            session_factory=session_factory,
        )
    except Exception as e:
        logger.exception("Chat session failed outside of a run result")
        return InvocationResult.failure(e)

    return normalize(outcome)
