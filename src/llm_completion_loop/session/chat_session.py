"""Chat sessions that drive a LiteLLM conversation until a tool is used."""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from string import Template
from typing import Any, Literal

from litellm import completion, completion_cost

from llm_completion_loop.exceptions import (
    ConfigurationException,
    ProviderException,
    TurnBudgetExhausted,
)
from llm_completion_loop.providers.registry import ModelConfiguration
from llm_completion_loop.tools.tool import (
    Tool,
    ToolCompletion,
    ToolError,
    ToolHandler,
    unpack_tools,
)
from llm_completion_loop.tracking.usage_metrics import UsageMetrics

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Raw outcome of ``ChatSession.run_until_tool_used``.

    ``status="ok"`` carries the value produced by the awaited tool in
    ``processed_content``; ``status="error"`` carries ``error``.
    """

    status: Literal["ok", "error"]
    session: "ChatSession | None" = None
    processed_content: Any = None
    error: Any = None
    usage: UsageMetrics | None = None


class ChatSession(ABC):
    """Abstract conversation engine the completion loop runs on."""

    @abstractmethod
    def add_messages(self, messages: Iterable[Mapping[str, Any]]) -> "ChatSession":
        """Append prior conversation messages, rendering their templates.

        Args:
            messages: Chat messages (``{"role": ..., "content": ...}``)

        Returns:
            The session, for chaining
        """
        pass

    @abstractmethod
    def add_tools(self, tools: Iterable[Tool]) -> "ChatSession":
        """Attach tools the model may call.

        Returns:
            The session, for chaining
        """
        pass

    @abstractmethod
    def run_until_tool_used(self, tool_name: str, max_runs: int) -> Any:
        """Run turns until ``tool_name`` completes or ``max_runs`` is used up.

        Args:
            tool_name: Name of the tool whose successful call ends the run
            max_runs: Maximum number of model turns plus tool invocations

        Returns:
            Usually a ``RunResult``; callers must not rely on the shape.
        """
        pass


class LiteLLMChatSession(ChatSession):
    """Chat session using LiteLLM for multi-provider support."""

    def __init__(
        self,
        config: ModelConfiguration,
        verbose: bool = False,
        custom_context: Mapping[str, Any] | None = None,
    ):
        """Initialize the session.

        Args:
            config: Model configuration, ``tool_choice`` included
            verbose: Log every message at INFO instead of DEBUG
            custom_context: Ambient key/values used to render ``$name``
                placeholders in message content
        """
        self.config = config
        self.verbose = verbose
        self.custom_context: dict[str, Any] = dict(custom_context or {})
        self.messages: list[dict[str, Any]] = []
        self.usage: UsageMetrics | None = None

        self._tool_schemas: list[dict[str, Any]] = []
        self._tool_handlers: dict[str, ToolHandler] = {}

    def add_messages(
        self, messages: Iterable[Mapping[str, Any]]
    ) -> "LiteLLMChatSession":
        """Append messages, substituting ``$name`` placeholders from the context."""
        for message in messages:
            rendered = dict(message)
            content = rendered.get("content")
            if isinstance(content, str) and self.custom_context:
                rendered["content"] = Template(content).safe_substitute(
                    {key: str(value) for key, value in self.custom_context.items()}
                )
            self.messages.append(rendered)
            self._log_message(rendered)
        return self

    def add_tools(self, tools: Iterable[Tool]) -> "LiteLLMChatSession":
        """Attach tools; a later tool with the same name replaces the earlier one."""
        schemas, handlers = unpack_tools(list(tools))
        self._tool_schemas.extend(schemas)
        self._tool_handlers.update(handlers)
        return self

    def run_until_tool_used(self, tool_name: str, max_runs: int) -> RunResult:
        """Execute turns and tool calls until ``tool_name`` completes.

        Every model turn and every tool invocation counts against
        ``max_runs``. Once the budget is used up, remaining tool calls of the
        turn are answered with a ``ToolError`` without running their handler,
        and no further turn starts. Calls to ``tool_name`` itself are still
        run, so a valid answer in the last turn completes the request; they
        are the only calls that can take the count past ``max_runs``.

        Returns:
            ``RunResult`` with the completed value, a ``ProviderException``,
            or a ``TurnBudgetExhausted`` error.
        """
        if tool_name not in self._tool_handlers:
            return RunResult(
                status="error",
                session=self,
                error=ConfigurationException(
                    f"Tool '{tool_name}' has not been added to the session.",
                    config_key="tool_name",
                    config_value=tool_name,
                ),
            )

        runs = 0
        while runs < max_runs:
            try:
                response = completion(**self._request_kwargs())
            except Exception as e:
                logger.warning(
                    "LLM call failed for %s/%s: %s",
                    self.config.family.value,
                    self.config.model,
                    e,
                )
                return RunResult(
                    status="error",
                    session=self,
                    error=ProviderException(
                        str(e),
                        provider=self.config.family.value,
                        model=self.config.model,
                        original_error=e,
                    ),
                    usage=self.usage,
                )
            runs += 1
            self._record_usage(response)

            response_message = response.choices[0].message
            tool_calls = getattr(response_message, "tool_calls", None)

            if not tool_calls:
                self._append(
                    {"role": "assistant", "content": response_message.content}
                )
                self._append(
                    {
                        "role": "user",
                        "content": f"Call the `{tool_name}` tool to complete the request.",
                    }
                )
                continue

            assistant_message: dict[str, Any] = {
                "role": "assistant",
                "content": response_message.content,
                "tool_calls": [],
            }
            self._append(assistant_message)

            completed: ToolCompletion | None = None
            for tool_call in tool_calls:
                function_call = getattr(tool_call, "function", None)
                name = getattr(function_call, "name", None)
                arguments = getattr(function_call, "arguments", None)
                call_id = getattr(tool_call, "id", None) or str(name)

                assistant_message["tool_calls"].append(
                    {
                        "id": call_id,
                        "type": "function",
                        "function": {"name": name, "arguments": arguments},
                    }
                )

                # Calls to the awaited tool are never skipped.
                if runs >= max_runs and name != tool_name:
                    logger.warning(
                        "Skipping tool %r: %d runs already used", name, runs
                    )
                    outcome: Any = ToolError(
                        f"Tool '{name}' was not run: the limit of {max_runs} "
                        "messages or tool calls is used up."
                    )
                else:
                    runs += 1
                    outcome = self._execute_tool(name, arguments)
                self._append(
                    {
                        "role": "tool",
                        "tool_call_id": call_id,
                        "content": self._tool_message(outcome),
                    }
                )
                if (
                    name == tool_name
                    and completed is None
                    and isinstance(outcome, ToolCompletion)
                ):
                    completed = outcome

            if completed is not None:
                logger.debug("%s completed after %d runs", tool_name, runs)
                return RunResult(
                    status="ok",
                    session=self,
                    processed_content=completed.value,
                    usage=self.usage,
                )

        logger.warning("%s was not completed within %d runs", tool_name, max_runs)
        return RunResult(
            status="error",
            session=self,
            error=TurnBudgetExhausted(max_runs=max_runs, runs=runs, tool_name=tool_name),
            usage=self.usage,
        )

    def _request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [*self.messages],
            "max_tokens": self.config.max_tokens,
        }
        if self._tool_schemas:
            kwargs["tools"] = self._tool_schemas
            if self.config.tool_choice is not None:
                kwargs["tool_choice"] = self.config.tool_choice
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        if self.config.api_key is not None:
            kwargs["api_key"] = self.config.api_key
        if self.config.api_base is not None:
            kwargs["api_base"] = self.config.api_base
        return kwargs

    def _execute_tool(self, name: str | None, arguments: Any) -> Any:
        """Run one tool handler, turning every failure into a ``ToolError``."""
        if not name or name not in self._tool_handlers:
            logger.warning("Model called unknown tool %r", name)
            return ToolError(f"No handler found for tool '{name}'.")

        try:
            parsed_args = (
                json.loads(arguments) if isinstance(arguments, str) else arguments
            )
        except json.JSONDecodeError:
            logger.warning("Failed to parse arguments for tool %r", name)
            return ToolError(f"Failed to parse arguments for tool '{name}'.")
        if parsed_args is None:
            parsed_args = {}

        try:
            return self._tool_handlers[name](parsed_args)
        except Exception as e:
            logger.warning("Tool %r raised: %s", name, e, exc_info=True)
            return ToolError(f"Tool '{name}' failed: {e}")

    def _tool_message(self, outcome: Any) -> str:
        if isinstance(outcome, ToolCompletion):
            return outcome.message
        if isinstance(outcome, ToolError):
            return outcome.message
        if outcome is None:
            return ""
        if isinstance(outcome, str):
            return outcome
        return json.dumps(outcome, default=str)

    def _append(self, message: dict[str, Any]) -> None:
        self.messages.append(message)
        self._log_message(message)

    def _log_message(self, message: Mapping[str, Any]) -> None:
        level = logging.INFO if self.verbose else logging.DEBUG
        logger.log(level, "[%s] %s", message.get("role"), message.get("content"))

    def _record_usage(self, response: Any) -> None:
        """Add one response's token usage and estimated cost to ``self.usage``."""
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "prompt_tokens", None)
        output_tokens = getattr(usage, "completion_tokens", None)
        if not isinstance(input_tokens, int) or not isinstance(output_tokens, int):
            return

        cached_tokens = None
        details = getattr(usage, "prompt_tokens_details", None)
        if details is not None and isinstance(
            getattr(details, "cached_tokens", None), int
        ):
            cached_tokens = details.cached_tokens

        cost_usd = None
        try:
            cost = completion_cost(completion_response=response)
            if isinstance(cost, (int, float)):
                cost_usd = float(cost)
        except Exception as e:
            logger.debug(
                "Cost calculation failed for %s/%s: %s",
                self.config.family.value,
                self.config.model,
                e,
            )

        if self.usage is None:
            self.usage = UsageMetrics(
                provider=self.config.family.value, model=self.config.model
            )
        self.usage = self.usage.add_turn(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_tokens=cached_tokens,
            cost_usd=cost_usd,
        )
