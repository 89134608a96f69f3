"""Custom exceptions for the LLM completion loop."""

from typing import Any


class CompletionLoopException(Exception):
    """Base exception for the LLM completion loop.

    All custom exceptions in this package should inherit from this base class.
    Most of them are not raised at the caller: the completion loop hands them
    back as the ``error`` of an ``InvocationResult``.
    """

    pass


class SchemaValidationException(CompletionLoopException):
    """Raised when a ``result`` argument fails casting or constraint checks.

    This error is reported back into the conversation as a tool error so the
    model can retry. It never reaches the caller by itself.

    Attributes:
        schema: The JSON schema the value was expected to match
        value: The raw value that failed to validate
        validation_errors: List of validation error details
    """

    def __init__(
        self,
        message: str,
        schema: dict[str, Any] | None = None,
        value: Any = None,
        validation_errors: list[str] | None = None,
    ):
        super().__init__(message)
        self.schema = schema
        self.value = value
        self.validation_errors = validation_errors or []


class TurnBudgetExhausted(CompletionLoopException):
    """The model never produced a valid completion call within the budget.

    Attributes:
        max_runs: The configured turn budget
        runs: Number of turns and tool invocations actually consumed
        tool_name: The tool the loop was waiting for
    """

    def __init__(self, max_runs: int, runs: int, tool_name: str):
        super().__init__(
            f"'{tool_name}' was not called successfully within {max_runs} "
            f"messages or tool calls ({runs} used)"
        )
        self.max_runs = max_runs
        self.runs = runs
        self.tool_name = tool_name


class ProviderException(CompletionLoopException):
    """Raised when provider-specific errors occur.

    This exception is produced when:
    - API authentication fails
    - Rate limits are exceeded
    - Provider-specific API errors occur
    - Invalid model names or configurations

    Attributes:
        provider: The provider that caused the error
        model: The model that was being used
        original_error: The original exception from the provider
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.original_error = original_error


class UnexpectedResponseError(CompletionLoopException):
    """The chat session returned a shape the result normalizer does not know.

    Attributes:
        type: Fixed error kind, always ``"unexpected_response"``
        original: The unrecognized value, kept for diagnostics
    """

    type = "unexpected_response"

    def __init__(self, original: Any, message: str = "Unexpected response"):
        super().__init__(message)
        self.original = original


class ConfigurationException(CompletionLoopException):
    """Raised when configuration errors occur.

    This exception is raised when:
    - Required configuration is missing
    - Invalid configuration values are provided
    - An auxiliary tool collides with the completion tool name

    Attributes:
        config_key: The configuration key that caused the error
        config_value: The invalid configuration value
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        config_value: str | None = None,
    ):
        super().__init__(message)
        self.config_key = config_key
        self.config_value = config_value


class SchemaNotFoundError(CompletionLoopException):
    """Raised when a requested schema cannot be found."""

    pass


class SchemaLoadError(CompletionLoopException):
    """Raised when a schema cannot be loaded or is not a usable JSON schema."""

    pass
