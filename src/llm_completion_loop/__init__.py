"""LLM Completion Loop - force a chat to end in a validated ``complete_request`` call."""

__version__ = "0.1.0"

# Core loop
from .adapter import (
    InvocationResult,
    RequestContext,
    complete_request,
    decide_forcing,
    normalize,
    run_completion_loop,
)

# Custom exceptions
from .exceptions import (
    CompletionLoopException,
    ConfigurationException,
    ProviderException,
    SchemaLoadError,
    SchemaNotFoundError,
    SchemaValidationException,
    TurnBudgetExhausted,
    UnexpectedResponseError,
)

# Providers and schemas
from .providers import ModelConfiguration, ProviderFamily, classify_provider
from .schema import ExpectedResult, SchemaManager, TypeCaster, adapt_result_schema

# Sessions and tools
from .session import ChatSession, LiteLLMChatSession, RunResult
from .tools import COMPLETION_TOOL_NAME, Tool, ToolCompletion, ToolError

# Configuration utilities
from .utils import (
    create_model_configuration,
    get_available_providers,
    get_default_models,
    get_max_runs,
    load_environment,
)

__all__ = [
    "__version__",
    "InvocationResult",
    "RequestContext",
    "complete_request",
    "decide_forcing",
    "normalize",
    "run_completion_loop",
    "ModelConfiguration",
    "ProviderFamily",
    "classify_provider",
    "ExpectedResult",
    "SchemaManager",
    "TypeCaster",
    "adapt_result_schema",
    "ChatSession",
    "LiteLLMChatSession",
    "RunResult",
    "COMPLETION_TOOL_NAME",
    "Tool",
    "ToolCompletion",
    "ToolError",
    "load_environment",
    "get_max_runs",
    "create_model_configuration",
    "get_available_providers",
    "get_default_models",
    # Exceptions
    "CompletionLoopException",
    "ConfigurationException",
    "ProviderException",
    "SchemaLoadError",
    "SchemaNotFoundError",
    "SchemaValidationException",
    "TurnBudgetExhausted",
    "UnexpectedResponseError",
]
