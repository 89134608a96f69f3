"""Configuration utilities for environment-based setup."""

import os

from dotenv import load_dotenv

from llm_completion_loop.exceptions import ConfigurationException
from llm_completion_loop.providers.registry import (
    ModelConfiguration,
    ProviderFamily,
    classify_provider,
)
from llm_completion_loop.tools.completion import DEFAULT_MAX_RUNS

MAX_RUNS_ENV = "LLM_COMPLETION_LOOP_MAX_RUNS"

API_KEY_ENV: dict[ProviderFamily, str] = {
    ProviderFamily.OPENAI: "OPENAI_API_KEY",
    ProviderFamily.ANTHROPIC: "ANTHROPIC_API_KEY",
    ProviderFamily.GOOGLE: "GEMINI_API_KEY",
}


def load_environment() -> None:
    """Load environment variables from .env file if it exists."""
    load_dotenv()


def get_max_runs() -> int:
    """Return the configured turn budget of the completion loop.

    Reads ``LLM_COMPLETION_LOOP_MAX_RUNS`` and falls back to 25.

    Raises:
        ConfigurationException: If the variable is not a positive integer
    """
    load_environment()

    value = os.getenv(MAX_RUNS_ENV)
    if value is None or value == "":
        return DEFAULT_MAX_RUNS

    try:
        max_runs = int(value)
    except ValueError as e:
        raise ConfigurationException(
            f"{MAX_RUNS_ENV} must be an integer, got {value!r}",
            config_key=MAX_RUNS_ENV,
            config_value=value,
        ) from e

    if max_runs < 1:
        raise ConfigurationException(
            f"{MAX_RUNS_ENV} must be at least 1, got {max_runs}",
            config_key=MAX_RUNS_ENV,
            config_value=value,
        )
    return max_runs


def create_model_configuration(
    model: str,
    api_key: str | None = None,
    max_tokens: int = 1000,
    temperature: float | None = None,
    api_base: str | None = None,
) -> ModelConfiguration:
    """Create a model configuration with environment-based credentials.

    Args:
        model: Model name (e.g., 'gpt-4o-mini', 'claude-3-5-haiku-latest')
        api_key: API key (if None, inferred from the provider's env var)
        max_tokens: Maximum tokens per model turn
        temperature: Optional sampling temperature
        api_base: Optional custom endpoint

    Returns:
        Configured ModelConfiguration

    Raises:
        ConfigurationException: If no API key is found for a provider that
            needs one
    """
    load_environment()

    provider = classify_provider(model)
    key_env = API_KEY_ENV.get(provider)

    if api_key is None and key_env is not None:
        api_key = os.getenv(key_env)
        if api_key is None:
            raise ConfigurationException(
                f"API key not found for model '{model}'. Set {key_env} "
                "environment variable or pass api_key parameter.",
                config_key=key_env,
            )

    return ModelConfiguration(
        model=model,
        provider=provider,
        api_key=api_key,
        api_base=api_base,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def get_available_providers() -> dict[str, bool]:
    """Check which providers have API keys available.

    Returns:
        Dictionary mapping provider names to availability status
    """
    load_environment()

    return {
        provider.value: os.getenv(env_var) is not None
        for provider, env_var in API_KEY_ENV.items()
    }


def get_default_models() -> dict[str, str]:
    """Get default models for each provider.

    Returns:
        Dictionary mapping provider names to default model names
    """
    return {
        "openai": "gpt-4o-mini",
        "anthropic": "claude-3-5-haiku-latest",
        "google": "gemini/gemini-1.5-flash",
    }
